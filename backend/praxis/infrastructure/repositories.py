"""SQL Repositories: SQLAlchemy implementations of the core boundary protocols.

Invariants:
    - try_decrement_stock is ONE conditional UPDATE (stock >= quantity in the WHERE
      clause) for components and products alike; it can never drive stock negative,
      whatever runs concurrently
    - compare_and_set_status only writes when the row still holds the expected status
    - Repositories never commit; the owning service decides the transaction boundary
    - get(..., for_update=True) takes a row lock where the backend supports it and
      overwrites any stale copy in the identity map

Design Decisions:
    - synchronize_session=False on bulk updates: services refresh the instances they return
"""

from collections.abc import Iterable

from sqlalchemy import exists, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from praxis.core.catalog import CatalogSnapshot
from praxis.core.catalog import Component as CatalogComponent
from praxis.core.catalog import ComponentType as CatalogComponentType
from praxis.core.catalog import Product as CatalogProduct
from praxis.core.domain_types import (
    ComponentId, OrderId, OrderStatus, ProductId, ProductStatus, ProtocolKind,
    TicketId, TicketStatus,
)
from praxis.models.component import Component, ComponentType
from praxis.models.order import Order
from praxis.models.product import Product
from praxis.models.service_ticket import ServiceTicket


def to_catalog_component(row: Component) -> CatalogComponent:
    return CatalogComponent(
        id=ComponentId(row.id),
        type_code=row.type.code,
        name=row.name,
        price=row.price,
        stock_quantity=row.stock_quantity,
        compatibility_tags=row.compatibility_tags or {},
        is_active=row.is_active,
        weight_kg=row.weight_kg,
    )


def to_catalog_product(row: Product) -> CatalogProduct:
    return CatalogProduct(
        id=ProductId(row.id),
        sku=row.sku,
        name=row.name,
        price=row.base_price,
        stock_quantity=row.stock_quantity,
        status=ProductStatus(row.status),
        is_configurable=row.is_configurable,
        weight_kg=row.weight_kg,
    )


async def _try_decrement(db: AsyncSession, model, row_id, quantity: int) -> bool:
    result = await db.execute(
        update(model)
        .where(model.id == row_id)
        .where(model.stock_quantity >= quantity)
        .values(stock_quantity=model.stock_quantity - quantity)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


async def _increment(db: AsyncSession, model, row_id, quantity: int) -> None:
    await db.execute(
        update(model)
        .where(model.id == row_id)
        .values(stock_quantity=model.stock_quantity + quantity)
        .execution_options(synchronize_session=False)
    )


class ComponentRepository:
    """Catalog reads and atomic stock counters."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def load_snapshot(self) -> CatalogSnapshot:
        types = (await self.db.execute(select(ComponentType))).scalars().all()
        components = (await self.db.execute(select(Component))).scalars().all()
        return CatalogSnapshot(
            types=tuple(
                CatalogComponentType(t.code, t.name, t.is_required, t.sort_order)
                for t in types
            ),
            components=tuple(to_catalog_component(c) for c in components),
        )

    async def try_decrement_stock(
        self, component_id: ComponentId, quantity: int,
    ) -> bool:
        return await _try_decrement(self.db, Component, component_id, quantity)

    async def increment_stock(
        self, component_id: ComponentId, quantity: int,
    ) -> None:
        await _increment(self.db, Component, component_id, quantity)


class ProductRepository:
    """Pre-built product reads and atomic stock counters."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def load(self, product_ids: Iterable[ProductId]) -> dict[ProductId, CatalogProduct]:
        ids = list(product_ids)
        if not ids:
            return {}
        rows = (await self.db.execute(
            select(Product).where(Product.id.in_(ids)),
        )).scalars().all()
        return {ProductId(row.id): to_catalog_product(row) for row in rows}

    async def list_on_sale(self) -> list[CatalogProduct]:
        rows = (await self.db.execute(
            select(Product)
            .where(Product.status == ProductStatus.ACTIVE.value)
            .order_by(Product.name)
        )).scalars().all()
        return [to_catalog_product(row) for row in rows]

    async def try_decrement_stock(self, product_id: ProductId, quantity: int) -> bool:
        return await _try_decrement(self.db, Product, product_id, quantity)

    async def increment_stock(self, product_id: ProductId, quantity: int) -> None:
        await _increment(self.db, Product, product_id, quantity)


class OrderRepository:
    """Order persistence with compare-and-set status updates."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, order_id: OrderId, for_update: bool = False) -> Order | None:
        query = select(Order).where(Order.id == order_id)
        if for_update:
            query = query.with_for_update().execution_options(populate_existing=True)
        return (await self.db.execute(query)).scalar_one_or_none()

    async def compare_and_set_status(
        self, order_id: OrderId, expected: OrderStatus, new: OrderStatus,
        **fields: object,
    ) -> bool:
        result = await self.db.execute(
            update(Order)
            .where(Order.id == order_id)
            .where(Order.status == expected.value)
            .values(status=new.value, **fields)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1


class TicketRepository:
    """Service ticket persistence with compare-and-set status updates."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, ticket_id: TicketId, for_update: bool = False) -> ServiceTicket | None:
        query = select(ServiceTicket).where(ServiceTicket.id == ticket_id)
        if for_update:
            query = query.with_for_update().execution_options(populate_existing=True)
        return (await self.db.execute(query)).scalar_one_or_none()

    async def compare_and_set_status(
        self, ticket_id: TicketId, expected: TicketStatus, new: TicketStatus,
        **fields: object,
    ) -> bool:
        result = await self.db.execute(
            update(ServiceTicket)
            .where(ServiceTicket.id == ticket_id)
            .where(ServiceTicket.status == expected.value)
            .values(status=new.value, **fields)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1


class SqlProtocolRegistry:
    """Checks protocol codes against the orders and service_tickets tables."""

    _TABLES = {
        ProtocolKind.ORDER: Order,
        ProtocolKind.TICKET: ServiceTicket,
    }

    def __init__(self, db: AsyncSession):
        self.db = db

    async def protocol_exists(self, kind: ProtocolKind, code: str) -> bool:
        model = self._TABLES[kind]
        result = await self.db.execute(
            select(exists().where(model.protocol == code)),
        )
        return bool(result.scalar())
