"""Order Service: order creation, checkout and lifecycle transitions.

Invariants:
    - Creation is atomic: protocol, price breakdown and items commit together or not at all
    - Stock is reserved only on PAID -> IN_PREPARATION, one conditional decrement
      per item inside the same transaction as the status change
    - Any failed decrement rolls back every decrement and the status change
      (OutOfStockError lists every short component or product)
    - Cancelling from IN_PREPARATION restores exactly the reserved quantities
    - Component lines and product lines share one reserve/release path; each line
      moves the stock counter of the row it points at
    - Status writes are compare-and-set; a lost race re-reads the order and
      re-plans the event against its new state (bounded by MAX_STATUS_ATTEMPTS)
    - Every applied transition is logged at INFO with order_id/from_state/to_state

Design Decisions:
    - Duplicate component or product ids in one request merge into one line
      (quantities summed)
    - Items reference a catalog component or a pre-built product; the unit price
      is snapshotted at creation
    - A protocol clash at insert (another process took the code) redraws the code
      inside the protocol budget instead of failing the request
    - No shipping tier for the destination: order still created with zero shipping,
      WARNING logged so the gap in the shipping table gets fixed
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from decimal import Decimal
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from praxis.core.catalog import CatalogSnapshot, Component, Product
from praxis.core.compatibility import validate_configuration
from praxis.core.domain_types import (
    ComponentId, CustomerId, LineKind, OrderEvent, OrderId, OrderStatus, ProductId,
    ProtocolKind, StockEffect,
)
from praxis.core.errors import (
    ConcurrencyError, ConfigurationInvalidError, ErrorContext, OutOfStockError,
    ResourceNotFoundError, ValidationError,
)
from praxis.core.money import ZERO
from praxis.core.order_lifecycle import plan_order_transition
from praxis.core.pricing import PricingItem, price_order
from praxis.core.repository_protocols import Clock
from praxis.infrastructure.business_tables import BusinessTables
from praxis.infrastructure.clock import utc_now
from praxis.infrastructure.repositories import (
    ComponentRepository, OrderRepository, ProductRepository, SqlProtocolRegistry,
)
from praxis.models.order import Order, OrderItem
from praxis.services.configurator_service import resolve_selection
from praxis.services.protocol_generator import ProtocolGenerator

logger = logging.getLogger(__name__)

MAX_STATUS_ATTEMPTS = 3


@dataclass(frozen=True)
class OrderLine:
    item_id: UUID
    quantity: int
    kind: LineKind = LineKind.COMPONENT


def merge_lines(lines: list[OrderLine]) -> list[OrderLine]:
    """Sum quantities per component or product, keeping first-seen order."""
    merged: dict[tuple[LineKind, UUID], int] = {}
    for line in lines:
        if not isinstance(line.quantity, int) or line.quantity <= 0:
            raise ValidationError("Item quantity must be a positive integer", "quantity")
        key = (line.kind, line.item_id)
        merged[key] = merged.get(key, 0) + line.quantity
    return [OrderLine(item_id, qty, kind) for (kind, item_id), qty in merged.items()]


class OrderService:
    """Orders: create, checkout, transition, read."""

    def __init__(
        self,
        db: AsyncSession,
        tables: BusinessTables,
        company_id: UUID,
        clock: Clock = utc_now,
        protocols: ProtocolGenerator | None = None,
    ):
        self.db = db
        self.tables = tables
        self.company_id = company_id
        self.clock = clock
        self.components = ComponentRepository(db)
        self.products = ProductRepository(db)
        self.orders = OrderRepository(db)
        self.protocols = protocols or ProtocolGenerator(SqlProtocolRegistry(db), clock)

    # ─── Creation ───────────────────────────────────────────────────

    async def create_order(
        self,
        customer_id: CustomerId,
        lines: list[OrderLine],
        shipping_address: Mapping,
        discount: Decimal = ZERO,
        locale: str | None = None,
    ) -> Order:
        lines = merge_lines(lines)
        snapshot = await self.components.load_snapshot()
        products = await self.products.load(
            ProductId(line.item_id) for line in lines if line.kind is LineKind.PRODUCT
        )
        return await self._create(
            snapshot, products, customer_id, lines, shipping_address, discount, locale,
        )

    async def checkout_configuration(
        self,
        customer_id: CustomerId,
        selection: Mapping[str, UUID],
        shipping_address: Mapping,
        discount: Decimal = ZERO,
        locale: str | None = None,
    ) -> Order:
        """Turn a configuration into an order. Rejects invalid or out-of-stock builds."""
        snapshot = await self.components.load_snapshot()
        result = validate_configuration(
            resolve_selection(snapshot, selection), snapshot, self.tables.rules,
        )
        if not result.is_valid:
            raise ConfigurationInvalidError([issue.to_dict() for issue in result.errors])
        if result.warnings:
            raise ConfigurationInvalidError([issue.to_dict() for issue in result.warnings])

        lines = [OrderLine(c.id, 1) for c in result.configuration.components]
        return await self._create(
            snapshot, {}, customer_id, lines, shipping_address, discount, locale,
        )

    async def _create(
        self,
        snapshot: CatalogSnapshot,
        products: Mapping[ProductId, Product],
        customer_id: CustomerId,
        lines: list[OrderLine],
        shipping_address: Mapping,
        discount: Decimal,
        locale: str | None,
    ) -> Order:
        if not shipping_address:
            raise ValidationError("Shipping address is required", "shipping_address")
        sold = [self._orderable(snapshot, products, line) for line in lines]

        zone = self.tables.shipping.zone_for(shipping_address.get("country"))
        locale = locale or self.tables.default_locale
        breakdown = price_order(
            (
                PricingItem(item.price, line.quantity, item.weight_kg)
                for item, line in zip(sold, lines)
            ),
            zone, locale, self.tables.tax, self.tables.shipping, discount,
        )
        if not breakdown.shipping_tier_matched:
            logger.warning(
                f"No shipping tier covers zone {zone}; shipping set to 0",
                extra={"path": "create_order"},
            )

        def build(protocol: str) -> Order:
            return Order(
                protocol=protocol,
                company_id=self.company_id,
                customer_id=customer_id,
                status=OrderStatus.PENDING.value,
                subtotal=breakdown.subtotal,
                shipping_cost=breakdown.shipping_cost,
                tax_amount=breakdown.tax_amount,
                discount_amount=breakdown.discount_amount,
                total=breakdown.total,
                shipping_address=dict(shipping_address),
                destination_zone=zone,
                locale=locale,
                items=[
                    OrderItem(
                        position=position,
                        component_id=item.id if line.kind is LineKind.COMPONENT else None,
                        product_id=item.id if line.kind is LineKind.PRODUCT else None,
                        description=item.name,
                        quantity=line.quantity,
                        unit_price=item.price,
                        subtotal=PricingItem(item.price, line.quantity).line_total,
                    )
                    for position, (item, line) in enumerate(zip(sold, lines))
                ],
            )

        order = await self.protocols.insert_with_protocol(self.db, ProtocolKind.ORDER, build)
        logger.info(
            f"Order {order.protocol} created, total {breakdown.total}",
            extra={"order_id": str(order.id), "protocol": order.protocol},
        )
        return order

    @staticmethod
    def _orderable(
        snapshot: CatalogSnapshot,
        products: Mapping[ProductId, Product],
        line: OrderLine,
    ) -> Component | Product:
        if line.kind is LineKind.PRODUCT:
            item = products.get(ProductId(line.item_id))
        else:
            item = snapshot.component(ComponentId(line.item_id))
        if item is None:
            raise ValidationError(f"Unknown {line.kind.value} {line.item_id}", "items")
        if not item.is_active:
            raise ValidationError(f"{item.name} is no longer sold", "items")
        if item.stock_quantity < line.quantity:
            raise ValidationError(
                f"Only {item.stock_quantity} of {item.name} in stock", "items",
            )
        return item

    # ─── Lifecycle ──────────────────────────────────────────────────

    async def transition(
        self, order_id: OrderId, event: OrderEvent, tracking_code: str | None = None,
    ) -> Order:
        """Apply one lifecycle event. Raises InvalidTransitionError, OutOfStockError."""
        context = ErrorContext(order_id=str(order_id))
        for attempt in range(1, MAX_STATUS_ATTEMPTS + 1):
            order = await self.orders.get(order_id, for_update=True)
            if order is None:
                raise ResourceNotFoundError("Order", str(order_id), context)
            current = OrderStatus(order.status)
            plan = plan_order_transition(current, event, tracking_code)

            fields: dict[str, object] = {}
            if plan.timestamp_field:
                fields[plan.timestamp_field] = self.clock()
            if plan.requires_tracking_code:
                fields["tracking_code"] = tracking_code.strip()

            if not await self.orders.compare_and_set_status(
                order_id, current, plan.target, **fields,
            ):
                await self.db.rollback()
                logger.warning(
                    f"Order {order_id} changed concurrently, re-evaluating",
                    extra={"order_id": str(order_id), "event": event.value, "attempt": attempt},
                )
                continue

            items = [(i.kind, i.item_id, i.quantity) for i in order.items]
            if plan.stock_effect is StockEffect.RESERVE:
                await self._reserve(items, context)
            elif plan.stock_effect is StockEffect.RELEASE:
                for kind, item_id, quantity in items:
                    await self._stock(kind).increment_stock(item_id, quantity)

            await self.db.commit()
            await self.db.refresh(order)
            logger.info(
                f"Order {order.protocol}: {current.value} -> {plan.target.value}",
                extra={
                    "order_id": str(order_id), "protocol": order.protocol,
                    "event": event.value, "from_state": current.value,
                    "to_state": plan.target.value,
                },
            )
            return order

        raise ConcurrencyError(
            f"Order {order_id} kept changing; gave up after {MAX_STATUS_ATTEMPTS} attempts",
            context,
        )

    async def _reserve(
        self, items: list[tuple[LineKind, UUID, int]], context: ErrorContext,
    ) -> None:
        short = [
            str(item_id)
            for kind, item_id, quantity in items
            if not await self._stock(kind).try_decrement_stock(item_id, quantity)
        ]
        if short:
            await self.db.rollback()
            logger.warning(
                f"Stock reservation failed for {len(short)} item(s)",
                extra={"order_id": context.order_id, "error_code": "OUT_OF_STOCK"},
            )
            raise OutOfStockError(short, context)

    def _stock(self, kind: LineKind) -> ComponentRepository | ProductRepository:
        return self.products if kind is LineKind.PRODUCT else self.components

    async def get(self, order_id: OrderId) -> Order:
        order = await self.orders.get(order_id)
        if order is None:
            raise ResourceNotFoundError(
                "Order", str(order_id), ErrorContext(order_id=str(order_id)),
            )
        return order
