"""Catalog Snapshot: immutable view of component types and components used by the resolver,
plus the pre-built products sold next to them.

Invariants:
    - Snapshot objects are frozen; the resolver never mutates the catalog
    - ComponentType.code is unique within a snapshot
    - Component.price is a 2dp Decimal >= 0; stock_quantity is an int >= 0
    - Inactive components stay in the snapshot so historical lookups still resolve
    - Product.price and stock_quantity follow the same rules as Component; only
      ACTIVE products are sellable

Design Decisions:
    - The shell builds a snapshot from ORM rows once per request; core sees plain dataclasses
    - compatibility_tags is a str->str mapping; numeric meaning is parsed by the rule that reads it
"""

from dataclasses import dataclass, field
from decimal import Decimal
from types import MappingProxyType
from typing import Mapping

from praxis.core.domain_types import ComponentId, ProductId, ProductStatus
from praxis.core.money import to_money


@dataclass(frozen=True)
class ComponentType:
    """A slot in a PC configuration (CPU, MOTHERBOARD, PSU, ...)."""
    code: str
    name: str
    is_required: bool
    sort_order: int = 0


@dataclass(frozen=True)
class Component:
    """A purchasable part tagged with compatibility attributes."""
    id: ComponentId
    type_code: str
    name: str
    price: Decimal
    stock_quantity: int
    compatibility_tags: Mapping[str, str] = field(default_factory=dict)
    is_active: bool = True
    weight_kg: Decimal | None = None

    def __post_init__(self):
        if self.stock_quantity < 0:
            raise ValueError(f"Component {self.id} has negative stock")
        price = to_money(self.price)
        if price < 0:
            raise ValueError(f"Component {self.id} has negative price")
        object.__setattr__(self, "price", price)
        object.__setattr__(
            self, "compatibility_tags",
            MappingProxyType({str(k): str(v) for k, v in self.compatibility_tags.items()}),
        )

    def tag(self, key: str) -> str | None:
        return self.compatibility_tags.get(key)

    @property
    def in_stock(self) -> bool:
        return self.stock_quantity > 0


@dataclass(frozen=True)
class CatalogSnapshot:
    """Component types and components as read at one point in time."""
    types: tuple[ComponentType, ...]
    components: tuple[Component, ...] = ()

    @property
    def types_by_code(self) -> dict[str, ComponentType]:
        return {t.code: t for t in self.types}

    @property
    def required_types(self) -> list[ComponentType]:
        return sorted(
            (t for t in self.types if t.is_required),
            key=lambda t: (t.sort_order, t.code),
        )

    def sort_key(self, type_code: str) -> tuple[int, str]:
        """Ordering used for every per-slot listing: sort_order, then code."""
        component_type = self.types_by_code.get(type_code)
        return (component_type.sort_order if component_type else 1_000_000, type_code)

    def component(self, component_id: ComponentId) -> Component | None:
        for c in self.components:
            if c.id == component_id:
                return c
        return None

    def active_components(self, type_code: str | None = None) -> list[Component]:
        """Components eligible for new configurations, in slot order then name."""
        eligible = [
            c for c in self.components
            if c.is_active and (type_code is None or c.type_code == type_code)
        ]
        return sorted(eligible, key=lambda c: (self.sort_key(c.type_code), c.name))


@dataclass(frozen=True)
class Product:
    """A pre-built PC sold as one unit, with its own price and stock."""
    id: ProductId
    sku: str
    name: str
    price: Decimal
    stock_quantity: int
    status: ProductStatus = ProductStatus.ACTIVE
    is_configurable: bool = False
    weight_kg: Decimal | None = None

    def __post_init__(self):
        if self.stock_quantity < 0:
            raise ValueError(f"Product {self.sku} has negative stock")
        price = to_money(self.price)
        if price < 0:
            raise ValueError(f"Product {self.sku} has negative price")
        object.__setattr__(self, "price", price)
        object.__setattr__(self, "status", ProductStatus(self.status))

    @property
    def is_active(self) -> bool:
        return self.status is ProductStatus.ACTIVE

    @property
    def in_stock(self) -> bool:
        return self.stock_quantity > 0
