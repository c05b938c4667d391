"""Boundary Protocols: contracts between core and shell.

Invariants:
    - Core NEVER imports from shell; dependency arrows point inward only
    - All IO operations accessed through Protocol types
    - Implementations provided by shell via dependency injection
    - Stock changes are conditional single-statement updates, never read-then-write
    - Status changes are compare-and-set on the expected current status

Design Decisions:
    - Protocol over ABC: structural subtyping, no inheritance hierarchy
    - Async in Protocol: implementations do IO, but the core functions that
      decide outcomes are never async; the shell orchestrates the awaits
"""

from collections.abc import Iterable
from datetime import datetime
from typing import Protocol

from praxis.core.catalog import CatalogSnapshot, Product
from praxis.core.domain_types import (
    ComponentId, OrderId, OrderStatus, ProductId, ProtocolKind, TicketId, TicketStatus,
)


class Clock(Protocol):
    """Returns the current timezone-aware UTC timestamp."""
    def __call__(self) -> datetime: ...


class ComponentRepository(Protocol):
    """Contract for the component catalog and its stock counters."""
    async def load_snapshot(self) -> CatalogSnapshot: ...
    async def try_decrement_stock(
        self, component_id: ComponentId, quantity: int,
    ) -> bool: ...
    async def increment_stock(
        self, component_id: ComponentId, quantity: int,
    ) -> None: ...


class ProductRepository(Protocol):
    """Contract for pre-built products and their stock counters."""
    async def load(self, product_ids: Iterable[ProductId]) -> dict[ProductId, Product]: ...
    async def try_decrement_stock(self, product_id: ProductId, quantity: int) -> bool: ...
    async def increment_stock(self, product_id: ProductId, quantity: int) -> None: ...


class OrderRepository(Protocol):
    """Contract for order persistence."""
    async def get(self, order_id: OrderId, for_update: bool = False) -> object | None: ...
    async def compare_and_set_status(
        self, order_id: OrderId, expected: OrderStatus, new: OrderStatus,
        **fields: object,
    ) -> bool: ...


class TicketRepository(Protocol):
    """Contract for service ticket persistence."""
    async def get(self, ticket_id: TicketId, for_update: bool = False) -> object | None: ...
    async def compare_and_set_status(
        self, ticket_id: TicketId, expected: TicketStatus, new: TicketStatus,
        **fields: object,
    ) -> bool: ...


class ProtocolRegistry(Protocol):
    """Answers whether a protocol code is already taken for a kind."""
    async def protocol_exists(self, kind: ProtocolKind, code: str) -> bool: ...
