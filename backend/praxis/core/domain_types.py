"""Domain Types: identity wrappers and closed status enums for orders and tickets.

Invariants:
    - OrderId, TicketId, ComponentId, ProductId, CustomerId wrap UUIDs; never pass bare UUIDs in domain logic
    - Every status, event and priority is a str Enum; no raw string matching in core
    - OrderStatus and TicketStatus are closed variant sets; transitions live in their lifecycle modules

Design Decisions:
    - NewType over dataclass wrappers: zero runtime cost, still checked by mypy
    - str Enums: the value is what lands in the DB status column and in JSON responses
"""

from enum import Enum
from typing import NewType
from uuid import UUID


# ─── Identity Types ──────────────────────────────────────────────

OrderId = NewType("OrderId", UUID)
TicketId = NewType("TicketId", UUID)
ComponentId = NewType("ComponentId", UUID)
ProductId = NewType("ProductId", UUID)
CustomerId = NewType("CustomerId", UUID)
CompanyId = NewType("CompanyId", UUID)

ProtocolCode = NewType("ProtocolCode", str)


# ─── Catalog ─────────────────────────────────────────────────────

class ProductStatus(str, Enum):
    """Storefront visibility of a pre-built product; only ACTIVE is sold."""
    DRAFT = "DRAFT"
    ACTIVE = "ACTIVE"
    ARCHIVED = "ARCHIVED"


class LineKind(str, Enum):
    """What an order line points at: a configurator part or a pre-built product."""
    COMPONENT = "component"
    PRODUCT = "product"


# ─── Orders ──────────────────────────────────────────────────────

class OrderStatus(str, Enum):
    """Order fulfillment states; maps to orders.status."""
    PENDING = "PENDING"
    PAID = "PAID"
    IN_PREPARATION = "IN_PREPARATION"
    SHIPPED = "SHIPPED"
    DELIVERED = "DELIVERED"
    CANCELLED = "CANCELLED"


class OrderEvent(str, Enum):
    """Triggers accepted by the order state machine."""
    CONFIRM_PAYMENT = "confirm_payment"
    BEGIN_FULFILLMENT = "begin_fulfillment"
    DISPATCH = "dispatch"
    CONFIRM_DELIVERY = "confirm_delivery"
    CANCEL = "cancel"


# ─── Service Tickets ─────────────────────────────────────────────

class TicketStatus(str, Enum):
    """Repair ticket states; maps to service_tickets.status."""
    OPENED = "OPENED"
    DIAGNOSING = "DIAGNOSING"
    WAITING_CUSTOMER = "WAITING_CUSTOMER"
    IN_REPAIR = "IN_REPAIR"
    READY = "READY"
    CLOSED = "CLOSED"
    CANCELLED = "CANCELLED"


class TicketEvent(str, Enum):
    """Triggers accepted by the ticket state machine."""
    START_DIAGNOSIS = "start_diagnosis"
    AWAIT_CUSTOMER = "await_customer"
    START_REPAIR = "start_repair"
    MARK_READY = "mark_ready"
    CLOSE = "close"
    CANCEL = "cancel"


class TicketPriority(str, Enum):
    """Dispatch priority. Independent of status; any value is valid in any state."""
    LOW = "LOW"
    NORMAL = "NORMAL"
    HIGH = "HIGH"
    URGENT = "URGENT"


# ─── Protocols ───────────────────────────────────────────────────

class ProtocolKind(str, Enum):
    """Entity kinds that receive a human-facing protocol code."""
    ORDER = "order"
    TICKET = "ticket"


class StockEffect(str, Enum):
    """What an order transition does to the stock of every line (component or product)."""
    NONE = "none"
    RESERVE = "reserve"
    RELEASE = "release"
