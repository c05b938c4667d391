"""Order Lifecycle: the order state machine as an explicit transition table.

Invariants:
    - ORDER_TRANSITIONS is the single source of truth; no transition exists outside it
    - DELIVERED and CANCELLED are sinks: nothing leaves them
    - Only PAID -> IN_PREPARATION reserves stock; only cancelling from IN_PREPARATION releases it
    - plan_order_transition is PURE: returns a plan, the shell applies it atomically
    - A rejected plan leaves the order untouched (no partial state)
"""

from dataclasses import dataclass

from praxis.core.domain_types import OrderEvent, OrderStatus, StockEffect
from praxis.core.errors import InvalidTransitionError, ValidationError


@dataclass(frozen=True)
class OrderTransition:
    """Row of the transition table: target state, timestamp to stamp, stock effect."""
    target: OrderStatus
    timestamp_field: str | None = None
    stock_effect: StockEffect = StockEffect.NONE
    requires_tracking_code: bool = False


ORDER_TRANSITIONS: dict[tuple[OrderStatus, OrderEvent], OrderTransition] = {
    (OrderStatus.PENDING, OrderEvent.CONFIRM_PAYMENT): OrderTransition(
        OrderStatus.PAID, "paid_at",
    ),
    (OrderStatus.PAID, OrderEvent.BEGIN_FULFILLMENT): OrderTransition(
        OrderStatus.IN_PREPARATION, stock_effect=StockEffect.RESERVE,
    ),
    (OrderStatus.IN_PREPARATION, OrderEvent.DISPATCH): OrderTransition(
        OrderStatus.SHIPPED, "shipped_at", requires_tracking_code=True,
    ),
    (OrderStatus.SHIPPED, OrderEvent.CONFIRM_DELIVERY): OrderTransition(
        OrderStatus.DELIVERED, "delivered_at",
    ),
    (OrderStatus.PENDING, OrderEvent.CANCEL): OrderTransition(
        OrderStatus.CANCELLED, "cancelled_at",
    ),
    (OrderStatus.PAID, OrderEvent.CANCEL): OrderTransition(
        OrderStatus.CANCELLED, "cancelled_at",
    ),
    (OrderStatus.IN_PREPARATION, OrderEvent.CANCEL): OrderTransition(
        OrderStatus.CANCELLED, "cancelled_at", StockEffect.RELEASE,
    ),
}

TERMINAL_ORDER_STATES: frozenset[OrderStatus] = frozenset(
    {OrderStatus.DELIVERED, OrderStatus.CANCELLED},
)


def allowed_order_events(status: OrderStatus) -> list[OrderEvent]:
    """Events the table accepts from a state, in declaration order."""
    return [event for (source, event) in ORDER_TRANSITIONS if source == status]


def plan_order_transition(
    status: OrderStatus,
    event: OrderEvent,
    tracking_code: str | None = None,
) -> OrderTransition:
    """Look up (status, event). Raises InvalidTransitionError or ValidationError."""
    transition = ORDER_TRANSITIONS.get((status, event))
    if transition is None:
        raise InvalidTransitionError(status.value, event.value)
    if transition.requires_tracking_code and not (tracking_code and tracking_code.strip()):
        raise ValidationError("Dispatch requires a tracking code", "tracking_code")
    return transition
