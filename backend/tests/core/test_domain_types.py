"""Domain Types: verifies identity wrappers and closed enum sets.

Tests:
    - NewType wrappers exist and are callable
    - Status enums have exactly the documented members and serialize to their value
    - Events are lowercase wire values
"""

from uuid import uuid4

from praxis.core.domain_types import (
    OrderId, TicketId, ComponentId, CustomerId, ProtocolCode,
    OrderStatus, OrderEvent, TicketStatus, TicketEvent, TicketPriority,
    ProtocolKind,
)


def test_identity_types_wrap_uuid():
    uid = uuid4()
    assert OrderId(uid) == uid
    assert TicketId(uid) == uid
    assert ComponentId(uid) == uid
    assert CustomerId(uid) == uid


def test_protocol_code_wraps_str():
    assert ProtocolCode("ORD-20261018-ABCDEF") == "ORD-20261018-ABCDEF"


def test_order_status_has_six_states():
    assert {s.value for s in OrderStatus} == {
        "PENDING", "PAID", "IN_PREPARATION", "SHIPPED", "DELIVERED", "CANCELLED",
    }


def test_ticket_status_has_seven_states():
    assert {s.value for s in TicketStatus} == {
        "OPENED", "DIAGNOSING", "WAITING_CUSTOMER", "IN_REPAIR",
        "READY", "CLOSED", "CANCELLED",
    }


def test_ticket_priority_levels():
    assert [p.value for p in TicketPriority] == ["LOW", "NORMAL", "HIGH", "URGENT"]


def test_events_use_lowercase_values():
    assert OrderEvent.CONFIRM_PAYMENT.value == "confirm_payment"
    assert TicketEvent.START_DIAGNOSIS.value == "start_diagnosis"


def test_str_enums_compare_to_plain_strings():
    assert OrderStatus.PAID == "PAID"
    assert ProtocolKind.TICKET == "ticket"
