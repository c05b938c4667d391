"""Ticket Lifecycle: the repair ticket state machine and field-write rules.

Invariants:
    - TICKET_TRANSITIONS is the single source of truth; DIAGNOSING -> CLOSED is not in it
    - CLOSED and CANCELLED are terminal; CANCEL is accepted from every other state
    - closed_at is stamped exactly on entry to a terminal state
    - diagnosis/solution may only be written once the ticket has entered DIAGNOSING:
      a plain edit needs a work state; an edit riding on an event needs the source
      or the target to be a work state
    - priority is not part of the machine; it can change in any state
"""

from dataclasses import dataclass

from praxis.core.domain_types import TicketEvent, TicketStatus
from praxis.core.errors import InvalidTransitionError, ValidationError


TICKET_TRANSITIONS: dict[tuple[TicketStatus, TicketEvent], TicketStatus] = {
    (TicketStatus.OPENED, TicketEvent.START_DIAGNOSIS): TicketStatus.DIAGNOSING,
    (TicketStatus.WAITING_CUSTOMER, TicketEvent.START_DIAGNOSIS): TicketStatus.DIAGNOSING,
    (TicketStatus.DIAGNOSING, TicketEvent.AWAIT_CUSTOMER): TicketStatus.WAITING_CUSTOMER,
    (TicketStatus.IN_REPAIR, TicketEvent.AWAIT_CUSTOMER): TicketStatus.WAITING_CUSTOMER,
    (TicketStatus.DIAGNOSING, TicketEvent.START_REPAIR): TicketStatus.IN_REPAIR,
    (TicketStatus.WAITING_CUSTOMER, TicketEvent.START_REPAIR): TicketStatus.IN_REPAIR,
    (TicketStatus.IN_REPAIR, TicketEvent.MARK_READY): TicketStatus.READY,
    (TicketStatus.READY, TicketEvent.CLOSE): TicketStatus.CLOSED,
    (TicketStatus.OPENED, TicketEvent.CANCEL): TicketStatus.CANCELLED,
    (TicketStatus.DIAGNOSING, TicketEvent.CANCEL): TicketStatus.CANCELLED,
    (TicketStatus.WAITING_CUSTOMER, TicketEvent.CANCEL): TicketStatus.CANCELLED,
    (TicketStatus.IN_REPAIR, TicketEvent.CANCEL): TicketStatus.CANCELLED,
    (TicketStatus.READY, TicketEvent.CANCEL): TicketStatus.CANCELLED,
}

TERMINAL_TICKET_STATES: frozenset[TicketStatus] = frozenset(
    {TicketStatus.CLOSED, TicketStatus.CANCELLED},
)

# States in which a technician is working the ticket
WORK_STATES: frozenset[TicketStatus] = frozenset({
    TicketStatus.DIAGNOSING,
    TicketStatus.WAITING_CUSTOMER,
    TicketStatus.IN_REPAIR,
    TicketStatus.READY,
})


@dataclass(frozen=True)
class TicketFields:
    """Optional technician notes written alongside (or without) a transition."""
    diagnosis: str | None = None
    solution: str | None = None

    @property
    def is_empty(self) -> bool:
        return self.diagnosis is None and self.solution is None

    @property
    def written_field(self) -> str:
        return "set_diagnosis" if self.diagnosis is not None else "set_solution"


def plan_ticket_transition(status: TicketStatus, event: TicketEvent) -> TicketStatus:
    """Target state for (status, event). Raises InvalidTransitionError."""
    target = TICKET_TRANSITIONS.get((status, event))
    if target is None:
        raise InvalidTransitionError(status.value, event.value)
    return target


def check_field_write(
    source: TicketStatus, fields: TicketFields, target: TicketStatus | None = None,
) -> None:
    """Raise InvalidTransitionError if diagnosis/solution cannot be written now."""
    if fields.is_empty:
        return
    for name, value in (("diagnosis", fields.diagnosis), ("solution", fields.solution)):
        if value is not None and not value.strip():
            raise ValidationError(f"{name} cannot be blank", name)

    if target is None:
        allowed = source in WORK_STATES
    else:
        allowed = source in WORK_STATES or target in WORK_STATES
    if not allowed:
        raise InvalidTransitionError(source.value, fields.written_field)


def enters_terminal(target: TicketStatus) -> bool:
    return target in TERMINAL_TICKET_STATES


def allowed_ticket_events(status: TicketStatus) -> list[TicketEvent]:
    return [event for (source, event) in TICKET_TRANSITIONS if source == status]
