"""Ticket Service: service ticket intake, lifecycle transitions and technician notes.

Invariants:
    - Tickets start OPENED with a fresh SRV protocol; symptoms must be non-blank
    - A protocol clash at insert redraws the code inside the protocol budget
    - closed_at is written in the same compare-and-set as the move into CLOSED/CANCELLED
    - diagnosis/solution writes are checked against the status they land on,
      including plain edits (CAS on an unchanged status)
    - A lost race re-reads the ticket and re-plans (bounded by MAX_STATUS_ATTEMPTS)
"""

import logging
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from praxis.core.domain_types import (
    CustomerId, ProtocolKind, TicketEvent, TicketId, TicketPriority, TicketStatus,
)
from praxis.core.errors import (
    ConcurrencyError, ErrorContext, ResourceNotFoundError, ValidationError,
)
from praxis.core.repository_protocols import Clock
from praxis.core.ticket_lifecycle import (
    TicketFields, check_field_write, enters_terminal, plan_ticket_transition,
)
from praxis.infrastructure.clock import utc_now
from praxis.infrastructure.repositories import SqlProtocolRegistry, TicketRepository
from praxis.models.service_ticket import ServiceTicket
from praxis.services.protocol_generator import ProtocolGenerator

logger = logging.getLogger(__name__)

MAX_STATUS_ATTEMPTS = 3


def _field_values(fields: TicketFields) -> dict[str, str]:
    values = {}
    if fields.diagnosis is not None:
        values["diagnosis"] = fields.diagnosis.strip()
    if fields.solution is not None:
        values["solution"] = fields.solution.strip()
    return values


class TicketService:
    """Service tickets: create, transition, annotate, read."""

    def __init__(
        self,
        db: AsyncSession,
        company_id: UUID,
        clock: Clock = utc_now,
        protocols: ProtocolGenerator | None = None,
    ):
        self.db = db
        self.company_id = company_id
        self.clock = clock
        self.tickets = TicketRepository(db)
        self.protocols = protocols or ProtocolGenerator(SqlProtocolRegistry(db), clock)

    async def create_ticket(
        self,
        customer_id: CustomerId,
        symptoms: str,
        service_id: UUID | None = None,
        priority: TicketPriority = TicketPriority.NORMAL,
        equipment_info: str | None = None,
    ) -> ServiceTicket:
        if not symptoms or not symptoms.strip():
            raise ValidationError("Symptoms cannot be blank", "symptoms")

        def build(protocol: str) -> ServiceTicket:
            return ServiceTicket(
                protocol=protocol,
                company_id=self.company_id,
                customer_id=customer_id,
                service_id=service_id,
                status=TicketStatus.OPENED.value,
                priority=priority.value,
                equipment_info=equipment_info,
                symptoms=symptoms.strip(),
            )

        ticket = await self.protocols.insert_with_protocol(
            self.db, ProtocolKind.TICKET, build,
        )
        logger.info(
            f"Ticket {ticket.protocol} opened",
            extra={"ticket_id": str(ticket.id), "protocol": ticket.protocol},
        )
        return ticket

    async def transition(
        self, ticket_id: TicketId, event: TicketEvent, fields: TicketFields | None = None,
    ) -> ServiceTicket:
        """Apply one lifecycle event, optionally writing diagnosis/solution with it."""
        fields = fields or TicketFields()
        for attempt in range(1, MAX_STATUS_ATTEMPTS + 1):
            ticket = await self._get_for_update(ticket_id)
            current = TicketStatus(ticket.status)
            target = plan_ticket_transition(current, event)
            check_field_write(current, fields, target)

            values: dict[str, object] = _field_values(fields)
            if enters_terminal(target):
                values["closed_at"] = self.clock()

            if await self.tickets.compare_and_set_status(ticket_id, current, target, **values):
                await self.db.commit()
                await self.db.refresh(ticket)
                logger.info(
                    f"Ticket {ticket.protocol}: {current.value} -> {target.value}",
                    extra={
                        "ticket_id": str(ticket_id), "protocol": ticket.protocol,
                        "event": event.value, "from_state": current.value,
                        "to_state": target.value,
                    },
                )
                return ticket
            await self._lost_race(ticket_id, attempt)

        raise self._gave_up(ticket_id)

    async def update_fields(
        self,
        ticket_id: TicketId,
        fields: TicketFields | None = None,
        priority: TicketPriority | None = None,
    ) -> ServiceTicket:
        """Write technician notes and/or priority without changing status."""
        fields = fields or TicketFields()
        if fields.is_empty and priority is None:
            raise ValidationError("Nothing to update", "fields")

        for attempt in range(1, MAX_STATUS_ATTEMPTS + 1):
            ticket = await self._get_for_update(ticket_id)
            current = TicketStatus(ticket.status)
            check_field_write(current, fields)

            values: dict[str, object] = _field_values(fields)
            if priority is not None:
                values["priority"] = priority.value

            if await self.tickets.compare_and_set_status(ticket_id, current, current, **values):
                await self.db.commit()
                await self.db.refresh(ticket)
                logger.info(
                    f"Ticket {ticket.protocol} updated: {', '.join(sorted(values))}",
                    extra={"ticket_id": str(ticket_id), "protocol": ticket.protocol},
                )
                return ticket
            await self._lost_race(ticket_id, attempt)

        raise self._gave_up(ticket_id)

    async def get(self, ticket_id: TicketId) -> ServiceTicket:
        ticket = await self.tickets.get(ticket_id)
        if ticket is None:
            raise ResourceNotFoundError(
                "Ticket", str(ticket_id), ErrorContext(ticket_id=str(ticket_id)),
            )
        return ticket

    async def _get_for_update(self, ticket_id: TicketId) -> ServiceTicket:
        ticket = await self.tickets.get(ticket_id, for_update=True)
        if ticket is None:
            raise ResourceNotFoundError(
                "Ticket", str(ticket_id), ErrorContext(ticket_id=str(ticket_id)),
            )
        return ticket

    async def _lost_race(self, ticket_id: TicketId, attempt: int) -> None:
        await self.db.rollback()
        logger.warning(
            f"Ticket {ticket_id} changed concurrently, re-evaluating",
            extra={"ticket_id": str(ticket_id), "attempt": attempt},
        )

    @staticmethod
    def _gave_up(ticket_id: TicketId) -> ConcurrencyError:
        return ConcurrencyError(
            f"Ticket {ticket_id} kept changing; gave up after {MAX_STATUS_ATTEMPTS} attempts",
            ErrorContext(ticket_id=str(ticket_id)),
        )
