"""Ticket Routes: intake, lifecycle transitions, technician notes, reads.

Invariants:
    - Routes only translate HTTP <-> service calls; every rule lives in TicketService
    - PATCH never changes status; status moves only through /transitions
"""

from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from praxis.config import Settings, get_settings
from praxis.core.domain_types import CustomerId, TicketId
from praxis.core.ticket_lifecycle import TicketFields
from praxis.infrastructure.database import get_db
from praxis.infrastructure.repositories import SqlProtocolRegistry
from praxis.schemas.ticket import (
    TicketCreate, TicketResponse, TicketTransitionRequest, TicketUpdate,
)
from praxis.services.protocol_generator import ProtocolGenerator
from praxis.services.ticket_service import TicketService

router = APIRouter(prefix="/api/v1/tickets", tags=["tickets"])


def get_ticket_service(
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> TicketService:
    protocols = ProtocolGenerator(
        SqlProtocolRegistry(db), max_attempts=settings.protocol_max_attempts,
    )
    return TicketService(db, settings.company_id, protocols=protocols)


@router.post("", response_model=TicketResponse, status_code=status.HTTP_201_CREATED)
async def create_ticket(
    body: TicketCreate, service: TicketService = Depends(get_ticket_service),
):
    """Open a service ticket (status OPENED, fresh SRV protocol)."""
    return await service.create_ticket(
        CustomerId(body.customer_id),
        body.symptoms,
        body.service_id,
        body.priority,
        body.equipment_info,
    )


@router.post("/{ticket_id}/transitions", response_model=TicketResponse)
async def transition_ticket(
    ticket_id: UUID,
    body: TicketTransitionRequest,
    service: TicketService = Depends(get_ticket_service),
):
    return await service.transition(
        TicketId(ticket_id), body.event, TicketFields(body.diagnosis, body.solution),
    )


@router.patch("/{ticket_id}", response_model=TicketResponse)
async def update_ticket(
    ticket_id: UUID,
    body: TicketUpdate,
    service: TicketService = Depends(get_ticket_service),
):
    return await service.update_fields(
        TicketId(ticket_id), TicketFields(body.diagnosis, body.solution), body.priority,
    )


@router.get("/{ticket_id}", response_model=TicketResponse)
async def get_ticket(
    ticket_id: UUID, service: TicketService = Depends(get_ticket_service),
):
    return await service.get(TicketId(ticket_id))
