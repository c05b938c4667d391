"""Ticket Schemas: ticket intake, transitions, field updates and ticket views.

Invariants:
    - TicketCreate.symptoms: 1-5000 chars, stripped, non-empty
    - TicketUpdate must change at least one of priority, diagnosis, solution
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from praxis.core.domain_types import TicketEvent, TicketPriority, TicketStatus


class TicketCreate(BaseModel):
    customer_id: UUID
    service_id: UUID | None = None
    symptoms: str = Field(min_length=1, max_length=5000)
    priority: TicketPriority = TicketPriority.NORMAL
    equipment_info: str | None = Field(None, max_length=2000)

    @field_validator("symptoms")
    @classmethod
    def strip_symptoms(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("symptoms cannot be empty or whitespace")
        return v


class TicketTransitionRequest(BaseModel):
    event: TicketEvent
    diagnosis: str | None = Field(None, max_length=5000)
    solution: str | None = Field(None, max_length=5000)


class TicketUpdate(BaseModel):
    priority: TicketPriority | None = None
    diagnosis: str | None = Field(None, max_length=5000)
    solution: str | None = Field(None, max_length=5000)

    @model_validator(mode="after")
    def require_change(self) -> "TicketUpdate":
        if self.priority is None and self.diagnosis is None and self.solution is None:
            raise ValueError("at least one of priority, diagnosis, solution is required")
        return self


class TicketResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    protocol: str
    customer_id: UUID
    service_id: UUID | None = None
    status: TicketStatus
    priority: TicketPriority
    equipment_info: str | None = None
    symptoms: str
    diagnosis: str | None = None
    solution: str | None = None
    created_at: datetime
    updated_at: datetime
    closed_at: datetime | None = None
