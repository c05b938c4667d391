"""ServiceTicket ORM: a repair job from intake to closure.

Invariants:
    - protocol is unique and never rewritten after insert
    - symptoms is non-nullable text
    - status holds a TicketStatus value; priority a TicketPriority value
    - closed_at is set iff status is CLOSED or CANCELLED
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import String, Text, DateTime
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from praxis.db.base import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ServiceTicket(Base):
    """Repair ticket owned by one customer and one company."""
    __tablename__ = "service_tickets"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    protocol: Mapped[str] = mapped_column(String(32), nullable=False, unique=True)
    company_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False)
    customer_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), nullable=False, index=True,
    )
    service_id: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True), nullable=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="OPENED")
    priority: Mapped[str] = mapped_column(String(10), nullable=False, default="NORMAL")
    equipment_info: Mapped[str | None] = mapped_column(Text, nullable=True)
    symptoms: Mapped[str] = mapped_column(Text, nullable=False)
    diagnosis: Mapped[str | None] = mapped_column(Text, nullable=True)
    solution: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow,
    )
    closed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
