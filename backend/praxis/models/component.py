"""Component Catalog ORM: component types (configuration slots) and purchasable components.

Invariants:
    - ComponentType.code is unique
    - Component.price is Numeric(10, 2) and >= 0; stock_quantity >= 0 (DB check constraints)
    - Inactive components are kept so historical order items still resolve
    - compatibility_tags is a flat str -> str JSON object

Design Decisions:
    - type relationship loaded with selectin: every catalog read needs the slot code
    - specs JSON holds display-only data (clock, capacity...) that rules never read
"""

import uuid
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import (
    String, Integer, Boolean, Numeric, DateTime, JSON, ForeignKey, CheckConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.dialects.postgresql import UUID

from praxis.db.base import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ComponentType(Base):
    """A configuration slot (CPU, MOTHERBOARD, PSU...)."""
    __tablename__ = "config_component_types"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    code: Mapped[str] = mapped_column(String(40), nullable=False, unique=True)
    name: Mapped[str] = mapped_column(String(120), nullable=False)
    sort_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_required: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow,
    )

    components: Mapped[list["Component"]] = relationship(
        "Component", back_populates="type",
    )


class Component(Base):
    """Purchasable part with price, stock and compatibility tags."""
    __tablename__ = "config_components"
    __table_args__ = (
        CheckConstraint("stock_quantity >= 0", name="ck_component_stock_non_negative"),
        CheckConstraint("price >= 0", name="ck_component_price_non_negative"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    type_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("config_component_types.id"),
        nullable=False, index=True,
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    brand: Mapped[str | None] = mapped_column(String(80), nullable=True)
    model: Mapped[str | None] = mapped_column(String(120), nullable=True)
    specs: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    stock_quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    compatibility_tags: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    weight_kg: Mapped[Decimal | None] = mapped_column(Numeric(8, 3), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow,
    )

    type: Mapped["ComponentType"] = relationship(
        "ComponentType", back_populates="components", lazy="selectin",
    )
