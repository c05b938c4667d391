"""Order Schemas: order creation, checkout, transitions and order views.

Invariants:
    - Quantities are positive integers; discounts are non-negative Decimals
    - Each order line names exactly one of component_id / product_id
    - shipping_address.country is an ISO 3166-1 alpha-2 code (upper-cased)
    - Transition requests carry an OrderEvent; tracking_code only matters for dispatch
"""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from praxis.core.domain_types import LineKind, OrderEvent, OrderStatus


class ShippingAddress(BaseModel):
    recipient: str = Field(min_length=1, max_length=200)
    street: str = Field(min_length=1, max_length=200)
    city: str = Field(min_length=1, max_length=120)
    postal_code: str = Field(min_length=1, max_length=20)
    country: str = Field(min_length=2, max_length=2)

    @field_validator("country")
    @classmethod
    def upper_country(cls, v: str) -> str:
        v = v.strip().upper()
        if not v.isalpha():
            raise ValueError("country must be a two-letter code")
        return v


class OrderLineIn(BaseModel):
    """One line: a configurator component or a pre-built product, never both."""
    component_id: UUID | None = None
    product_id: UUID | None = None
    quantity: int = Field(gt=0, le=100)

    @model_validator(mode="after")
    def exactly_one_target(self) -> "OrderLineIn":
        if (self.component_id is None) == (self.product_id is None):
            raise ValueError("give exactly one of component_id or product_id")
        return self

    @property
    def kind(self) -> LineKind:
        return LineKind.PRODUCT if self.product_id is not None else LineKind.COMPONENT

    @property
    def item_id(self) -> UUID:
        return self.product_id if self.product_id is not None else self.component_id


class OrderCreate(BaseModel):
    customer_id: UUID
    items: list[OrderLineIn] = Field(min_length=1)
    shipping_address: ShippingAddress
    discount: Decimal = Field(Decimal("0"), ge=0, decimal_places=2)
    locale: str | None = Field(None, max_length=10)


class CheckoutRequest(BaseModel):
    """Checkout of a configurator build: one unit per selected component."""
    customer_id: UUID
    selection: dict[str, UUID] = Field(min_length=1)
    shipping_address: ShippingAddress
    discount: Decimal = Field(Decimal("0"), ge=0, decimal_places=2)
    locale: str | None = Field(None, max_length=10)


class OrderTransitionRequest(BaseModel):
    event: OrderEvent
    tracking_code: str | None = Field(None, max_length=80)


class OrderItemOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    component_id: UUID | None = None
    product_id: UUID | None = None
    description: str
    quantity: int
    unit_price: Decimal
    subtotal: Decimal


class OrderResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    protocol: str
    customer_id: UUID
    status: OrderStatus
    subtotal: Decimal
    shipping_cost: Decimal
    tax_amount: Decimal
    discount_amount: Decimal
    total: Decimal
    destination_zone: str
    locale: str
    tracking_code: str | None = None
    shipping_address: dict | None = None
    items: list[OrderItemOut]
    created_at: datetime
    paid_at: datetime | None = None
    shipped_at: datetime | None = None
    delivered_at: datetime | None = None
    cancelled_at: datetime | None = None
