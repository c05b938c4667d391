"""Order Routes: creation, configurator checkout, lifecycle transitions, reads.

Invariants:
    - Routes only translate HTTP <-> service calls; every rule lives in OrderService
    - Errors surface through the global PraxisError handler (404/409/422 envelopes)
"""

from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from praxis.config import Settings, get_settings
from praxis.core.domain_types import CustomerId, OrderId
from praxis.infrastructure.business_tables import BusinessTables, get_business_tables
from praxis.infrastructure.database import get_db
from praxis.infrastructure.repositories import SqlProtocolRegistry
from praxis.schemas.order import (
    CheckoutRequest, OrderCreate, OrderResponse, OrderTransitionRequest,
)
from praxis.services.order_service import OrderLine, OrderService
from praxis.services.protocol_generator import ProtocolGenerator

router = APIRouter(prefix="/api/v1/orders", tags=["orders"])


def get_order_service(
    db: AsyncSession = Depends(get_db),
    tables: BusinessTables = Depends(get_business_tables),
    settings: Settings = Depends(get_settings),
) -> OrderService:
    protocols = ProtocolGenerator(
        SqlProtocolRegistry(db), max_attempts=settings.protocol_max_attempts,
    )
    return OrderService(db, tables, settings.company_id, protocols=protocols)


@router.post("", response_model=OrderResponse, status_code=status.HTTP_201_CREATED)
async def create_order(
    body: OrderCreate, service: OrderService = Depends(get_order_service),
):
    """Create a PENDING order from component and/or pre-built product lines."""
    return await service.create_order(
        CustomerId(body.customer_id),
        [OrderLine(line.item_id, line.quantity, line.kind) for line in body.items],
        body.shipping_address.model_dump(),
        body.discount,
        body.locale,
    )


@router.post(
    "/checkout", response_model=OrderResponse, status_code=status.HTTP_201_CREATED,
)
async def checkout_configuration(
    body: CheckoutRequest, service: OrderService = Depends(get_order_service),
):
    """Create a PENDING order from a valid, fully stocked configuration."""
    return await service.checkout_configuration(
        CustomerId(body.customer_id),
        body.selection,
        body.shipping_address.model_dump(),
        body.discount,
        body.locale,
    )


@router.post("/{order_id}/transitions", response_model=OrderResponse)
async def transition_order(
    order_id: UUID,
    body: OrderTransitionRequest,
    service: OrderService = Depends(get_order_service),
):
    return await service.transition(OrderId(order_id), body.event, body.tracking_code)


@router.get("/{order_id}", response_model=OrderResponse)
async def get_order(
    order_id: UUID, service: OrderService = Depends(get_order_service),
):
    return await service.get(OrderId(order_id))
