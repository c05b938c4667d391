"""Configurator Routes: configuration validation, component and pre-built product browsing.

Invariants:
    - Read-only endpoints; an invalid configuration is a 200 with valid=false
    - Unknown component ids in a selection are a 400 (ValidationError)
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from praxis.infrastructure.business_tables import BusinessTables, get_business_tables
from praxis.infrastructure.database import get_db
from praxis.schemas.configurator import (
    CatalogResponse, ComponentOut, ComponentTypeOut,
    ConfigurationRequest, ConfigurationResponse, ProductOut,
)
from praxis.services.configurator_service import ConfiguratorService

router = APIRouter(prefix="/api/v1", tags=["configurator"])


def get_configurator_service(
    db: AsyncSession = Depends(get_db),
    tables: BusinessTables = Depends(get_business_tables),
) -> ConfiguratorService:
    return ConfiguratorService(db, tables)


@router.post("/configurations/validate", response_model=ConfigurationResponse)
async def validate_configuration(
    body: ConfigurationRequest,
    service: ConfiguratorService = Depends(get_configurator_service),
):
    """Check a slot -> component selection for completeness, compatibility and stock."""
    result = await service.validate(body.selection)
    return ConfigurationResponse.from_result(result)


@router.get("/components", response_model=CatalogResponse)
async def list_components(
    type_code: str | None = Query(None, alias="type", max_length=40),
    service: ConfiguratorService = Depends(get_configurator_service),
):
    """Active components, optionally for one component type."""
    types, components = await service.list_components(type_code)
    return CatalogResponse(
        types=[ComponentTypeOut.from_type(t) for t in types],
        components=[ComponentOut.from_component(c) for c in components],
    )


@router.get("/products", response_model=list[ProductOut])
async def list_products(
    service: ConfiguratorService = Depends(get_configurator_service),
):
    """Pre-built PCs currently on sale (status ACTIVE), by name."""
    return [ProductOut.from_product(p) for p in await service.list_products()]
