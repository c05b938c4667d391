"""Configurator Service: loads the catalog and runs the compatibility resolver.

Invariants:
    - Read-only: never writes, never commits
    - The resolver sees one CatalogSnapshot per call; selection ids are resolved
      against that same snapshot
    - Unknown component ids are a ValidationError naming the slot, not a resolver issue

Design Decisions:
    - resolve_selection exported for OrderService.checkout_configuration (same
      lookup rules on both paths)
"""

import logging
from collections.abc import Mapping
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from praxis.core.catalog import CatalogSnapshot, Component, ComponentType, Product
from praxis.core.compatibility import ConfigurationResult, validate_configuration
from praxis.core.domain_types import ComponentId
from praxis.core.errors import ValidationError
from praxis.infrastructure.business_tables import BusinessTables
from praxis.infrastructure.repositories import ComponentRepository, ProductRepository

logger = logging.getLogger(__name__)


def resolve_selection(
    snapshot: CatalogSnapshot, selection: Mapping[str, UUID],
) -> dict[str, Component]:
    """Map slot -> component id onto catalog components. Raises ValidationError."""
    if not selection:
        raise ValidationError("Selection cannot be empty", "selection")
    resolved: dict[str, Component] = {}
    for slot, component_id in selection.items():
        component = snapshot.component(ComponentId(component_id))
        if component is None:
            raise ValidationError(
                f"Unknown component {component_id} for slot {slot}",
                f"selection.{slot}",
            )
        resolved[slot] = component
    return resolved


class ConfiguratorService:
    """Configuration validation plus component and product listings."""

    def __init__(self, db: AsyncSession, tables: BusinessTables):
        self.db = db
        self.tables = tables
        self.components = ComponentRepository(db)
        self.products = ProductRepository(db)

    async def validate(self, selection: Mapping[str, UUID]) -> ConfigurationResult:
        snapshot = await self.components.load_snapshot()
        result = validate_configuration(
            resolve_selection(snapshot, selection), snapshot, self.tables.rules,
        )
        logger.info(
            f"Configuration validated: {len(result.errors)} error(s), "
            f"{len(result.warnings)} warning(s)",
        )
        return result

    async def list_components(
        self, type_code: str | None = None,
    ) -> tuple[list[ComponentType], list[Component]]:
        """Component types in slot order plus active components, optionally one type."""
        snapshot = await self.components.load_snapshot()
        if type_code is not None and type_code not in snapshot.types_by_code:
            raise ValidationError(f"Unknown component type {type_code}", "type")
        types = sorted(snapshot.types, key=lambda t: snapshot.sort_key(t.code))
        return types, snapshot.active_components(type_code)

    async def list_products(self) -> list[Product]:
        return await self.products.list_on_sale()
