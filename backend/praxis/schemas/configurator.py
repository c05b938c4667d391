"""Configurator Schemas: configuration validation requests, component and product listings.

Invariants:
    - ConfigurationRequest.selection maps slot code -> component id, at least one entry
    - ConfigurationResponse.total_price is present iff the configuration is valid
    - Issues carry kind + message plus the ids needed to highlight them in the UI
"""

from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, Field

from praxis.core.catalog import Component, ComponentType, Product
from praxis.core.compatibility import ConfigurationResult


class ConfigurationRequest(BaseModel):
    selection: dict[str, UUID] = Field(min_length=1)


class IssueOut(BaseModel):
    kind: str
    message: str
    type_code: str | None = None
    component_id: str | None = None
    component_a: str | None = None
    component_b: str | None = None
    rule: str | None = None


class ComponentOut(BaseModel):
    id: UUID
    type_code: str
    name: str
    price: Decimal
    stock_quantity: int
    in_stock: bool
    compatibility_tags: dict[str, str]

    @classmethod
    def from_component(cls, component: Component) -> "ComponentOut":
        return cls(
            id=component.id,
            type_code=component.type_code,
            name=component.name,
            price=component.price,
            stock_quantity=component.stock_quantity,
            in_stock=component.in_stock,
            compatibility_tags=dict(component.compatibility_tags),
        )


class ComponentTypeOut(BaseModel):
    code: str
    name: str
    is_required: bool
    sort_order: int

    @classmethod
    def from_type(cls, component_type: ComponentType) -> "ComponentTypeOut":
        return cls(
            code=component_type.code,
            name=component_type.name,
            is_required=component_type.is_required,
            sort_order=component_type.sort_order,
        )


class ProductOut(BaseModel):
    """Pre-built PC as listed in the storefront."""
    id: UUID
    sku: str
    name: str
    price: Decimal
    stock_quantity: int
    in_stock: bool
    is_configurable: bool

    @classmethod
    def from_product(cls, product: Product) -> "ProductOut":
        return cls(
            id=product.id,
            sku=product.sku,
            name=product.name,
            price=product.price,
            stock_quantity=product.stock_quantity,
            in_stock=product.in_stock,
            is_configurable=product.is_configurable,
        )


class CatalogResponse(BaseModel):
    types: list[ComponentTypeOut]
    components: list[ComponentOut]


class ConfigurationResponse(BaseModel):
    """Resolver verdict: errors block the build, warnings only block checkout."""
    valid: bool
    orderable: bool
    total_price: Decimal | None = None
    components: list[ComponentOut] = []
    errors: list[IssueOut] = []
    warnings: list[IssueOut] = []

    @classmethod
    def from_result(cls, result: ConfigurationResult) -> "ConfigurationResponse":
        configuration = result.configuration
        return cls(
            valid=result.is_valid,
            orderable=result.is_orderable,
            total_price=configuration.total_price if configuration else None,
            components=[
                ComponentOut.from_component(c)
                for c in (configuration.components if configuration else ())
            ],
            errors=[IssueOut(**issue.to_dict()) for issue in result.errors],
            warnings=[IssueOut(**issue.to_dict()) for issue in result.warnings],
        )
