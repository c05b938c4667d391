"""Business Tables: converts validated settings into the core's read-only lookup tables.

Invariants:
    - Tables are built once per Settings instance and never mutated
    - Core receives plain dataclasses; it never sees pydantic models
"""

from dataclasses import dataclass
from functools import lru_cache

from praxis.config import Settings, get_settings
from praxis.core.compatibility import CompatibilityRule, parse_rules
from praxis.core.pricing import ShippingTable, ShippingTier, TaxTable


@dataclass(frozen=True)
class BusinessTables:
    tax: TaxTable
    shipping: ShippingTable
    rules: tuple[CompatibilityRule, ...]
    default_locale: str


def build_business_tables(settings: Settings) -> BusinessTables:
    return BusinessTables(
        tax=TaxTable(dict(settings.tax_rates)),
        shipping=ShippingTable(
            tiers_by_zone={
                zone: [
                    ShippingTier(t.cost, t.max_items, t.max_weight_kg)
                    for t in tiers
                ]
                for zone, tiers in settings.shipping_tiers.items()
            },
            zone_by_country={
                country.upper(): zone
                for country, zone in settings.shipping_zones.items()
            },
            default_zone=settings.default_shipping_zone,
        ),
        rules=parse_rules(r.model_dump() for r in settings.compatibility_rules),
        default_locale=settings.company_locale,
    )


@lru_cache
def get_business_tables() -> BusinessTables:
    """FastAPI dependency: tables for the process-wide settings."""
    return build_business_tables(get_settings())
