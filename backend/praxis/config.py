"""Application Configuration: environment-driven settings via pydantic-settings.

Invariants:
    - All secrets come from environment variables (never hardcoded)
    - get_settings() is cached (lru_cache): single instance per process
    - Business tables (tax, shipping, compatibility rules) are data, overridable
      as JSON in env vars (e.g. TAX_RATES='{"de-AT": "0.20"}')
    - Money-valued settings are Decimal, never float

Design Decisions:
    - Defaults describe the Austrian storefront (de-AT, 20% VAT) so the
      service runs out of the box with docker-compose
"""

from decimal import Decimal
from functools import lru_cache
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ShippingTierSetting(BaseModel):
    cost: Decimal
    max_items: int | None = None
    max_weight_kg: Decimal | None = None


class CompatibilityRuleSetting(BaseModel):
    name: str
    relation: Literal["equals", "sum_at_most"]
    left_key: str
    right_key: str
    left_type: str | None = None
    right_type: str | None = None


class Settings(BaseSettings):
    """Application settings from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # Database
    database_url: str = (
        "postgresql+asyncpg://praxis:praxis@db:5432/praxis"
    )

    @field_validator("database_url", mode="before")
    @classmethod
    def convert_postgres_url(cls, v: str) -> str:
        """Hosting platforms hand out postgresql:// but asyncpg needs postgresql+asyncpg://."""
        if isinstance(v, str) and v.startswith("postgresql://"):
            return v.replace("postgresql://", "postgresql+asyncpg://", 1)
        return v

    database_pool_size: int = 20
    database_max_overflow: int = 10

    # Storefront
    company_id: UUID = UUID("6f1c9a52-3b0e-4c47-9a55-1f2d0c7e8a10")
    company_locale: str = "de-AT"

    # Pricing tables
    tax_rates: dict[str, Decimal] = {
        "de-AT": Decimal("0.20"),
        "de-DE": Decimal("0.19"),
        "en-GB": Decimal("0.20"),
    }
    shipping_zones: dict[str, str] = {
        "AT": "DOMESTIC",
        "DE": "EU",
        "IT": "EU",
        "CZ": "EU",
        "HU": "EU",
        "SI": "EU",
    }
    default_shipping_zone: str = "INTL"
    shipping_tiers: dict[str, list[ShippingTierSetting]] = {
        "DOMESTIC": [
            ShippingTierSetting(cost=Decimal("9.90"), max_items=1),
            ShippingTierSetting(cost=Decimal("14.90"), max_items=5),
            ShippingTierSetting(cost=Decimal("24.90")),
        ],
        "EU": [
            ShippingTierSetting(cost=Decimal("19.90"), max_items=5),
            ShippingTierSetting(cost=Decimal("34.90")),
        ],
    }

    # Configurator
    compatibility_rules: list[CompatibilityRuleSetting] = [
        CompatibilityRuleSetting(
            name="cpu_socket", relation="equals",
            left_key="socket", right_key="socket",
            left_type="CPU", right_type="MOTHERBOARD",
        ),
        CompatibilityRuleSetting(
            name="memory_type", relation="equals",
            left_key="memoryType", right_key="memoryType",
            left_type="RAM", right_type="MOTHERBOARD",
        ),
        CompatibilityRuleSetting(
            name="power_budget", relation="sum_at_most",
            left_key="powerDraw", right_key="wattage", right_type="PSU",
        ),
    ]

    # Protocols
    protocol_max_attempts: int = Field(5, ge=1)

    # API
    cors_origins: list[str] = ["http://localhost:3000"]

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"


@lru_cache
def get_settings() -> Settings:
    return Settings()
