"""Business Tables: verifies settings are turned into core lookup tables.

Tests:
    - Default settings describe the Austrian storefront
    - Shipping zones, tiers, tax rates and rules come from settings
    - Rules can be overridden from the environment as JSON
    - protocol_max_attempts reaches the generators built by the route factories
"""

from decimal import Decimal

import pytest
from pydantic import ValidationError

from praxis.config import Settings
from praxis.api.routes.orders import get_order_service
from praxis.api.routes.tickets import get_ticket_service
from praxis.infrastructure.business_tables import build_business_tables


def test_defaults_price_domestic_orders():
    tables = build_business_tables(Settings())
    assert tables.default_locale == "de-AT"
    assert tables.shipping.zone_for("AT") == "DOMESTIC"
    assert tables.shipping.lookup("DOMESTIC", 1, Decimal("0")).cost == Decimal("9.90")
    assert tables.shipping.lookup("DOMESTIC", 4, Decimal("0")).cost == Decimal("14.90")
    assert tables.tax.rate_for("de-AT") == Decimal("0.20")


def test_default_rules_loaded():
    tables = build_business_tables(Settings())
    assert [r.name for r in tables.rules] == ["cpu_socket", "memory_type", "power_budget"]


def test_rules_overridable_from_environment(monkeypatch):
    monkeypatch.setenv(
        "COMPATIBILITY_RULES",
        '[{"name": "form_factor", "relation": "equals", '
        '"left_key": "formFactor", "right_key": "formFactor"}]',
    )
    tables = build_business_tables(Settings())
    assert [r.name for r in tables.rules] == ["form_factor"]


def test_postgres_url_gets_async_driver():
    settings = Settings(database_url="postgresql://u:p@host/db")
    assert settings.database_url == "postgresql+asyncpg://u:p@host/db"


async def test_route_factories_use_configured_protocol_budget(test_db, tables):
    settings = Settings(protocol_max_attempts=2)
    assert get_order_service(test_db, tables, settings).protocols.max_attempts == 2
    assert get_ticket_service(test_db, settings).protocols.max_attempts == 2


def test_protocol_budget_must_allow_one_attempt():
    with pytest.raises(ValidationError):
        Settings(protocol_max_attempts=0)
