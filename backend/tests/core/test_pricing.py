"""Pricing Engine: verifies subtotal, shipping tiers, tax, discount and totals.

Tests:
    - 1000 subtotal + 25 shipping + 20% tax = 1225 total
    - Rounding happens once on the subtotal, half-up
    - Tightest covering tier wins; no tier means zero shipping, flagged
    - Discount bounds and unknown locales are ValidationErrors
    - Every breakdown satisfies total = subtotal + shipping + tax - discount
"""

from decimal import Decimal

import pytest

from praxis.core.errors import ValidationError
from praxis.core.pricing import (
    PricingItem, ShippingTable, ShippingTier, TaxTable, price_order,
)

TAX = TaxTable({"de-AT": Decimal("0.20"), "de-DE": Decimal("0.19")})
SHIPPING = ShippingTable(
    tiers_by_zone={
        "DOMESTIC": [
            ShippingTier(Decimal("40.00")),
            ShippingTier(Decimal("25.00"), max_items=3),
            ShippingTier(Decimal("10.00"), max_items=1, max_weight_kg=Decimal("2")),
        ],
    },
    zone_by_country={"AT": "DOMESTIC"},
)


def price(items, zone="DOMESTIC", locale="de-AT", discount=Decimal("0")):
    return price_order(items, zone, locale, TAX, SHIPPING, discount)


def test_reference_order_totals_1225():
    breakdown = price([PricingItem(Decimal("500.00"), 2)])
    assert breakdown.subtotal == Decimal("1000.00")
    assert breakdown.shipping_cost == Decimal("25.00")
    assert breakdown.tax_amount == Decimal("200.00")
    assert breakdown.discount_amount == Decimal("0.00")
    assert breakdown.total == Decimal("1225.00")
    assert breakdown.is_consistent


def test_shipping_is_not_taxed():
    breakdown = price([PricingItem(Decimal("100.00"), 2)])
    assert breakdown.tax_amount == Decimal("40.00")


def test_subtotal_rounded_once_half_up():
    # 3 x 0.335 = 1.005 -> 1.01; rounding the unit price first would give 1.02
    breakdown = price([PricingItem(Decimal("0.335"), 3)])
    assert breakdown.subtotal == Decimal("1.01")


def test_tightest_tier_wins():
    light = price([PricingItem(Decimal("10.00"), 1, Decimal("1.5"))])
    assert light.shipping_cost == Decimal("10.00")

    heavy = price([PricingItem(Decimal("10.00"), 1, Decimal("5"))])
    assert heavy.shipping_cost == Decimal("25.00")

    many = price([PricingItem(Decimal("10.00"), 7)])
    assert many.shipping_cost == Decimal("40.00")


def test_tier_order_in_config_does_not_matter():
    table = ShippingTable(
        tiers_by_zone={"DOMESTIC": [
            ShippingTier(Decimal("25.00"), max_items=3),
            ShippingTier(Decimal("40.00")),
        ]},
    )
    breakdown = price_order(
        [PricingItem(Decimal("1.00"), 2)], "DOMESTIC", "de-AT", TAX, table,
    )
    assert breakdown.shipping_cost == Decimal("25.00")


def test_unknown_zone_ships_free_and_flags_it():
    breakdown = price([PricingItem(Decimal("100.00"), 1)], zone="MARS")
    assert breakdown.shipping_cost == Decimal("0.00")
    assert breakdown.shipping_tier_matched is False
    assert breakdown.total == Decimal("120.00")


def test_zone_for_country_falls_back_to_default():
    assert SHIPPING.zone_for("at") == "DOMESTIC"
    assert SHIPPING.zone_for("JP") == "INTL"
    assert SHIPPING.zone_for(None) == "INTL"


def test_discount_subtracted_from_total():
    breakdown = price([PricingItem(Decimal("500.00"), 2)], discount=Decimal("125.00"))
    assert breakdown.discount_amount == Decimal("125.00")
    assert breakdown.total == Decimal("1100.00")
    assert breakdown.is_consistent


def test_discount_may_equal_subtotal_plus_shipping():
    breakdown = price([PricingItem(Decimal("75.00"), 1)], discount=Decimal("85.00"))
    assert breakdown.total == breakdown.tax_amount


def test_discount_above_subtotal_plus_shipping_rejected():
    with pytest.raises(ValidationError) as exc:
        price([PricingItem(Decimal("75.00"), 1)], discount=Decimal("85.01"))
    assert exc.value.field == "discount"


def test_negative_discount_rejected():
    with pytest.raises(ValidationError):
        price([PricingItem(Decimal("75.00"), 1)], discount=Decimal("-1"))


def test_unknown_locale_rejected():
    with pytest.raises(ValidationError) as exc:
        price([PricingItem(Decimal("75.00"), 1)], locale="fr-FR")
    assert exc.value.field == "locale"


def test_locale_selects_rate():
    breakdown = price([PricingItem(Decimal("100.00"), 1)], locale="de-DE")
    assert breakdown.tax_amount == Decimal("19.00")


@pytest.mark.parametrize("items", [
    [],
    [PricingItem(Decimal("10.00"), 0)],
    [PricingItem(Decimal("-1.00"), 1)],
])
def test_invalid_lines_rejected(items):
    with pytest.raises(ValidationError):
        price(items)


def test_negative_tax_rate_rejected_at_construction():
    with pytest.raises(ValueError):
        TaxTable({"de-AT": Decimal("-0.20")})


def test_breakdowns_are_consistent_across_inputs():
    for unit, qty, discount in [
        ("19.99", 3, "0"), ("0.01", 1, "0.01"), ("1234.56", 2, "99.99"), ("7.77", 9, "5"),
    ]:
        breakdown = price([PricingItem(Decimal(unit), qty)], discount=Decimal(discount))
        assert breakdown.is_consistent
        assert breakdown.total >= 0
        for amount in breakdown.to_dict().values():
            assert amount == amount.quantize(Decimal("0.01"))
