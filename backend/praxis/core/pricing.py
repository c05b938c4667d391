"""Pricing Engine: subtotal, shipping, tax, discount and total for an order.

Invariants:
    - price_order is PURE and deterministic; tables are passed in, never read from globals
    - subtotal is rounded once, after summing unit_price * quantity over all lines
    - tax_amount = subtotal * rate(locale), rounded on its own; shipping is never taxed
    - 0 <= discount_amount <= subtotal + shipping_cost
    - total == subtotal + shipping_cost + tax_amount - discount_amount, every field 2dp and >= 0
    - No matching shipping tier means shipping_cost 0 and shipping_tier_matched False

Design Decisions:
    - Tiers are normalized smallest-first so the tightest covering tier wins
    - Unknown locale is a ValidationError: the tax table is closed configuration data
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Iterable, Mapping, Sequence

from praxis.core.errors import ValidationError
from praxis.core.money import ZERO, sum_money, to_money


@dataclass(frozen=True)
class PricingItem:
    """One order line as the pricing engine sees it."""
    unit_price: Decimal
    quantity: int
    weight_kg: Decimal | None = None

    @property
    def line_total(self) -> Decimal:
        return to_money(self.unit_price * self.quantity)


@dataclass(frozen=True)
class ShippingTier:
    """Flat cost for orders up to max_items and max_weight_kg (None = unbounded)."""
    cost: Decimal
    max_items: int | None = None
    max_weight_kg: Decimal | None = None

    def covers(self, item_count: int, weight_kg: Decimal) -> bool:
        if self.max_items is not None and item_count > self.max_items:
            return False
        if self.max_weight_kg is not None and weight_kg > self.max_weight_kg:
            return False
        return True


def _tier_key(tier: ShippingTier) -> tuple:
    unbounded = float("inf")
    return (
        tier.max_items if tier.max_items is not None else unbounded,
        tier.max_weight_kg if tier.max_weight_kg is not None else unbounded,
        tier.cost,
    )


@dataclass(frozen=True)
class ShippingTable:
    """Zone -> tiers, plus the country -> zone mapping used to pick a zone."""
    tiers_by_zone: Mapping[str, Sequence[ShippingTier]] = field(default_factory=dict)
    zone_by_country: Mapping[str, str] = field(default_factory=dict)
    default_zone: str = "INTL"

    def __post_init__(self):
        object.__setattr__(self, "tiers_by_zone", {
            zone: tuple(sorted(tiers, key=_tier_key))
            for zone, tiers in self.tiers_by_zone.items()
        })

    def zone_for(self, country: str | None) -> str:
        if not country:
            return self.default_zone
        return self.zone_by_country.get(country.upper(), self.default_zone)

    def lookup(self, zone: str, item_count: int, weight_kg: Decimal) -> ShippingTier | None:
        for tier in self.tiers_by_zone.get(zone, ()):
            if tier.covers(item_count, weight_kg):
                return tier
        return None


@dataclass(frozen=True)
class TaxTable:
    """Locale -> VAT rate as a fraction (0.20 for 20%)."""
    rates: Mapping[str, Decimal] = field(default_factory=dict)

    def __post_init__(self):
        for locale, rate in self.rates.items():
            if rate < 0:
                raise ValueError(f"Negative tax rate for locale {locale}")

    def rate_for(self, locale: str) -> Decimal:
        if locale not in self.rates:
            raise ValidationError(f"No tax rate configured for locale '{locale}'", "locale")
        return self.rates[locale]


@dataclass(frozen=True)
class PriceBreakdown:
    subtotal: Decimal
    shipping_cost: Decimal
    tax_amount: Decimal
    discount_amount: Decimal
    total: Decimal
    shipping_tier_matched: bool = True

    @property
    def is_consistent(self) -> bool:
        return self.total == (
            self.subtotal + self.shipping_cost + self.tax_amount - self.discount_amount
        )

    def to_dict(self) -> dict:
        return {
            "subtotal": self.subtotal,
            "shipping_cost": self.shipping_cost,
            "tax_amount": self.tax_amount,
            "discount_amount": self.discount_amount,
            "total": self.total,
        }


def price_order(
    items: Iterable[PricingItem],
    destination_zone: str,
    locale: str,
    tax_table: TaxTable,
    shipping_table: ShippingTable,
    discount: Decimal = ZERO,
) -> PriceBreakdown:
    """Price an order. Raises ValidationError on bad lines, locale or discount."""
    lines = list(items)
    check_lines(lines)

    subtotal = sum_money(item.unit_price * item.quantity for item in lines)
    shipping_cost, matched = compute_shipping(lines, destination_zone, shipping_table)
    tax_amount = to_money(subtotal * tax_table.rate_for(locale))
    discount_amount = to_money(discount)

    if discount_amount < 0:
        raise ValidationError("Discount cannot be negative", "discount")
    if discount_amount > subtotal + shipping_cost:
        raise ValidationError(
            f"Discount {discount_amount} exceeds subtotal plus shipping "
            f"{subtotal + shipping_cost}",
            "discount",
        )

    return PriceBreakdown(
        subtotal=subtotal,
        shipping_cost=shipping_cost,
        tax_amount=tax_amount,
        discount_amount=discount_amount,
        total=subtotal + shipping_cost + tax_amount - discount_amount,
        shipping_tier_matched=matched,
    )


def check_lines(lines: list[PricingItem]) -> None:
    if not lines:
        raise ValidationError("Order must contain at least one item", "items")
    for item in lines:
        if not isinstance(item.quantity, int) or item.quantity <= 0:
            raise ValidationError("Item quantity must be a positive integer", "quantity")
        if item.unit_price < 0:
            raise ValidationError("Item unit price cannot be negative", "unit_price")


def compute_shipping(
    lines: list[PricingItem], zone: str, table: ShippingTable,
) -> tuple[Decimal, bool]:
    """Cost of the tightest tier covering the order; (0, False) if none does."""
    item_count = sum(item.quantity for item in lines)
    weight = sum(
        ((item.weight_kg or Decimal("0")) * item.quantity for item in lines),
        Decimal("0"),
    )
    tier = table.lookup(zone, item_count, weight)
    if tier is None:
        return ZERO, False
    return to_money(tier.cost), True
