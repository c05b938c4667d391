"""Money: fixed-point helpers shared by the resolver and the pricing engine.

Invariants:
    - Every monetary value is a Decimal with exactly 2 fractional digits after to_money()
    - Rounding is ROUND_HALF_UP, never banker's rounding
    - Floats are rejected; callers convert from str or int
"""

from decimal import Decimal, ROUND_HALF_UP, InvalidOperation
from typing import Iterable

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def to_money(value: Decimal | int | str) -> Decimal:
    """Quantize to cents with half-up rounding."""
    if isinstance(value, float):
        raise TypeError("Monetary values must not be floats")
    try:
        amount = value if isinstance(value, Decimal) else Decimal(value)
    except InvalidOperation as e:
        raise ValueError(f"Not a monetary amount: {value!r}") from e
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def sum_money(amounts: Iterable[Decimal]) -> Decimal:
    """Sum raw amounts, rounding once after summation."""
    return to_money(sum(amounts, Decimal("0")))
