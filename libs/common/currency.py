"""Money helpers for membership fees.

All amounts are fixed-point ``Decimal`` values with two fractional digits.
Rounding is half-up and applied per line item, never to an aggregate.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Union

# ─── constants ───────────────────────────────────────────────────────────────

CENT = Decimal("0.01")
ZERO = Decimal("0.00")

Amount = Union[Decimal, int, float, str]


# ─── conversion helpers ───────────────────────────────────────────────────────


def to_money(value: Amount) -> Decimal:
    """Quantize an amount to cents, rounding half-up.

    Floats go through ``str`` first so that ``0.1`` becomes ``Decimal("0.1")``
    rather than its binary expansion.
    """
    if isinstance(value, float):
        value = str(value)
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def sum_money(*amounts: Amount) -> Decimal:
    """Round each amount to cents, then add them."""
    total = ZERO
    for amount in amounts:
        total += to_money(amount)
    return total


def format_money(amount: Amount, currency: str) -> str:
    """Render an amount for display, e.g. ``AUD 335.00``."""
    return f"{currency} {to_money(amount):,.2f}"
