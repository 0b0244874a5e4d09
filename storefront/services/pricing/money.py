"""Integer-cent helpers for currency arithmetic."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

CENT = Decimal("0.01")


def round_money(amount: Decimal | int | float | str) -> Decimal:
    """Round to two decimal places, halves away from zero."""
    return Decimal(str(amount)).quantize(CENT, rounding=ROUND_HALF_UP)


def to_cents(amount: Decimal | int | float | str) -> int:
    return int(round_money(amount) * 100)


def from_cents(cents: int) -> Decimal:
    return (Decimal(cents) / 100).quantize(CENT)


def percent_of_cents(cents: int, rate: Decimal) -> int:
    """rate * cents, rounded half-up to a whole cent."""
    return int((Decimal(cents) * rate).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
