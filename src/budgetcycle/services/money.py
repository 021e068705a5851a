"""Money rounding helpers."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

CENT = Decimal("0.01")


def to_cents(amount: float) -> Decimal:
    return Decimal(str(amount)).quantize(CENT, rounding=ROUND_HALF_UP)


def round_cents(amount: float) -> float:
    """Half-up rounding to the cent, never returning ``-0.0``."""

    return float(to_cents(amount)) or 0.0
