"""Conversions between Decimal amounts and the integer cents stored in SQLite."""

from decimal import Decimal, ROUND_HALF_UP

CENT = Decimal("0.01")

# Largest amount whose cents fit a signed 64-bit SQLite INTEGER
MAX_AMOUNT = Decimal(2**63 - 1) / 100


def quantize(value) -> Decimal:
    """Round a number to two decimal places, halves away from zero."""
    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)


def to_cents(value) -> int:
    return int(quantize(value) * 100)


def from_cents(cents: int) -> Decimal:
    return (Decimal(cents) / 100).quantize(CENT)
