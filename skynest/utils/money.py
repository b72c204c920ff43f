"""Decimal helpers for currency amounts."""

from decimal import ROUND_HALF_UP, Decimal
from typing import Any

CENT = Decimal("0.01")


def to_decimal(value: Any) -> Decimal:
    """
    Coerce a DB or payload value to a two-place Decimal.

    SQLite hands back floats for aggregates while PostgreSQL returns Decimal;
    going through ``str`` keeps both exact.
    """
    if value is None:
        return Decimal("0.00")
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(CENT, rounding=ROUND_HALF_UP)
