"""Conversion and rounding helpers for aggregate values.

Database drivers return counts as ints (possibly 64-bit), sums of numeric
columns as Decimal, and on SQLite sometimes as float or str. Everything is
normalized here before it reaches a calculator.
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

ZERO = Decimal("0")
CENT = Decimal("0.01")


def to_int(value: Any) -> int:
    """Convert a count aggregate to int. ``None`` becomes 0."""
    if value is None:
        return 0
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    return int(to_decimal(value).to_integral_value(rounding=ROUND_HALF_UP))


def to_decimal(value: Any) -> Decimal:
    """Convert a sum aggregate to Decimal. ``None`` becomes 0."""
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(repr(value))
    try:
        return Decimal(str(value))
    except InvalidOperation as e:
        raise ValueError(f"Not a numeric aggregate: {value!r}") from e


def round_half_up(value: Decimal | float | int) -> int:
    """Round to the nearest integer, halves away from zero."""
    return int(to_decimal(value).to_integral_value(rounding=ROUND_HALF_UP))


def quantize(value: Decimal | float | int, places: int = 2) -> Decimal:
    """Round to a fixed number of decimal places, halves away from zero."""
    exponent = Decimal(1).scaleb(-places)
    return to_decimal(value).quantize(exponent, rounding=ROUND_HALF_UP)
