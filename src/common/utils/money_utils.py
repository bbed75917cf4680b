"""Helpers for monetary values."""

from decimal import Decimal, InvalidOperation
from typing import Any

ZERO = Decimal("0")


def to_decimal(value: Any) -> Decimal | None:
    """Converts a number or numeric string to Decimal. Returns None when it is not a finite number."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        result = value
    else:
        try:
            # str() keeps 29.99 as 29.99 instead of its binary float expansion
            result = Decimal(str(value).strip())
        except (InvalidOperation, ValueError):
            return None
    if not result.is_finite():
        return None
    return result


CENTS = Decimal("0.01")


def to_money(value: Any) -> Decimal | None:
    """
    Like `to_decimal`, but only accepts amounts that are exact in cents, the scale of
    the DECIMAL(12, 2) columns. 29.990 becomes 29.99; 29.999 is refused (None).
    """
    amount = to_decimal(value)
    if amount is None:
        return None
    try:
        cents = amount.quantize(CENTS)
    except InvalidOperation:
        return None
    if cents != amount:
        return None
    return cents
