# Overview: Decimal helpers for currency amounts (two fixed decimal places).

from __future__ import annotations

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Optional

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def to_money(value) -> Decimal:
    """
    Convert a JSON/DB value to a Decimal rounded to cents.

    Floats go through str() so 19.99 stays 19.99. Booleans, NaN and
    infinities are rejected with ValueError.
    """
    if value is None:
        return ZERO
    if isinstance(value, bool):
        raise ValueError("amount must be a number")
    if isinstance(value, Decimal):
        d = value
    else:
        try:
            d = Decimal(str(value).strip())
        except (InvalidOperation, ValueError):
            raise ValueError("amount must be a number")
    if not d.is_finite():
        raise ValueError("amount must be a finite number")
    return d.quantize(CENT, rounding=ROUND_HALF_UP)


def money_str(value: Optional[Decimal]) -> Optional[str]:
    if value is None:
        return None
    return str(to_money(value))
