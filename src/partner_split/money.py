"""Presentation helpers for Decimal currency amounts.

Accumulation always happens on exact Decimals. Rounding to cents is applied
only here, when a value is shown or serialized.
"""

from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from pydantic import BaseModel

CENT = Decimal("0.01")
ZERO = Decimal("0")


def round_money(amount: Decimal) -> Decimal:
    """
    Round a Decimal amount to cents.
    Uses ROUND_HALF_UP for consistency.

    Args:
        amount: Exact amount

    Returns:
        Amount quantized to two decimal places
    """
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def format_money(amount: Decimal, currency: str = "USD") -> str:
    """Format an amount accounting style: negatives in parentheses."""
    symbol = "$" if currency == "USD" else f"{currency} "
    rounded = round_money(amount)
    if rounded < 0:
        return f"({symbol}{abs(rounded):,.2f})"
    return f"{symbol}{rounded:,.2f}"


def to_jsonable(value: Any) -> Any:
    """
    Convert a model (or nested dicts/lists of them) into JSON-ready data.

    Decimals are rounded to cents and emitted as numbers, dates as ISO strings.
    """
    if isinstance(value, BaseModel):
        return to_jsonable(value.model_dump())
    if isinstance(value, Decimal):
        return float(round_money(value))
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    if isinstance(value, dict):
        return {key: to_jsonable(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_jsonable(item) for item in value]
    return value
