from __future__ import annotations

from decimal import Decimal, ROUND_HALF_UP, InvalidOperation
from typing import Optional, Union

CENT = Decimal("0.01")
ZERO = Decimal("0.00")

MoneyLike = Union[Decimal, int, float, str]


def to_money(value: MoneyLike) -> Decimal:
    """
    Normalize a currency amount to a 2-place Decimal (half-up).

    Floats go through str() so 0.1 becomes Decimal("0.10"), not its binary expansion.
    """
    if isinstance(value, bool):
        raise ValueError("invalid amount")
    if isinstance(value, float):
        value = str(value)
    try:
        amount = Decimal(value)
    except (InvalidOperation, TypeError) as exc:
        raise ValueError("invalid amount") from exc
    if not amount.is_finite():
        raise ValueError("invalid amount")
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def to_decimal(value: MoneyLike) -> Decimal:
    """Like to_money() but without quantizing (rates, margins, demand figures)."""
    if isinstance(value, bool):
        raise ValueError("invalid number")
    if isinstance(value, float):
        value = str(value)
    try:
        number = Decimal(value)
    except (InvalidOperation, TypeError) as exc:
        raise ValueError("invalid number") from exc
    if not number.is_finite():
        raise ValueError("invalid number")
    return number


def money_str(value: Optional[Decimal]) -> Optional[str]:
    """Serialize an amount for JSON payloads ("9900.00")."""
    if value is None:
        return None
    return str(to_money(value))
