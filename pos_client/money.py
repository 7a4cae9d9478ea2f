"""Fixed-point money helpers.

All amounts are Decimal. Floats are routed through str() so that binary
representation error never reaches a total.
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Union

CENT = Decimal("0.01")
HUNDRED = Decimal(100)
ZERO = Decimal("0.00")

Numeric = Union[Decimal, int, float, str]


def to_decimal(value: Numeric) -> Decimal:
    """Convert a number or numeric string to Decimal.

    Raises ValueError for anything that is not a finite number.
    """
    if isinstance(value, bool):
        raise ValueError(f"not a number: {value!r}")
    if isinstance(value, float):
        value = str(value)
    try:
        result = Decimal(value)
    except (InvalidOperation, TypeError) as e:
        raise ValueError(f"not a number: {value!r}") from e
    if not result.is_finite():
        raise ValueError(f"not a finite number: {value!r}")
    return result


def round_money(amount: Decimal) -> Decimal:
    """Round to cents, half up."""
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def percent_of(amount: Decimal, percent: Decimal) -> Decimal:
    """Return percent of amount, rounded to cents."""
    return round_money(amount * percent / HUNDRED)


def format_money(amount: Decimal, currency: str = "") -> str:
    """Render an amount with two decimals and an optional currency prefix."""
    text = f"{round_money(amount):,.2f}"
    return f"{currency} {text}" if currency else text
