"""Validation helpers for cart and checkout precondition checks.

Each helper raises the matching error from the taxonomy and never mutates
anything, so a failed check leaves the cart untouched.
"""

from decimal import Decimal
from typing import Optional

from .errors import (
    EmptyCartError,
    InsufficientStockError,
    InvalidQuantityError,
    InvalidRateError,
    MissingCustomerError,
    OutOfStockError,
)
from .money import HUNDRED, Numeric, to_decimal


def require_quantity(quantity: object) -> int:
    """Require a positive integer quantity."""
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
        raise InvalidQuantityError(quantity)
    return quantity


def require_in_stock(product_id: object, available: int) -> None:
    """Require that at least one unit is available."""
    if available <= 0:
        raise OutOfStockError(product_id)


def require_stock_for(product_id: object, requested: int, available: int) -> None:
    """Require that the requested quantity fits within available stock."""
    if requested > available:
        raise InsufficientStockError(product_id, requested, available)


def require_rate(value: Numeric, name: str, maximum: Optional[Decimal] = None) -> Decimal:
    """Require a finite, non-negative percentage, optionally capped."""
    try:
        rate = to_decimal(value)
    except ValueError as e:
        raise InvalidRateError(f"{name} must be a number") from e
    if rate < 0:
        raise InvalidRateError(f"{name} cannot be negative")
    if maximum is not None and rate > maximum:
        raise InvalidRateError(f"{name} must be 0-{maximum}")
    return rate


def require_discount_percent(value: Numeric) -> Decimal:
    """Require a discount percentage in [0, 100]."""
    return require_rate(value, "discount", maximum=HUNDRED)


def require_tax_percent(value: Numeric) -> Decimal:
    """Require a tax percentage in [0, inf)."""
    return require_rate(value, "tax")


def require_not_empty(count: int) -> None:
    """Require at least one cart line."""
    if count == 0:
        raise EmptyCartError()


def require_customer(label: Optional[str]) -> str:
    """Require a non-blank customer label; returns it stripped."""
    if label is None or not label.strip():
        raise MissingCustomerError()
    return label.strip()
