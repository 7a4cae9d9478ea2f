"""In-progress sale: lines, rates and totals.

CartEngine mutations are synchronous and all-or-nothing. Every check runs
before any state changes, so a rejected call leaves the cart exactly as it was.
Quantities never exceed the stock of the product snapshot the line was built
from.
"""

from dataclasses import dataclass, replace
from decimal import Decimal
from typing import Any, Optional

import structlog

from .catalog import ProductSnapshot
from .money import ZERO, Numeric, percent_of, round_money
from .validation import (
    require_discount_percent,
    require_in_stock,
    require_quantity,
    require_stock_for,
    require_tax_percent,
)

logger = structlog.get_logger()


@dataclass(frozen=True)
class CartLine:
    product_id: Any
    name: str
    unit_price: Decimal
    quantity: int
    available_stock: int

    @property
    def line_total(self) -> Decimal:
        return round_money(self.unit_price * self.quantity)


@dataclass(frozen=True)
class Totals:
    subtotal: Decimal
    discount_amount: Decimal
    tax_amount: Decimal
    grand_total: Decimal


@dataclass(frozen=True)
class CartSnapshot:
    """Read-only copy of a cart, taken before checkout."""

    lines: tuple[CartLine, ...]
    discount_percent: Decimal
    tax_percent: Decimal
    customer_label: str
    totals: Totals


def compute_totals(
    lines: tuple[CartLine, ...], discount_percent: Decimal, tax_percent: Decimal
) -> Totals:
    """Compute totals with cent rounding on each derived amount.

    The subtotal is the exact sum of price * quantity, rounded once.
    grand_total is assembled from the rounded parts, so
    grand_total == subtotal - discount_amount + tax_amount holds exactly.
    """
    subtotal = round_money(sum((line.unit_price * line.quantity for line in lines), ZERO))
    discount_amount = percent_of(subtotal, discount_percent)
    tax_amount = percent_of(subtotal - discount_amount, tax_percent)
    return Totals(
        subtotal=subtotal,
        discount_amount=discount_amount,
        tax_amount=tax_amount,
        grand_total=subtotal - discount_amount + tax_amount,
    )


class CartEngine:
    """The open cart of one checkout session."""

    def __init__(
        self,
        default_discount_percent: Numeric = 0,
        default_tax_percent: Numeric = 0,
    ):
        self._default_discount = require_discount_percent(default_discount_percent)
        self._default_tax = require_tax_percent(default_tax_percent)
        self._lines: dict[Any, CartLine] = {}
        self.discount_percent = self._default_discount
        self.tax_percent = self._default_tax
        self.customer_label = ""
        self.log = logger.bind(component="cart")

    @property
    def lines(self) -> tuple[CartLine, ...]:
        """Lines in insertion order."""
        return tuple(self._lines.values())

    @property
    def is_empty(self) -> bool:
        return not self._lines

    def __len__(self) -> int:
        return len(self._lines)

    def __contains__(self, product_id: object) -> bool:
        return product_id in self._lines

    def get(self, product_id: Any) -> Optional[CartLine]:
        return self._lines.get(product_id)

    def add_item(self, product: ProductSnapshot, quantity: int = 1) -> CartLine:
        """Add a product, or increase the quantity of its line.

        A new line takes min(quantity, stock). An existing line is increased
        only if the whole increase fits; otherwise InsufficientStockError is
        raised and the line is unchanged.
        """
        require_quantity(quantity)
        existing = self._lines.get(product.id)

        if existing is None:
            require_in_stock(product.id, product.available_stock)
            line = CartLine(
                product_id=product.id,
                name=product.name,
                unit_price=product.unit_price,
                quantity=min(quantity, product.available_stock),
                available_stock=product.available_stock,
            )
        else:
            new_quantity = existing.quantity + quantity
            require_stock_for(product.id, new_quantity, product.available_stock)
            line = replace(
                existing, quantity=new_quantity, available_stock=product.available_stock
            )

        self._lines[product.id] = line
        self.log.info("adding_item", product_id=product.id, quantity=line.quantity)
        return line

    def set_quantity(self, product_id: Any, quantity: int) -> Optional[CartLine]:
        """Replace a line's quantity; below 1 removes the line.

        Unknown products are ignored and None is returned.
        """
        if isinstance(quantity, int) and not isinstance(quantity, bool) and quantity < 1:
            self.remove_item(product_id)
            return None
        require_quantity(quantity)
        existing = self._lines.get(product_id)
        if existing is None:
            return None
        require_stock_for(product_id, quantity, existing.available_stock)

        line = replace(existing, quantity=quantity)
        self._lines[product_id] = line
        self.log.info("updating_quantity", product_id=product_id, new_quantity=quantity)
        return line

    def remove_item(self, product_id: Any) -> None:
        if self._lines.pop(product_id, None) is not None:
            self.log.info("removing_item", product_id=product_id)

    def set_discount_percent(self, percent: Numeric) -> None:
        self.discount_percent = require_discount_percent(percent)

    def set_tax_percent(self, percent: Numeric) -> None:
        self.tax_percent = require_tax_percent(percent)

    def totals(self) -> Totals:
        return compute_totals(self.lines, self.discount_percent, self.tax_percent)

    def snapshot(self) -> CartSnapshot:
        lines = self.lines
        return CartSnapshot(
            lines=lines,
            discount_percent=self.discount_percent,
            tax_percent=self.tax_percent,
            customer_label=self.customer_label,
            totals=compute_totals(lines, self.discount_percent, self.tax_percent),
        )

    def clear(self) -> None:
        """Empty the cart and restore default rates."""
        self._lines.clear()
        self.discount_percent = self._default_discount
        self.tax_percent = self._default_tax
        self.customer_label = ""
        self.log.info("clearing_cart")
