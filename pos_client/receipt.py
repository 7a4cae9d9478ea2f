"""Receipt formatting utilities."""

from decimal import Decimal

from .checkout import Receipt
from .config import DEFAULT_CURRENCY
from .money import format_money


def _row(label: str, value: str, width: int) -> str:
    gap = max(1, width - len(label) - len(value))
    return f"{label}{' ' * gap}{value}"


def _percent(value: Decimal) -> str:
    return f"{value.normalize():f}%"


def format_receipt(receipt: Receipt, currency: str = DEFAULT_CURRENCY, width: int = 40) -> str:
    """Format a human-readable receipt."""
    lines = []

    lines.append("=" * width)
    lines.append("RECEIPT".center(width).rstrip())
    lines.append("=" * width)
    if receipt.sale_id is not None:
        lines.append(f"Sale: {receipt.sale_id}")
    lines.append(f"Date: {receipt.timestamp:%Y-%m-%d %H:%M}")
    lines.append(f"Customer: {receipt.customer_label}")
    lines.append("-" * width)

    for item in receipt.lines:
        lines.append(
            f"{item.quantity} x {item.name} @ {format_money(item.unit_price)}"
            f" = {format_money(item.line_total)}"
        )

    lines.append("-" * width)
    lines.append(_row("Subtotal:", format_money(receipt.subtotal, currency), width))
    if receipt.discount_amount > 0:
        lines.append(
            _row(
                f"Discount ({_percent(receipt.discount_percent)}):",
                f"-{format_money(receipt.discount_amount, currency)}",
                width,
            )
        )
    lines.append(
        _row(
            f"Tax ({_percent(receipt.tax_percent)}):",
            format_money(receipt.tax_amount, currency),
            width,
        )
    )
    lines.append("-" * width)
    lines.append(_row("TOTAL:", format_money(receipt.grand_total, currency), width))
    lines.append(f"Payment: {receipt.payment_method.value.replace('_', ' ')}")
    lines.append("=" * width)
    lines.append("Thank you for your purchase!".center(width).rstrip())
    lines.append("=" * width)

    return "\n".join(lines)
