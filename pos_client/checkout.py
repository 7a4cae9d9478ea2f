"""Sale submission.

CheckoutCoordinator turns a cart snapshot into a sale on the server. Local
stock is only decremented after the server accepted the sale; any failure
leaves both the cart and the stock view untouched so the user can retry.

Checkout is never retried automatically; the sale endpoint takes no
idempotency key.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Callable, Optional, Union

import structlog

from .cart import CartEngine, CartSnapshot
from .catalog import StockView
from .client import AuthenticatedClient, json_object
from .config import SALES_PATH
from .errors import CheckoutFailedError, TransportError
from .validation import require_customer, require_not_empty

logger = structlog.get_logger()


class PaymentMethod(str, Enum):
    CASH = "cash"
    CARD = "card"
    MOBILE_MONEY = "mobile_money"


@dataclass(frozen=True)
class ReceiptLine:
    product_id: Any
    name: str
    quantity: int
    unit_price: Decimal
    line_total: Decimal


@dataclass(frozen=True)
class Receipt:
    """Record of one committed sale. Never mutated after creation."""

    timestamp: datetime
    customer_label: str
    lines: tuple[ReceiptLine, ...]
    subtotal: Decimal
    discount_amount: Decimal
    tax_amount: Decimal
    grand_total: Decimal
    payment_method: PaymentMethod
    discount_percent: Decimal = Decimal(0)
    tax_percent: Decimal = Decimal(0)
    sale_id: Optional[Any] = None


def sale_payload(
    snapshot: CartSnapshot, payment_method: PaymentMethod, customer_label: str
) -> dict[str, Any]:
    """Build the sale-creation document. Decimals travel as strings."""
    totals = snapshot.totals
    return {
        "customer": customer_label,
        "payment_method": payment_method.value,
        "items": [
            {
                "product": line.product_id,
                "quantity": line.quantity,
                "unit_price": str(line.unit_price),
            }
            for line in snapshot.lines
        ],
        "subtotal": str(totals.subtotal),
        "discount": str(totals.discount_amount),
        "tax": str(totals.tax_amount),
        "total": str(totals.grand_total),
    }


def _parse_timestamp(value: Any) -> Optional[datetime]:
    if not isinstance(value, str):
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None


def _now() -> datetime:
    return datetime.now(timezone.utc)


class CheckoutCoordinator:
    """Commits carts as sales and keeps the receipt history."""

    def __init__(
        self,
        client: AuthenticatedClient,
        stock: Optional[StockView] = None,
        clock: Callable[[], datetime] = _now,
    ):
        self._client = client
        self._stock = stock
        self._clock = clock
        self._history: list[Receipt] = []
        self.log = logger.bind(component="checkout")

    @property
    def history(self) -> tuple[Receipt, ...]:
        """Receipts of this session, most recent last."""
        return tuple(self._history)

    @property
    def last_receipt(self) -> Optional[Receipt]:
        return self._history[-1] if self._history else None

    def checkout(
        self,
        cart: CartEngine,
        payment_method: Union[PaymentMethod, str],
        customer_label: Optional[str] = None,
    ) -> Receipt:
        """Submit the cart as a sale and return its receipt.

        Raises EmptyCartError, MissingCustomerError or CheckoutFailedError.
        UnauthenticatedError and SessionExpiredError propagate unchanged. The
        caller clears the cart after a successful checkout.
        """
        require_not_empty(len(cart))
        label = require_customer(cart.customer_label if customer_label is None else customer_label)
        try:
            method = PaymentMethod(payment_method)
        except ValueError as e:
            raise CheckoutFailedError(f"unknown payment method {payment_method!r}") from e

        snapshot = cart.snapshot()
        log = self.log.bind(lines=len(snapshot.lines), total=str(snapshot.totals.grand_total))
        log.info("submitting_sale", payment_method=method.value)

        try:
            response = self._client.post(SALES_PATH, json=sale_payload(snapshot, method, label))
        except TransportError as e:
            log.warning("checkout_failed", reason="transport", error=str(e))
            raise CheckoutFailedError("network error", e) from e

        if not response.is_success:
            log.warning("checkout_failed", status=response.status_code)
            raise CheckoutFailedError(
                f"server rejected sale with status {response.status_code}"
            )

        body = json_object(response)
        if self._stock is not None:
            for line in snapshot.lines:
                self._stock.decrement(line.product_id, line.quantity)

        receipt = self._build_receipt(snapshot, method, label, body)
        self._history.append(receipt)
        log.info("sale_committed", sale_id=receipt.sale_id)
        return receipt

    def _build_receipt(
        self,
        snapshot: CartSnapshot,
        method: PaymentMethod,
        label: str,
        body: dict[str, Any],
    ) -> Receipt:
        timestamp = _parse_timestamp(body.get("created_at") or body.get("timestamp"))
        totals = snapshot.totals
        return Receipt(
            timestamp=timestamp or self._clock(),
            customer_label=label,
            lines=tuple(
                ReceiptLine(
                    product_id=line.product_id,
                    name=line.name,
                    quantity=line.quantity,
                    unit_price=line.unit_price,
                    line_total=line.line_total,
                )
                for line in snapshot.lines
            ),
            subtotal=totals.subtotal,
            discount_amount=totals.discount_amount,
            tax_amount=totals.tax_amount,
            grand_total=totals.grand_total,
            payment_method=method,
            discount_percent=snapshot.discount_percent,
            tax_percent=snapshot.tax_percent,
            sale_id=body.get("id"),
        )
