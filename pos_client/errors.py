"""Error types for the POS client library."""

from typing import Optional

import httpx


class ClientError(Exception):
    """Base class for client errors."""

    def __init__(self, message: str, cause: Optional[Exception] = None):
        super().__init__(message)
        self.message = message
        self.cause = cause

    def __str__(self) -> str:
        if self.cause:
            return f"{self.message}: {self.cause}"
        return self.message


class TransportError(ClientError):
    """Transport-level error (connection refused, timeout, broken stream)."""

    def __init__(self, cause: Exception):
        super().__init__("transport error", cause)

    def is_timeout(self) -> bool:
        """Return True if the underlying failure was a timeout."""
        return isinstance(self.cause, httpx.TimeoutException)


class HTTPError(ClientError):
    """Non-success HTTP response from the server."""

    def __init__(self, response: httpx.Response):
        super().__init__(f"http error {response.status_code}")
        self.response = response

    @property
    def status_code(self) -> int:
        """Return the HTTP status code."""
        return self.response.status_code

    @property
    def details(self) -> str:
        """Return the response body as text."""
        return self.response.text

    def is_not_found(self) -> bool:
        """Return True if this is a 404."""
        return self.status_code == 404

    def is_client_error(self) -> bool:
        """Return True for 4xx responses."""
        return 400 <= self.status_code < 500

    def is_server_error(self) -> bool:
        """Return True for 5xx responses."""
        return self.status_code >= 500


# Authentication


class AuthError(ClientError):
    """Base class for authentication failures.

    Auth failures always propagate to the top of the call stack and leave the
    token store cleared.
    """


class UnauthenticatedError(AuthError):
    """No usable access token."""

    def __init__(self, message: str = "not authenticated"):
        super().__init__(message)


class SessionExpiredError(AuthError):
    """Token refresh was attempted and failed."""

    def __init__(self, message: str = "session expired", cause: Optional[Exception] = None):
        super().__init__(message, cause)


class AuthenticationFailedError(AuthError):
    """Login credentials were rejected."""

    def __init__(self, status_code: int):
        super().__init__(f"login rejected with status {status_code}")
        self.status_code = status_code


# Catalog


class NotFoundError(ClientError):
    """Requested product does not exist."""

    def __init__(self, product_id: object):
        super().__init__(f"product not found: {product_id}")
        self.product_id = product_id


# Cart


class CartRejectedError(ClientError):
    """Cart mutation was rejected due to a business rule violation.

    The cart is left exactly as it was before the call.
    """


class OutOfStockError(CartRejectedError):
    """Product has no stock left."""

    def __init__(self, product_id: object):
        super().__init__(f"out of stock: {product_id}")
        self.product_id = product_id


class InsufficientStockError(CartRejectedError):
    """Requested quantity exceeds available stock."""

    def __init__(self, product_id: object, requested: int, available: int):
        super().__init__(
            f"insufficient stock for {product_id}: available {available}, requested {requested}"
        )
        self.product_id = product_id
        self.requested = requested
        self.available = available


class InvalidRateError(CartRejectedError):
    """Discount or tax percentage is not acceptable."""

    def __init__(self, message: str):
        super().__init__(f"invalid rate: {message}")


class InvalidQuantityError(CartRejectedError):
    """Quantity must be a positive integer."""

    def __init__(self, quantity: object):
        super().__init__(f"invalid quantity: {quantity}")
        self.quantity = quantity


# Checkout


class CheckoutError(ClientError):
    """Base class for checkout failures other than authentication."""


class EmptyCartError(CheckoutError):
    """Checkout attempted with no lines in the cart."""

    def __init__(self):
        super().__init__("cart is empty")


class MissingCustomerError(CheckoutError):
    """Checkout attempted without a customer label."""

    def __init__(self):
        super().__init__("customer label is required")


class CheckoutFailedError(CheckoutError):
    """Sale submission failed; nothing was committed locally."""

    def __init__(self, reason: str, cause: Optional[Exception] = None):
        super().__init__(f"checkout failed: {reason}", cause)
        self.reason = reason
