"""Python client library for a retail point-of-sale REST API."""

from .client import ApiRequest, AuthenticatedClient, json_object
from .errors import (
    ClientError,
    TransportError,
    HTTPError,
    AuthError,
    UnauthenticatedError,
    SessionExpiredError,
    AuthenticationFailedError,
    NotFoundError,
    CartRejectedError,
    OutOfStockError,
    InsufficientStockError,
    InvalidRateError,
    InvalidQuantityError,
    CheckoutError,
    EmptyCartError,
    MissingCustomerError,
    CheckoutFailedError,
)
from .tokens import (
    TokenPair,
    TokenStorage,
    MemoryTokenStorage,
    FileTokenStorage,
    TokenStore,
)
from .auth import AuthService
from .catalog import LOW_STOCK_THRESHOLD, ProductSnapshot, StockView, CatalogGateway
from .money import to_decimal, round_money, percent_of, format_money
from .cart import CartLine, Totals, CartSnapshot, CartEngine, compute_totals
from .checkout import PaymentMethod, ReceiptLine, Receipt, CheckoutCoordinator, sale_payload
from .receipt import format_receipt
from .sales import SalesGateway
from .config import Settings, configure_logging

__all__ = [
    # Client
    "ApiRequest",
    "AuthenticatedClient",
    "json_object",
    # Errors
    "ClientError",
    "TransportError",
    "HTTPError",
    "AuthError",
    "UnauthenticatedError",
    "SessionExpiredError",
    "AuthenticationFailedError",
    "NotFoundError",
    "CartRejectedError",
    "OutOfStockError",
    "InsufficientStockError",
    "InvalidRateError",
    "InvalidQuantityError",
    "CheckoutError",
    "EmptyCartError",
    "MissingCustomerError",
    "CheckoutFailedError",
    # Tokens
    "TokenPair",
    "TokenStorage",
    "MemoryTokenStorage",
    "FileTokenStorage",
    "TokenStore",
    # Auth
    "AuthService",
    # Catalog
    "LOW_STOCK_THRESHOLD",
    "ProductSnapshot",
    "StockView",
    "CatalogGateway",
    # Money
    "to_decimal",
    "round_money",
    "percent_of",
    "format_money",
    # Cart
    "CartLine",
    "Totals",
    "CartSnapshot",
    "CartEngine",
    "compute_totals",
    # Checkout
    "PaymentMethod",
    "ReceiptLine",
    "Receipt",
    "CheckoutCoordinator",
    "sale_payload",
    "format_receipt",
    # Sales
    "SalesGateway",
    # Config
    "Settings",
    "configure_logging",
]
