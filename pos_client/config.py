"""Configuration and logging setup for the POS client."""

import os
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

import structlog

DEFAULT_API_BASE = "http://127.0.0.1:8000/api"
DEFAULT_TIMEOUT = 10.0
DEFAULT_TAX_PERCENT = "8.5"
DEFAULT_CURRENCY = "UGX"

# API paths, relative to the API base
LOGIN_PATH = "/auth/token/"
REFRESH_PATH = "/auth/token/refresh/"
PROFILE_PATH = "/users/profile/"
PRODUCTS_PATH = "/products/"
SALES_PATH = "/sales/"


def configure_logging(level: int = 0) -> None:
    """Configure structlog with JSON rendering and ISO timestamps."""
    structlog.configure(
        processors=[
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
    )


@dataclass(frozen=True)
class Settings:
    """Runtime settings.

    Environment variables:
        POS_API_BASE: Base URL of the REST API (default: http://127.0.0.1:8000/api)
        POS_HTTP_TIMEOUT: Request timeout in seconds (default: 10)
        POS_TOKEN_FILE: Path of the persisted token document (default: in-memory only)
        POS_DEFAULT_TAX_PERCENT: Tax applied to a fresh cart (default: 8.5)
        POS_CURRENCY: Currency code printed on receipts (default: UGX)
    """

    api_base: str = DEFAULT_API_BASE
    timeout: float = DEFAULT_TIMEOUT
    token_file: Optional[str] = None
    default_tax_percent: Decimal = Decimal(DEFAULT_TAX_PERCENT)
    currency: str = DEFAULT_CURRENCY

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from the environment with defaults."""
        return cls(
            api_base=os.environ.get("POS_API_BASE", DEFAULT_API_BASE).rstrip("/"),
            timeout=float(os.environ.get("POS_HTTP_TIMEOUT", DEFAULT_TIMEOUT)),
            token_file=os.environ.get("POS_TOKEN_FILE") or None,
            default_tax_percent=Decimal(
                os.environ.get("POS_DEFAULT_TAX_PERCENT", DEFAULT_TAX_PERCENT)
            ),
            currency=os.environ.get("POS_CURRENCY", DEFAULT_CURRENCY),
        )
