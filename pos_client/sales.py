"""Sales history and reporting reads."""

from datetime import date
from typing import Any, Optional

import structlog

from .client import AuthenticatedClient
from .config import SALES_PATH
from .errors import HTTPError

logger = structlog.get_logger()


class SalesGateway:
    """Read-only access to recorded sales."""

    def __init__(self, client: AuthenticatedClient):
        self._client = client
        self.log = logger.bind(component="sales")

    def list_sales(self, **params: Any) -> Any:
        """List sales, passing filters through as query parameters."""
        return self._get(SALES_PATH, params or None)

    def today_sales(self) -> Any:
        return self._get(f"{SALES_PATH}today_sales/")

    def sales_report(
        self, start_date: Optional[date] = None, end_date: Optional[date] = None
    ) -> Any:
        """Fetch the sales report, optionally bounded by dates (inclusive)."""
        params = {}
        if start_date is not None:
            params["start_date"] = start_date.isoformat()
        if end_date is not None:
            params["end_date"] = end_date.isoformat()
        return self._get(f"{SALES_PATH}sales_report/", params or None)

    def _get(self, path: str, params: Optional[dict[str, Any]] = None) -> Any:
        response = self._client.get(path, params=params)
        if not response.is_success:
            self.log.warning("sales_read_failed", path=path, status=response.status_code)
            raise HTTPError(response)
        return response.json()
