"""Product catalog access and the local stock view.

CatalogGateway is a thin layer over AuthenticatedClient for product reads and
writes. Every snapshot it returns is also recorded in a StockView, the locally
cached stock that checkout decrements after a committed sale.
"""

import threading
from dataclasses import dataclass, replace
from decimal import Decimal
from typing import Any, Optional

import httpx
import structlog

from .client import AuthenticatedClient, json_object
from .config import PRODUCTS_PATH
from .errors import HTTPError, NotFoundError
from .money import to_decimal

logger = structlog.get_logger()

LOW_STOCK_THRESHOLD = 5


@dataclass(frozen=True)
class ProductSnapshot:
    """Product price and stock as of one fetch."""

    id: Any
    name: str
    unit_price: Decimal
    available_stock: int
    category: str = ""

    @classmethod
    def from_payload(cls, data: dict[str, Any]) -> "ProductSnapshot":
        """Build a snapshot from a product document.

        Requires ``id``, ``price`` (or ``selling_price``) and ``stock``.
        """
        price = data.get("price", data.get("selling_price"))
        if "id" not in data or price is None or "stock" not in data:
            raise ValueError(f"incomplete product document: {sorted(data)}")
        return cls(
            id=data["id"],
            name=str(data.get("name", "")),
            unit_price=to_decimal(price),
            available_stock=max(0, int(data["stock"])),
            category=str(data.get("category") or ""),
        )

    @property
    def in_stock(self) -> bool:
        return self.available_stock > 0


class StockView:
    """Latest known snapshot per product, safe to share across threads."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._products: dict[Any, ProductSnapshot] = {}

    def remember(self, product: ProductSnapshot) -> None:
        with self._lock:
            self._products[product.id] = product

    def get(self, product_id: Any) -> Optional[ProductSnapshot]:
        with self._lock:
            return self._products.get(product_id)

    def available(self, product_id: Any) -> Optional[int]:
        """Return cached stock, or None if the product was never fetched."""
        product = self.get(product_id)
        return product.available_stock if product else None

    def decrement(self, product_id: Any, quantity: int) -> None:
        """Reduce cached stock by a committed quantity, never below zero.

        Products that were never fetched are ignored.
        """
        with self._lock:
            product = self._products.get(product_id)
            if product is None:
                return
            remaining = max(0, product.available_stock - quantity)
            self._products[product_id] = replace(product, available_stock=remaining)

    def forget(self, product_id: Any) -> None:
        with self._lock:
            self._products.pop(product_id, None)

    def low_stock(self, threshold: int = LOW_STOCK_THRESHOLD) -> list[ProductSnapshot]:
        """Products with some stock left, at or below the threshold."""
        with self._lock:
            return [p for p in self._products.values() if 0 < p.available_stock <= threshold]

    def out_of_stock(self) -> list[ProductSnapshot]:
        with self._lock:
            return [p for p in self._products.values() if p.available_stock == 0]

    def __len__(self) -> int:
        with self._lock:
            return len(self._products)


class CatalogGateway:
    """Product reads, writes and stock reports."""

    def __init__(self, client: AuthenticatedClient, stock: Optional[StockView] = None):
        self._client = client
        self.stock = stock if stock is not None else StockView()
        self.log = logger.bind(component="catalog")

    def fetch_product(self, product_id: Any) -> ProductSnapshot:
        """Fetch one product.

        Raises NotFoundError on 404. Auth errors propagate unchanged.
        """
        response = self._client.get(f"{PRODUCTS_PATH}{product_id}/")
        if response.status_code == 404:
            self.log.info("product_not_found", product_id=product_id)
            raise NotFoundError(product_id)
        if not response.is_success:
            raise HTTPError(response)
        product = ProductSnapshot.from_payload(response.json())
        self.stock.remember(product)
        return product

    def create_product(self, data: dict[str, Any]) -> Optional[ProductSnapshot]:
        """Create a product. Returns its snapshot when the server echoes one."""
        response = self._client.post(PRODUCTS_PATH, json=data)
        if not response.is_success:
            raise HTTPError(response)
        self.log.info("product_created")
        return self._remember_reply(response)

    def update_product(self, product_id: Any, data: dict[str, Any]) -> Optional[ProductSnapshot]:
        """Partially update a product. Raises NotFoundError on 404."""
        response = self._client.patch(f"{PRODUCTS_PATH}{product_id}/", json=data)
        self._check_write(response, product_id)
        self.log.info("product_updated", product_id=product_id, fields=sorted(data))
        return self._remember_reply(response)

    def delete_product(self, product_id: Any) -> None:
        """Delete a product and drop it from the stock view."""
        response = self._client.delete(f"{PRODUCTS_PATH}{product_id}/")
        self._check_write(response, product_id)
        self.stock.forget(product_id)
        self.log.info("product_deleted", product_id=product_id)

    def list_products(self, **params: Any) -> list[ProductSnapshot]:
        """List products, passing filters through as query parameters."""
        return self._fetch_list(PRODUCTS_PATH, params or None)

    def low_stock(self) -> list[ProductSnapshot]:
        return self._fetch_list(f"{PRODUCTS_PATH}low_stock/")

    def out_of_stock(self) -> list[ProductSnapshot]:
        return self._fetch_list(f"{PRODUCTS_PATH}out_of_stock/")

    def _check_write(self, response: httpx.Response, product_id: Any) -> None:
        if response.status_code == 404:
            raise NotFoundError(product_id)
        if not response.is_success:
            raise HTTPError(response)

    def _remember_reply(self, response: httpx.Response) -> Optional[ProductSnapshot]:
        data = json_object(response)
        if not data:
            return None
        try:
            product = ProductSnapshot.from_payload(data)
        except ValueError:
            self.log.debug("product_reply_incomplete", keys=sorted(data))
            return None
        self.stock.remember(product)
        return product

    def _fetch_list(
        self, path: str, params: Optional[dict[str, Any]] = None
    ) -> list[ProductSnapshot]:
        response = self._client.get(path, params=params)
        if not response.is_success:
            raise HTTPError(response)
        data = response.json()
        # Paginated endpoints wrap rows in "results"
        rows = data.get("results", []) if isinstance(data, dict) else data
        products = [ProductSnapshot.from_payload(row) for row in rows]
        for product in products:
            self.stock.remember(product)
        self.log.debug("products_listed", path=path, count=len(products))
        return products
