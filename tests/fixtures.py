"""Shared test fixtures: an in-process POS backend and product factories.

The backend speaks just enough of the REST API to exercise the client:
- auth: login and refresh with rotating access tokens
- everything else: bearer check, then a per-route canned response
"""

import itertools
import json
import threading
from decimal import Decimal
from typing import Callable, Optional, Union

import httpx

from pos_client.catalog import ProductSnapshot
from pos_client.client import AuthenticatedClient
from pos_client.tokens import TokenPair, TokenStore

BASE_URL = "http://pos.test/api"
API_PREFIX = "/api"

Route = Union[httpx.Response, Callable[[httpx.Request], httpx.Response]]


class FakeBackend:
    """Callable handler for httpx.MockTransport.

    Access tokens rotate on every successful refresh; the previous access
    token stops being accepted at that moment.
    """

    def __init__(self, access: str = "access-1", refresh: str = "refresh-1"):
        self.valid_access = {access}
        self.valid_refresh = {refresh}
        self.refresh_status: Optional[int] = None
        self.refresh_calls = 0
        self.requests: list[httpx.Request] = []
        self.routes: dict[tuple[str, str], Route] = {}
        self._counter = itertools.count(2)
        self._lock = threading.Lock()

    def route(self, method: str, path: str, response: Route) -> None:
        self.routes[(method, API_PREFIX + path)] = response

    def requests_to(self, path: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.path == API_PREFIX + path]

    def expire_access(self) -> None:
        """Invalidate every current access token, as if they had timed out."""
        self.valid_access = set()

    def __call__(self, request: httpx.Request) -> httpx.Response:
        with self._lock:
            self.requests.append(request)

        path = request.url.path
        if path == API_PREFIX + "/auth/token/refresh/":
            return self._refresh(request)

        route = self.routes.get((request.method, path))
        if path == API_PREFIX + "/auth/token/":
            return self._respond(route, request)

        bearer = request.headers.get("Authorization", "").removeprefix("Bearer ")
        if bearer not in self.valid_access:
            return httpx.Response(401, json={"detail": "token not valid"})
        return self._respond(route, request)

    def _respond(self, route: Optional[Route], request: httpx.Request) -> httpx.Response:
        if route is None:
            return httpx.Response(404, json={"detail": "not found"})
        if callable(route):
            return route(request)
        return route

    def _refresh(self, request: httpx.Request) -> httpx.Response:
        with self._lock:
            self.refresh_calls += 1
            if self.refresh_status is not None:
                return httpx.Response(self.refresh_status, json={"detail": "refresh failed"})
            body = json.loads(request.content)
            if body.get("refresh") not in self.valid_refresh:
                return httpx.Response(401, json={"detail": "token not valid"})
            access = f"access-{next(self._counter)}"
            self.valid_access = {access}
            return httpx.Response(200, json={"access": access})


def make_client(
    backend: Callable[[httpx.Request], httpx.Response],
    pair: Optional[TokenPair] = TokenPair("access-1", "refresh-1"),
    on_session_end=None,
) -> AuthenticatedClient:
    """Build an AuthenticatedClient wired to an in-process handler."""
    http = httpx.Client(base_url=BASE_URL, transport=httpx.MockTransport(backend))
    tokens = TokenStore()
    if pair is not None:
        tokens.replace(pair)
    return AuthenticatedClient(http, tokens, on_session_end=on_session_end)


def product(
    product_id: int = 1,
    price: str = "10.00",
    stock: int = 10,
    name: Optional[str] = None,
) -> ProductSnapshot:
    return ProductSnapshot(
        id=product_id,
        name=name or f"Product {product_id}",
        unit_price=Decimal(price),
        available_stock=stock,
    )


def product_json(
    product_id: int = 1, price: str = "10.00", stock: int = 10, name: Optional[str] = None
) -> dict:
    return {
        "id": product_id,
        "name": name or f"Product {product_id}",
        "price": price,
        "stock": stock,
        "category": "general",
    }
