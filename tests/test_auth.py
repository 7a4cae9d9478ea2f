"""Tests for AuthService."""

import json
from datetime import datetime, timezone

import httpx
import pytest

from pos_client.auth import AuthService
from pos_client.client import AuthenticatedClient
from pos_client.errors import AuthenticationFailedError, HTTPError, TransportError
from pos_client.tokens import FileTokenStorage, TokenPair, TokenStore

from .fixtures import FakeBackend, make_client


def _login_ok(request: httpx.Request) -> httpx.Response:
    body = json.loads(request.content)
    if body == {"email": "clerk@shop.test", "password": "secret"}:
        return httpx.Response(
            200,
            json={
                "access": "access-1",
                "refresh": "refresh-1",
                "user": {"email": "clerk@shop.test", "role": "cashier"},
            },
        )
    return httpx.Response(401, json={"detail": "No active account"})


class TestLogin:
    """Tests for login."""

    def test_stores_tokens_and_returns_user(self) -> None:
        """Successful login installs the pair and returns the user document."""
        backend = FakeBackend()
        backend.route("POST", "/auth/token/", _login_ok)
        client = make_client(backend, pair=None)
        auth = AuthService(client)

        user = auth.login("clerk@shop.test", "secret")

        assert user == {"email": "clerk@shop.test", "role": "cashier"}
        assert client.tokens.get() == TokenPair("access-1", "refresh-1")
        assert auth.is_authenticated()

    def test_login_sends_no_bearer(self) -> None:
        """Login is unauthenticated."""
        backend = FakeBackend()
        backend.route("POST", "/auth/token/", _login_ok)
        auth = AuthService(make_client(backend, pair=None))

        auth.login("clerk@shop.test", "secret")

        assert "Authorization" not in backend.requests[0].headers

    def test_rejected_credentials(self) -> None:
        """Wrong credentials raise and leave the store empty."""
        backend = FakeBackend()
        backend.route("POST", "/auth/token/", _login_ok)
        client = make_client(backend, pair=None)

        with pytest.raises(AuthenticationFailedError) as exc_info:
            AuthService(client).login("clerk@shop.test", "wrong")

        assert exc_info.value.status_code == 401
        assert client.tokens.get() is None

    def test_missing_user_document(self) -> None:
        """A login reply without a user yields an empty dict."""
        backend = FakeBackend()
        backend.route("POST", "/auth/token/", httpx.Response(200, json={"access": "a"}))
        client = make_client(backend, pair=None)

        assert AuthService(client).login("x", "y") == {}
        assert client.tokens.get() == TokenPair("a")

    def test_epoch_expiry_with_file_storage(self, tmp_path) -> None:
        """An epoch expiry in the login reply is stored and persisted."""
        backend = FakeBackend()
        backend.route(
            "POST",
            "/auth/token/",
            httpx.Response(200, json={"access": "a", "refresh": "r", "expires_at": 1700000000}),
        )
        storage = FileTokenStorage(str(tmp_path / "tokens.json"))
        client = make_client(backend, pair=None)
        client = AuthenticatedClient(client.http, TokenStore(storage))

        AuthService(client).login("x", "y")

        expected = datetime(2023, 11, 14, 22, 13, 20, tzinfo=timezone.utc)
        assert client.tokens.get().expires_at == expected
        assert storage.load() == client.tokens.get()

    def test_reply_without_tokens(self) -> None:
        """A success reply lacking an access token is a failed login."""
        backend = FakeBackend()
        backend.route("POST", "/auth/token/", httpx.Response(200, json={"user": {}}))
        client = make_client(backend, pair=None)

        with pytest.raises(AuthenticationFailedError):
            AuthService(client).login("x", "y")

        assert client.tokens.get() is None

    def test_transport_failure(self) -> None:
        """Network failures during login surface as TransportError."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused")

        with pytest.raises(TransportError):
            AuthService(make_client(handler, pair=None)).login("x", "y")


class TestProfileAndLogout:
    """Tests for profile and logout."""

    def test_profile(self) -> None:
        """Profile is read through the authenticated path."""
        backend = FakeBackend()
        backend.route("GET", "/users/profile/", httpx.Response(200, json={"name": "Ana"}))
        auth = AuthService(make_client(backend))

        assert auth.profile() == {"name": "Ana"}

    def test_profile_error(self) -> None:
        """Non-success profile reads raise HTTPError."""
        backend = FakeBackend()
        backend.route("GET", "/users/profile/", httpx.Response(500))

        with pytest.raises(HTTPError):
            AuthService(make_client(backend)).profile()

    def test_logout_clears_tokens(self) -> None:
        """Logout is local: tokens are dropped, no request is made."""
        backend = FakeBackend()
        client = make_client(backend)
        auth = AuthService(client)

        auth.logout()

        assert not auth.is_authenticated()
        assert backend.requests == []
