"""Authenticated client for the POS REST API.

Every call carries the current access token as a bearer credential. A 401
triggers the refresh protocol exactly once per call, then the original request
is reissued with the new token:

    401 ──► refresh (single-flight) ──► retry ──► response
                    │                      │
                    ▼                      ▼
            SessionExpiredError    UnauthenticatedError (second 401)

Terminal auth failures clear the TokenStore before they propagate.
"""

import threading
from dataclasses import dataclass
from typing import Any, Callable, Optional

import httpx
import structlog

from .config import DEFAULT_TIMEOUT, REFRESH_PATH, Settings
from .errors import AuthError, SessionExpiredError, TransportError, UnauthenticatedError
from .tokens import FileTokenStorage, TokenPair, TokenStore

logger = structlog.get_logger()

SessionEndHook = Callable[[AuthError], None]


@dataclass(frozen=True)
class ApiRequest:
    """A request relative to the API base URL."""

    method: str
    path: str
    json: Any = None
    params: Optional[dict[str, Any]] = None


def _create_http_client(base_url: str, timeout: float) -> httpx.Client:
    """Create an HTTP client rooted at the API base URL."""
    return httpx.Client(
        base_url=base_url,
        timeout=timeout,
        headers={"Accept": "application/json"},
    )


def json_object(response: httpx.Response) -> dict[str, Any]:
    """Decode a JSON object body, or return an empty dict."""
    try:
        data = response.json()
    except ValueError:
        return {}
    return data if isinstance(data, dict) else {}


class AuthenticatedClient:
    """HTTP client that attaches, refreshes and retries bearer tokens."""

    def __init__(
        self,
        http: httpx.Client,
        tokens: TokenStore,
        refresh_path: str = REFRESH_PATH,
        on_session_end: Optional[SessionEndHook] = None,
    ):
        self._http = http
        self._tokens = tokens
        self._refresh_path = refresh_path
        self._refresh_lock = threading.Lock()
        self._on_session_end = on_session_end
        self.log = logger.bind(component="authenticated_client")

    @classmethod
    def connect(
        cls,
        base_url: str,
        tokens: TokenStore,
        timeout: float = DEFAULT_TIMEOUT,
        on_session_end: Optional[SessionEndHook] = None,
    ) -> "AuthenticatedClient":
        """Connect to the API at the given base URL."""
        http = _create_http_client(base_url, timeout)
        return cls(http, tokens, on_session_end=on_session_end)

    @classmethod
    def from_env(
        cls,
        tokens: Optional[TokenStore] = None,
        on_session_end: Optional[SessionEndHook] = None,
    ) -> "AuthenticatedClient":
        """Connect using POS_* environment settings.

        Without an explicit store, tokens are persisted to POS_TOKEN_FILE when
        set and loaded immediately.
        """
        settings = Settings.from_env()
        if tokens is None:
            storage = FileTokenStorage(settings.token_file) if settings.token_file else None
            tokens = TokenStore(storage)
            tokens.load()
        return cls.connect(settings.api_base, tokens, settings.timeout, on_session_end)

    @property
    def tokens(self) -> TokenStore:
        return self._tokens

    @property
    def http(self) -> httpx.Client:
        """The underlying HTTP client, for unauthenticated endpoints."""
        return self._http

    def call(self, request: ApiRequest) -> httpx.Response:
        """Send a request with the current access token.

        Returns the response unchanged unless it is a 401. Raises
        UnauthenticatedError, SessionExpiredError or TransportError.
        """
        pair = self._tokens.get()
        if pair is None:
            raise UnauthenticatedError()

        response = self._send(request, pair.access_token)
        if response.status_code != 401:
            return response

        log = self.log.bind(method=request.method, path=request.path)
        log.info("access_token_rejected")

        fresh = self._refresh(pair)
        response = self._send(request, fresh.access_token)
        if response.status_code == 401:
            log.warning("retry_rejected")
            raise self._end_session(
                UnauthenticatedError("access token rejected after refresh")
            )
        return response

    def get(self, path: str, params: Optional[dict[str, Any]] = None) -> httpx.Response:
        return self.call(ApiRequest("GET", path, params=params))

    def post(self, path: str, json: Any = None) -> httpx.Response:
        return self.call(ApiRequest("POST", path, json=json))

    def put(self, path: str, json: Any = None) -> httpx.Response:
        return self.call(ApiRequest("PUT", path, json=json))

    def patch(self, path: str, json: Any = None) -> httpx.Response:
        return self.call(ApiRequest("PATCH", path, json=json))

    def delete(self, path: str) -> httpx.Response:
        return self.call(ApiRequest("DELETE", path))

    def close(self) -> None:
        """Close the underlying HTTP client."""
        self._http.close()

    def __enter__(self) -> "AuthenticatedClient":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _send(self, request: ApiRequest, access_token: str) -> httpx.Response:
        try:
            return self._http.request(
                request.method,
                request.path,
                json=request.json,
                params=request.params,
                headers={"Authorization": f"Bearer {access_token}"},
            )
        except httpx.RequestError as e:
            raise TransportError(e) from e

    def _refresh(self, stale: TokenPair) -> TokenPair:
        """Exchange the refresh token for a new access token, single-flight.

        Callers that queued behind a refresh find the token already rotated and
        reuse it; if that refresh failed the store is empty and they fail too.
        """
        with self._refresh_lock:
            current = self._tokens.get()
            if current is None:
                raise SessionExpiredError("session ended during refresh")
            if current.access_token != stale.access_token:
                self.log.debug("refresh_already_done")
                return current
            if not current.refresh_token:
                raise self._end_session(SessionExpiredError("no refresh token"))

            self.log.info("refreshing_token")
            try:
                response = self._http.post(
                    self._refresh_path, json={"refresh": current.refresh_token}
                )
            except httpx.RequestError as e:
                raise TransportError(e) from e

            if not response.is_success:
                raise self._end_session(
                    SessionExpiredError(f"refresh rejected with status {response.status_code}")
                )

            data = json_object(response)
            access = data.get("access") or data.get("access_token")
            if not access:
                raise self._end_session(
                    SessionExpiredError("refresh response has no access token")
                )

            fresh = current.with_access(access, data.get("refresh") or data.get("refresh_token"))
            self._tokens.replace(fresh)
            self.log.info("token_refreshed")
            return fresh

    def _end_session(self, error: AuthError) -> AuthError:
        """Clear tokens, notify the session hook, and hand back the error to raise."""
        self._tokens.clear()
        self.log.warning("session_ended", reason=error.message)
        if self._on_session_end is not None:
            self._on_session_end(error)
        return error
