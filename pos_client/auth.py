"""Login, profile and logout.

Login is the one call made without a bearer token, so it goes straight to the
underlying HTTP client. Everything else uses the authenticated path.
"""

from typing import Any

import httpx
import structlog

from .client import AuthenticatedClient, json_object
from .config import LOGIN_PATH, PROFILE_PATH
from .errors import AuthenticationFailedError, HTTPError, TransportError
from .tokens import TokenPair

logger = structlog.get_logger()


class AuthService:
    """Session lifecycle on top of an AuthenticatedClient."""

    def __init__(self, client: AuthenticatedClient):
        self._client = client
        self.log = logger.bind(component="auth")

    def login(self, email: str, password: str) -> dict[str, Any]:
        """Exchange credentials for a token pair and store it.

        Returns the user document from the login response, or an empty dict
        when the server sends none. Raises AuthenticationFailedError when the
        credentials are rejected.
        """
        try:
            response = self._client.http.post(
                LOGIN_PATH, json={"email": email, "password": password}
            )
        except httpx.RequestError as e:
            raise TransportError(e) from e

        if not response.is_success:
            self.log.warning("login_rejected", status=response.status_code)
            raise AuthenticationFailedError(response.status_code)

        data = json_object(response)
        try:
            pair = TokenPair.from_payload(data)
        except ValueError as e:
            raise AuthenticationFailedError(response.status_code) from e
        self._client.tokens.replace(pair)
        self.log.info("logged_in")
        user = data.get("user")
        return user if isinstance(user, dict) else {}

    def profile(self) -> dict[str, Any]:
        """Fetch the current user's profile."""
        response = self._client.get(PROFILE_PATH)
        if not response.is_success:
            raise HTTPError(response)
        return json_object(response)

    def logout(self) -> None:
        """Drop the stored tokens. No server call is made."""
        self._client.tokens.clear()
        self.log.info("logged_out")

    def is_authenticated(self) -> bool:
        return self._client.tokens.is_authenticated()
