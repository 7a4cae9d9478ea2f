"""Token pair storage.

TokenStore is the single owner of the access/refresh token pair. It is shared
by every in-flight request, so get/replace/clear run under one lock: a reader
sees either the old pair or the new one, never a mix.

Persistence is delegated to a TokenStorage so the store can be exercised
without a real backend:

    store = TokenStore(FileTokenStorage("~/.pos/tokens.json"))
    store.load()          # app start
    ...
    store.clear()         # logout
"""

from __future__ import annotations

import json
import os
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Optional

import structlog

logger = structlog.get_logger()


@dataclass(frozen=True)
class TokenPair:
    """Access token plus the refresh token that can renew it."""

    access_token: str
    refresh_token: Optional[str] = None
    expires_at: Optional[datetime] = None

    @classmethod
    def from_payload(cls, data: dict[str, Any]) -> "TokenPair":
        """Build a pair from a server or storage document.

        Accepts both the short (``access``/``refresh``) and long
        (``access_token``/``refresh_token``) key spellings.
        """
        if not isinstance(data, dict):
            raise ValueError("token document is not an object")
        access = data.get("access_token") or data.get("access")
        if not access:
            raise ValueError("token document has no access token")
        refresh = data.get("refresh_token") or data.get("refresh")
        return cls(
            access_token=access,
            refresh_token=refresh,
            expires_at=_parse_expiry(data.get("expires_at")),
        )

    def to_payload(self) -> dict[str, Any]:
        """Serialize with the canonical key names only."""
        return {
            "access_token": self.access_token,
            "refresh_token": self.refresh_token,
            "expires_at": self.expires_at.isoformat() if self.expires_at else None,
        }

    def with_access(self, access_token: str, refresh_token: Optional[str] = None) -> "TokenPair":
        """Return a rotated pair, keeping the current refresh token if none is given."""
        return TokenPair(
            access_token=access_token,
            refresh_token=refresh_token or self.refresh_token,
            expires_at=None,
        )


def _parse_expiry(value: Any) -> Optional[datetime]:
    """Accept an ISO 8601 string or epoch seconds."""
    if value is None:
        return None
    if isinstance(value, str):
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        try:
            return datetime.fromtimestamp(value, timezone.utc)
        except (OverflowError, OSError) as e:
            raise ValueError(f"expires_at out of range: {value!r}") from e
    raise ValueError(f"unsupported expires_at: {value!r}")


class TokenStorage(ABC):
    """Persistence hooks for the token pair."""

    @abstractmethod
    def load(self) -> Optional[TokenPair]:
        """Return the persisted pair, or None."""

    @abstractmethod
    def save(self, pair: TokenPair) -> None:
        """Persist the pair, replacing whatever was stored."""

    @abstractmethod
    def clear(self) -> None:
        """Remove any persisted pair."""


class MemoryTokenStorage(TokenStorage):
    """Process-local storage. Nothing survives a restart."""

    def __init__(self, initial: Optional[TokenPair] = None):
        self._pair = initial

    def load(self) -> Optional[TokenPair]:
        return self._pair

    def save(self, pair: TokenPair) -> None:
        self._pair = pair

    def clear(self) -> None:
        self._pair = None


class FileTokenStorage(TokenStorage):
    """JSON document on disk."""

    def __init__(self, path: str):
        self.path = os.path.expanduser(path)

    def load(self) -> Optional[TokenPair]:
        if not os.path.exists(self.path):
            return None
        try:
            with open(self.path, encoding="utf-8") as fh:
                return TokenPair.from_payload(json.load(fh))
        except (OSError, ValueError) as e:
            logger.warning("token_file_unreadable", path=self.path, error=str(e))
            return None

    def save(self, pair: TokenPair) -> None:
        directory = os.path.dirname(self.path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        tmp_path = f"{self.path}.tmp"
        with open(tmp_path, "w", encoding="utf-8") as fh:
            json.dump(pair.to_payload(), fh)
        os.replace(tmp_path, self.path)

    def clear(self) -> None:
        if os.path.exists(self.path):
            os.remove(self.path)


class TokenStore:
    """Process-wide holder of the current token pair."""

    def __init__(self, storage: Optional[TokenStorage] = None):
        self._storage = storage or MemoryTokenStorage()
        self._lock = threading.Lock()
        self._pair: Optional[TokenPair] = None

    def load(self) -> Optional[TokenPair]:
        """Read persisted tokens into memory. Call once at startup."""
        with self._lock:
            self._pair = self._storage.load()
            return self._pair

    def get(self) -> Optional[TokenPair]:
        """Return the current pair, or None when logged out."""
        with self._lock:
            return self._pair

    def replace(self, pair: TokenPair) -> None:
        """Install a new pair and persist it.

        A pair that cannot be persisted is still used for this process.
        """
        with self._lock:
            self._pair = pair
            try:
                self._storage.save(pair)
            except OSError as e:
                logger.warning("token_save_failed", error=str(e))

    def clear(self) -> None:
        """Drop the pair from memory and storage."""
        with self._lock:
            self._pair = None
            self._storage.clear()

    def is_authenticated(self) -> bool:
        """Return True if an access token is held."""
        return self.get() is not None
