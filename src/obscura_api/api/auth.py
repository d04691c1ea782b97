"""Auth token types and the per-client token cache.

The API hands out opaque bearer tokens in exchange for an account ID. The
client holds at most one token at a time and only learns that a token has
gone bad when a request is rejected with `MissingOrInvalidAuthToken`.
"""

from __future__ import annotations

import threading

import httpx
from pydantic import BaseModel, Field

TOKEN_PATH = "token"


class AuthToken:
    """Opaque bearer credential.

    Compares by exact value. Its `str()` and `repr()` are redacted; use
    `as_str()` to obtain the value for the Authorization header.
    """

    __slots__ = ("_value",)

    def __init__(self, value: str) -> None:
        self._value = value

    def as_str(self) -> str:
        return self._value

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, AuthToken):
            return NotImplemented
        return self._value == other._value

    def __hash__(self) -> int:
        return hash(self._value)

    def __str__(self) -> str:
        return "***redacted***"

    def __repr__(self) -> str:
        return "AuthToken(_)"


class TokenCache:
    """Thread-safe cell holding zero or one `AuthToken`.

    Every operation takes the internal lock only long enough to read or swap
    the reference, so callers never block on network work here.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._token: AuthToken | None = None

    def get(self) -> AuthToken | None:
        with self._lock:
            return self._token

    def set(self, token: AuthToken | None) -> None:
        with self._lock:
            self._token = token

    def clear_if_equal(self, token: AuthToken) -> bool:
        """Clear the cache only if it still holds `token`.

        A caller that saw `token` rejected must not erase a newer token that
        another caller installed in the meantime.

        Returns:
            bool: True if the cache was cleared
        """
        with self._lock:
            if self._token == token:
                self._token = None
                return True
            return False

    def __repr__(self) -> str:
        state = "set" if self.get() is not None else "empty"
        return f"TokenCache({state})"


class AcquireToken(BaseModel):
    """Token acquisition request: `POST <base>/token` with the account ID."""

    account_id: str = Field(..., min_length=1, repr=False)

    def to_request(self, base_url: str) -> httpx.Request:
        """Build the unauthenticated acquisition request.

        Args:
            base_url: API base URL ending with a path separator
        """
        url = httpx.URL(base_url).join(TOKEN_PATH)
        return httpx.Request(
            "POST",
            url,
            headers={"Content-Type": "application/json"},
            content=self.model_dump_json(),
        )
