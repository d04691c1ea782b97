"""Composed Obscura API client with modular functionality.

This module provides the ObscuraClient class that combines the base HTTP and
token infrastructure with feature-specific mixins for a complete API client.
"""

from types import TracebackType

from obscura_api.api.client_account import AccountClientMixin
from obscura_api.api.client_base import BaseClient
from obscura_api.api.client_tunnels import TunnelsClientMixin


class ObscuraClient(
    BaseClient,
    AccountClientMixin,
    TunnelsClientMixin,
):
    """Complete Obscura API client with all functionality."""

    def __str__(self) -> str:
        """Return string representation without exposing credentials."""
        return f"ObscuraClient(base_url={self._base_url}, account=***redacted***)"

    def __repr__(self) -> str:
        """Return repr without exposing credentials."""
        return f"ObscuraClient(base_url='{self._base_url}', account='***redacted***')"

    async def __aenter__(self) -> "ObscuraClient":
        """Async context manager entry."""
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        """Async context manager exit."""
        await super().__aexit__(exc_type, exc_val, exc_tb)


__all__ = ["ObscuraClient"]
