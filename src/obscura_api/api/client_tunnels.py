"""Tunnel, relay and exit functionality mixin for the Obscura API client.

This module provides the TunnelsClientMixin class that handles tunnel
lifecycle and network topology listings, designed to be composed with the
base client.
"""

import logging
from typing import TYPE_CHECKING
from uuid import UUID

from obscura_api.api.commands import (
    CreateTunnel,
    DeleteTunnel,
    ListExits,
    ListExits2,
    ListRelays,
    ListTunnels,
    TunnelKind,
)
from obscura_api.api.models import ExitList, OneExit, OneRelay, OneTunnel, WgPubkey

if TYPE_CHECKING:
    from obscura_api.api.protocols import BaseClientProtocol

logger = logging.getLogger(__name__)


class TunnelsClientMixin:
    """Mixin providing tunnel functionality for the Obscura API client."""

    async def list_exits(self: "BaseClientProtocol") -> list[OneExit]:
        """List available exit locations."""
        return await self.run(ListExits())

    async def list_exits2(self: "BaseClientProtocol") -> ExitList:
        """List available exit locations in the wrapped format."""
        return await self.run(ListExits2())

    async def list_relays(self: "BaseClientProtocol") -> list[OneRelay]:
        """List relays and their preferred exits."""
        return await self.run(ListRelays())

    async def list_tunnels(self: "BaseClientProtocol") -> list[OneTunnel]:
        """List the account's existing tunnels."""
        tunnels = await self.run(ListTunnels())
        logger.debug("Fetched %d tunnels", len(tunnels))
        return tunnels

    async def create_tunnel(  # noqa: PLR0913
        self: "BaseClientProtocol",
        wg_pubkey: WgPubkey,
        kind: TunnelKind = TunnelKind.UDP_PORT,
        relay: str | None = None,
        exit_id: str | None = None,
        tunnel_id: UUID | None = None,
    ) -> OneTunnel:
        """Create a tunnel for a WireGuard public key.

        Args:
            wg_pubkey: Client WireGuard public key
            kind: Plain UDP port tunnel or obfuscated tunnel
            relay: Specific relay ID, or None to let the server choose
            exit_id: Specific exit ID, or None to let the server choose
            tunnel_id: Caller-chosen tunnel UUID

        Returns:
            OneTunnel: The created tunnel with its server configuration

        Raises:
            ObscuraApiError: e.g. TunnelLimitExceeded or NoMatchingExit
            ObscuraProtocolError: Unexpected response envelope
            ObscuraRequestError: Transport or decoding failure
        """
        tunnel = await self.run(
            CreateTunnel(type=kind, id=tunnel_id, wg_pubkey=wg_pubkey, relay=relay, exit=exit_id)
        )
        logger.debug("Created %s tunnel: %s", kind.value, tunnel.id)
        return tunnel

    async def delete_tunnel(self: "BaseClientProtocol", tunnel_id: str) -> None:
        """Delete a tunnel by ID."""
        await self.run(DeleteTunnel(id=tunnel_id))
        logger.debug("Deleted tunnel: %s", tunnel_id)
