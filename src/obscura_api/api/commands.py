"""Typed API commands and the request builder.

A command is a Pydantic model describing one API operation. Its fields are
the JSON request body; the class declares the HTTP method, the path relative
to the API base URL, and the type the response decodes into. `output_type`
of `None` marks commands whose success response carries no content.

GET commands never send a body, so they must encode everything in the path
(in practice, they take no parameters).
"""

from __future__ import annotations

import logging
from enum import StrEnum
from typing import Any, ClassVar, Generic, Literal, TypeVar
from uuid import UUID

import httpx
from pydantic import BaseModel, Field
from pydantic_core import PydanticSerializationError

from obscura_api.api.auth import AuthToken
from obscura_api.api.exceptions import ObscuraRequestError
from obscura_api.api.models import (
    AccountInfo,
    CreateStripeManageSubscriptionSessionOutput,
    CreateStripeSubscriptionCheckoutOutput,
    ExitList,
    LightningTopUpInfo,
    OneExit,
    OneRelay,
    OneTunnel,
    Prices,
    StripeTopUpInfo,
    WgPubkey,
)

HttpMethod = Literal["GET", "POST", "PUT", "PATCH", "DELETE"]

OutputT = TypeVar("OutputT")

logger = logging.getLogger(__name__)

ACCOUNT_PATH = "account"
EXITS_PATH = "exits"
EXITS2_PATH = "exits2"
RELAYS_PATH = "relays"
PRICES_PATH = "prices"
TUNNELS_PATH = "tunnels"
LIGHTNING_TOP_UP_PATH = "lightning/top_up"
STRIPE_TOP_UP_PATH = "stripe/top_up"
STRIPE_CHECKOUT_PATH = "stripe/create_checkout_session"
STRIPE_PORTAL_PATH = "stripe/create_portal_session"


class Command(BaseModel, Generic[OutputT]):
    """Base class for every authenticated API command."""

    method: ClassVar[HttpMethod]
    path: ClassVar[str]
    output_type: ClassVar[Any] = None

    def to_request(self, base_url: str, auth_token: AuthToken) -> httpx.Request:
        """Build the HTTP request for this command.

        Args:
            base_url: API base URL ending with a path separator
            auth_token: Bearer token for the Authorization header

        Returns:
            httpx.Request: Request ready to be sent

        Raises:
            ObscuraRequestError: If the URL cannot be joined or the body cannot be serialized
        """
        method = type(self).method
        path = type(self).path
        try:
            url = httpx.URL(base_url).join(path)
            content = b"" if method == "GET" else self.model_dump_json().encode()
        except (httpx.InvalidURL, PydanticSerializationError, TypeError, ValueError) as error:
            logger.exception("Failed to build %s request for %s", method, path)
            raise ObscuraRequestError.create_build_error(method, path) from error

        return httpx.Request(
            method,
            url,
            headers={
                "Authorization": f"Bearer {auth_token.as_str()}",
                "Content-Type": "application/json",
            },
            content=content,
        )


class GetAccountInfo(Command[AccountInfo]):
    method = "GET"
    path = ACCOUNT_PATH
    output_type = AccountInfo


class ListExits(Command[list[OneExit]]):
    method = "GET"
    path = EXITS_PATH
    output_type = list[OneExit]


class ListExits2(Command[ExitList]):
    """Exit listing in the wrapped `{"exits": [...]}` format."""

    method = "GET"
    path = EXITS2_PATH
    output_type = ExitList


class ListRelays(Command[list[OneRelay]]):
    method = "GET"
    path = RELAYS_PATH
    output_type = list[OneRelay]


class ListPrices(Command[Prices]):
    method = "GET"
    path = PRICES_PATH
    output_type = Prices


class ListTunnels(Command[list[OneTunnel]]):
    method = "GET"
    path = TUNNELS_PATH
    output_type = list[OneTunnel]


class TunnelKind(StrEnum):
    """Tunnel flavours that can be requested."""

    UDP_PORT = "udp_port"
    OBFUSCATED = "obfuscated"


class CreateTunnel(Command[OneTunnel]):
    """Create a tunnel for the given WireGuard public key.

    Relay and exit are chosen by the server unless given explicitly. The
    optional `id` lets the caller pick the tunnel UUID.
    """

    method = "POST"
    path = TUNNELS_PATH
    output_type = OneTunnel

    type: TunnelKind = Field(description="Tunnel flavour")
    id: UUID | None = Field(default=None, description="Caller-chosen tunnel ID")
    wg_pubkey: WgPubkey = Field(description="Client WireGuard public key")
    relay: str | None = Field(default=None, description="Use a specific relay")
    exit: str | None = Field(default=None, description="Use a specific exit")


class DeleteTunnel(Command[None]):
    method = "DELETE"
    path = TUNNELS_PATH
    output_type = None

    id: str = Field(..., min_length=1)


class CreateLightningTopUp(Command[LightningTopUpInfo]):
    method = "POST"
    path = LIGHTNING_TOP_UP_PATH
    output_type = LightningTopUpInfo

    months: int = Field(..., ge=0, le=65535)


class CreateStripeTopUp(Command[StripeTopUpInfo]):
    method = "POST"
    path = STRIPE_TOP_UP_PATH
    output_type = StripeTopUpInfo

    months: int = Field(..., ge=0, le=65535)


class CreateStripeSubscriptionCheckout(Command[CreateStripeSubscriptionCheckoutOutput]):
    method = "POST"
    path = STRIPE_CHECKOUT_PATH
    output_type = CreateStripeSubscriptionCheckoutOutput


class CreateStripeManageSubscriptionSession(Command[CreateStripeManageSubscriptionSessionOutput]):
    method = "POST"
    path = STRIPE_PORTAL_PATH
    output_type = CreateStripeManageSubscriptionSessionOutput

    session_id: str


__all__ = [
    "Command",
    "CreateLightningTopUp",
    "CreateStripeManageSubscriptionSession",
    "CreateStripeSubscriptionCheckout",
    "CreateStripeTopUp",
    "CreateTunnel",
    "DeleteTunnel",
    "GetAccountInfo",
    "HttpMethod",
    "ListExits",
    "ListExits2",
    "ListPrices",
    "ListRelays",
    "ListTunnels",
    "TunnelKind",
]
