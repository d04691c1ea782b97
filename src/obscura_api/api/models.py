"""Data models for Obscura API requests and responses.

This module defines Pydantic models and enums used to parse and validate
Obscura API data. Unknown top-level fields in any response are ignored so
older clients keep working against newer servers. Enumerations that the
server may extend (`IpType`, `ApiErrorKind`) decode unrecognized values into
a catch-all instead of failing.
"""

from __future__ import annotations

import base64
import binascii
from enum import StrEnum
from ipaddress import IPv4Address, IPv4Interface, IPv6Address, IPv6Interface
from typing import Annotated, Any, Literal

from pydantic import (
    AfterValidator,
    BaseModel,
    Field,
    GetCoreSchemaHandler,
    IPvAnyAddress,
    IPvAnyInterface,
    JsonValue,
    RootModel,
    field_validator,
)
from pydantic_core import core_schema

WG_PUBKEY_LENGTH = 32


class ParseWgPubkeyError(ValueError):
    """Base error for WireGuard public key decoding failures."""


class InvalidWgPubkeyLengthError(ParseWgPubkeyError):
    """Raised when a decoded key does not have exactly 32 bytes."""

    def __init__(self, actual: int) -> None:
        """Initialize length mismatch error.

        Args:
            actual: Number of bytes the input decoded to
        """
        self.expected = WG_PUBKEY_LENGTH
        self.actual = actual
        super().__init__(f"expected {WG_PUBKEY_LENGTH} bytes, found {actual}")


class WgPubkeyNotBase64Error(ParseWgPubkeyError):
    """Raised when a key string is not valid standard base64."""

    def __init__(self, reason: str) -> None:
        super().__init__(f"base64 decode err: {reason}")


class WgPubkey:
    """A WireGuard public key: 32 raw bytes, exchanged as standard base64."""

    __slots__ = ("_raw",)

    def __init__(self, raw: bytes) -> None:
        if len(raw) != WG_PUBKEY_LENGTH:
            raise InvalidWgPubkeyLengthError(len(raw))
        self._raw = bytes(raw)

    @classmethod
    def from_base64(cls, encoded: str) -> WgPubkey:
        """Decode a base64 key string.

        Raises:
            WgPubkeyNotBase64Error: If the string is not valid base64
            InvalidWgPubkeyLengthError: If it does not decode to 32 bytes
        """
        try:
            raw = base64.b64decode(encoded, validate=True)
        except (binascii.Error, ValueError) as error:
            raise WgPubkeyNotBase64Error(str(error)) from error
        return cls(raw)

    @property
    def raw(self) -> bytes:
        return self._raw

    def __str__(self) -> str:
        return base64.b64encode(self._raw).decode("ascii")

    def __repr__(self) -> str:
        return f"WgPubkey('{self}')"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, WgPubkey):
            return NotImplemented
        return self._raw == other._raw

    def __hash__(self) -> int:
        return hash(self._raw)

    @classmethod
    def __get_pydantic_core_schema__(
        cls, source_type: Any, handler: GetCoreSchemaHandler
    ) -> core_schema.CoreSchema:
        from_str = core_schema.no_info_after_validator_function(
            cls.from_base64, core_schema.str_schema()
        )
        return core_schema.json_or_python_schema(
            json_schema=from_str,
            python_schema=core_schema.union_schema(
                [core_schema.is_instance_schema(cls), from_str]
            ),
            serialization=core_schema.plain_serializer_function_ser_schema(str),
        )


MAX_PORT = 65535


def _parse_socket_addr(value: str) -> IPv4Address | IPv6Address:
    """Parse "1.2.3.4:51820" or "[::1]:51820" and return the host address.

    Raises:
        ValueError: If the port or host is not valid
    """
    host, separator, port = value.rpartition(":")
    if not separator or not (port.isascii() and port.isdigit()) or int(port) > MAX_PORT:
        msg = f"invalid socket address port: {value!r}"
        raise ValueError(msg)
    if host.startswith("[") and host.endswith("]"):
        return IPv6Address(host[1:-1])
    return IPv4Address(host)


def _validate_socket_addr(value: str) -> str:
    _parse_socket_addr(value)
    return value


def _validate_socket_addr_v4(value: str) -> str:
    if not isinstance(_parse_socket_addr(value), IPv4Address):
        msg = f"expected an IPv4 socket address: {value!r}"
        raise ValueError(msg)
    return value


def _validate_socket_addr_v6(value: str) -> str:
    if not isinstance(_parse_socket_addr(value), IPv6Address):
        msg = f"expected an IPv6 socket address: {value!r}"
        raise ValueError(msg)
    return value


# Socket addresses are kept in their wire form: "1.2.3.4:51820" or "[::1]:51820"
SocketAddr = Annotated[str, AfterValidator(_validate_socket_addr)]
SocketAddrV4 = Annotated[str, AfterValidator(_validate_socket_addr_v4)]
SocketAddrV6 = Annotated[str, AfterValidator(_validate_socket_addr_v6)]


class ApiErrorKindName(StrEnum):
    """Error kinds this client knows how to branch on."""

    ACCOUNT_EXPIRED = "AccountExpired"
    BAD_REQUEST = "BadRequest"
    INTERNAL_ERROR = "InternalError"
    MISSING_OR_INVALID_AUTH_TOKEN = "MissingOrInvalidAuthToken"
    NO_API_ROUTE = "NoApiRoute"
    NO_MATCHING_EXIT = "NoMatchingExit"
    RATE_LIMIT_EXCEEDED = "RateLimitExceeded"
    SIGNUP_LIMIT_EXCEEDED = "SignupLimitExceeded"
    TUNNEL_LIMIT_EXCEEDED = "TunnelLimitExceeded"


def _known_kind_name(value: JsonValue) -> ApiErrorKindName | None:
    """Return the known kind a raw `error` value names, if any.

    Known kinds are single-key objects whose value is itself an object,
    e.g. `{"AccountExpired": {}}`.
    """
    if not isinstance(value, dict) or len(value) != 1:
        return None
    ((tag, inner),) = value.items()
    if not isinstance(inner, dict):
        return None
    try:
        return ApiErrorKindName(tag)
    except ValueError:
        return None


class ApiErrorKind(RootModel[JsonValue]):
    """Discriminated error kind from an API error envelope.

    Known kinds are normalized to `{"<Name>": {}}`; fields a newer server adds
    inside a known kind are dropped. Any other JSON value is an unknown kind
    and is kept verbatim, so it re-encodes to exactly what was received.
    """

    @field_validator("root")
    @classmethod
    def _normalize_known_kind(cls, value: JsonValue) -> JsonValue:
        name = _known_kind_name(value)
        if name is not None:
            return {name.value: {}}
        return value

    @classmethod
    def of(cls, name: ApiErrorKindName) -> ApiErrorKind:
        """Build a known error kind."""
        return cls({name.value: {}})

    @classmethod
    def unknown(cls, raw: JsonValue) -> ApiErrorKind:
        """Build a kind from an arbitrary raw value (may still resolve to a known kind)."""
        return cls(raw)

    @property
    def name(self) -> ApiErrorKindName | None:
        """Known kind name, or None when the server sent a kind this client does not know."""
        return _known_kind_name(self.root)

    @property
    def is_unknown(self) -> bool:
        return self.name is None

    @property
    def raw(self) -> JsonValue:
        return self.root


class ApiErrorBody(BaseModel):
    """Structured error returned by the API on non-success responses."""

    error: ApiErrorKind = Field(description="Machine-readable error kind")
    msg: str = Field(description="Human-readable message, safe to show to end users")
    detail: str | None = Field(
        default=None, description="Debugging information, not intended for end users"
    )

    def to_json(self) -> str:
        """Serialize to the wire envelope, omitting an absent detail."""
        return self.model_dump_json(exclude_none=True)


class TopUp(BaseModel):
    """Prepaid credit on an account."""

    credit_expires_at: int = Field(description="Credit expiry, seconds since unix epoch")


class Subscription(BaseModel):
    """Recurring subscription state of an account."""

    status: str = Field(description="Payment provider subscription status")
    current_period_start: int = Field(description="Period start, seconds since unix epoch")
    current_period_end: int = Field(description="Period end, seconds since unix epoch")
    cancel_at_period_end: bool = Field(description="Whether the subscription ends this period")


class AccountInfo(BaseModel):
    """Account status as returned by `GET account`."""

    id: str
    active: bool
    top_up: TopUp | None = None
    subscription: Subscription | None = None


class OneExit(BaseModel):
    """An exit location."""

    id: str
    country_code: str
    city_code: str
    city_name: str


class ExitList(BaseModel):
    """Wrapped exit listing returned by `GET exits2`."""

    exits: list[OneExit]


class RelayPreferredExit(BaseModel):
    id: str


class OneRelay(BaseModel):
    """A relay server and the exits it prefers."""

    id: str
    ip_v4: IPv4Address
    ip_v6: IPv6Address
    preferred_exits: list[RelayPreferredExit] = Field(default_factory=list)


class _TunnelStatusBase(BaseModel):
    when: int = Field(description="Timestamp when this status was last updated")


class TunnelCreated(_TunnelStatusBase):
    """The tunnel has been created but not used yet."""

    type: Literal["created"] = "created"


class TunnelConnected(_TunnelStatusBase):
    """The tunnel is in use.

    `when` is the time the status was last updated, not the last connection time.
    """

    type: Literal["connected"] = "connected"


class TunnelDisconnected(_TunnelStatusBase):
    type: Literal["disconnected"] = "disconnected"


TunnelStatus = Annotated[
    TunnelCreated | TunnelConnected | TunnelDisconnected,
    Field(discriminator="type"),
]


class WgClientConfig(BaseModel):
    """Client side of a plain WireGuard tunnel."""

    wg_pubkey: WgPubkey
    addresses: list[IPvAnyInterface]


class WgServerConfig(BaseModel):
    """Server side of a plain WireGuard tunnel."""

    wg_pubkey: WgPubkey
    endpoints: list[SocketAddr]
    dnses: list[IPvAnyAddress]


class UdpPortTunnelConfig(BaseModel):
    type: Literal["udp_port"] = "udp_port"
    client: WgClientConfig
    server: WgServerConfig


class ObfuscatedTunnelConfig(BaseModel):
    """Tunnel carried through a relay with an obfuscated transport."""

    type: Literal["obfuscated"] = "obfuscated"
    client_pubkey: WgPubkey
    client_ips_v4: list[IPv4Interface]
    client_ips_v6: list[IPv6Interface]
    dns: list[IPvAnyAddress]
    relay_addr_v4: SocketAddrV4
    relay_addr_v6: SocketAddrV6
    relay_cert: str
    exit_pubkey: WgPubkey


TunnelConfig = Annotated[
    UdpPortTunnelConfig | ObfuscatedTunnelConfig,
    Field(discriminator="type"),
]


class OneTunnel(BaseModel):
    """A tunnel owned by the account."""

    id: str
    status: TunnelStatus
    config: TunnelConfig
    relay: OneRelay
    exit: OneExit


class Sale(BaseModel):
    title: str = Field(description='Example: "Launch Sale"')
    summary: str


class Price(BaseModel):
    """Price of a number of months of service."""

    months: int = Field(ge=0, le=65535)
    usd_cents: int = Field(ge=0)
    regular_usd_cents: int = Field(
        ge=0, description="Undiscounted price, purely informational"
    )
    sale: Sale | None = None


class Prices(BaseModel):
    """Price table returned by `GET prices`."""

    subscription: list[Price]
    top_up: list[Price]
    sale: Sale | None = Field(default=None, description="A global sale description")


class LightningTopUpInfo(BaseModel):
    invoice: str


class StripeTopUpInfo(BaseModel):
    payment_intent_client_secret: str


class CreateStripeSubscriptionCheckoutOutput(BaseModel):
    checkout_url: str


class CreateStripeManageSubscriptionSessionOutput(BaseModel):
    portal_url: str


class IpType(StrEnum):
    """Classification of the requesting IP returned by the check endpoint."""

    MULLVAD = "Mullvad"
    UNKNOWN = "Unknown"
    # Catch-all for types added server-side after this client was released
    OTHER = "Other"

    @classmethod
    def _missing_(cls, value: object) -> IpType:
        return cls.OTHER


class CheckResult(BaseModel):
    """Result of the unauthenticated IP check."""

    is_safe: bool = Field(
        description="Whether traffic is coming from a known range rather than an unknown IP"
    )
    ip: str
    ip_type: IpType
