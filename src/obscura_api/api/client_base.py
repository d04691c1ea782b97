"""Base client for the Obscura API with HTTP plumbing and token lifecycle.

This module provides the BaseClient class: it owns the HTTP connection, the
auth token cache, token acquisition, and `run`, the single entry point that
executes a typed command. Feature-specific mixins build on `run`.
"""

import asyncio
import logging
import types
from typing import TypeVar

import httpx

from obscura_api.api.auth import AcquireToken, AuthToken, TokenCache
from obscura_api.api.commands import Command
from obscura_api.api.exceptions import ObscuraApiError, ObscuraRequestError
from obscura_api.api.models import CheckResult
from obscura_api.api.responses import parse_response
from obscura_api.config import ClientConfig

# One attempt with the cached token, one with a fresh token, and one more to
# absorb a concurrent invalidation of a token that was valid a moment earlier.
_MAX_AUTH_ATTEMPTS = 3

CHECK_PATH = "check"

OutputT = TypeVar("OutputT")

logger = logging.getLogger(__name__)


class BaseClient:
    """Base client providing HTTP plumbing and auth token handling for the Obscura API.

    A client is bound to one account. Commands may be run concurrently from
    many tasks; only token acquisition is serialized, so at most one
    acquisition request is in flight per client.
    """

    def __init__(self, config: ClientConfig) -> None:
        """Initialize the base Obscura API client.

        Args:
            config: Client configuration containing account ID and base URL
        """
        self._config = config
        self._base_url = config.normalized_base_url()
        self._account_id = config.account_id
        self._http_client: httpx.AsyncClient | None = None
        self._token_cache = TokenCache()
        self._acquiring_auth_token = asyncio.Lock()

    def __str__(self) -> str:
        """Return string representation without exposing credentials."""
        return f"BaseClient(base_url={self._base_url}, account=***redacted***)"

    def __repr__(self) -> str:
        """Return repr without exposing credentials."""
        return f"BaseClient(base_url='{self._base_url}', account='***redacted***')"

    async def __aenter__(self) -> "BaseClient":
        """Async context manager entry."""
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: types.TracebackType | None,
    ) -> None:
        """Async context manager exit with cleanup."""
        await self.aclose()

    async def aclose(self) -> None:
        """Close the underlying HTTP client, if one was created."""
        if self._http_client is not None:
            await self._http_client.aclose()
            self._http_client = None

    def _get_http_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client with proper configuration.

        Returns:
            httpx.AsyncClient: Configured async HTTP client
        """
        if self._http_client is None:
            timeout = httpx.Timeout(
                self._config.timeout_total,
                connect=self._config.timeout_connect,
                read=self._config.timeout_read,
            )

            headers = {"User-Agent": self._config.http_user_agent}

            self._http_client = httpx.AsyncClient(
                timeout=timeout,
                headers=headers,
            )

        return self._http_client

    @staticmethod
    def _get_redacted_headers(request: httpx.Request) -> dict[str, str]:
        """Get request headers with the bearer token redacted for logging.

        Returns:
            Dict[str, str]: Headers with redacted authorization token
        """
        headers = dict(request.headers)
        if "authorization" in headers:
            headers["authorization"] = "Bearer ***redacted***"
        return headers

    async def _send_http(self, request: httpx.Request) -> httpx.Response:
        """Send a prepared request.

        Raises:
            ObscuraRequestError: On connection, timeout or other transport failures
        """
        http_client = self._get_http_client()
        request.headers.setdefault("User-Agent", self._config.http_user_agent)
        request.extensions.setdefault("timeout", http_client.timeout.as_dict())

        logger.debug(
            "Making %s request to %s with headers: %s",
            request.method,
            request.url,
            self._get_redacted_headers(request),
        )

        try:
            return await http_client.send(request)
        except httpx.HTTPError as error:
            logger.warning(
                "Transport error during %s %s: %s",
                request.method,
                request.url,
                type(error).__name__,
            )
            raise ObscuraRequestError.create_transport_error(
                request.method, request.url.path
            ) from error

    def get_auth_token(self) -> AuthToken | None:
        """Return the cached auth token, if any, without network access."""
        return self._token_cache.get()

    def set_auth_token(self, token: AuthToken | None) -> None:
        """Seed or clear the cached auth token out of band."""
        self._token_cache.set(token)

    async def acquire_auth_token(self) -> AuthToken:
        """Return a cached auth token, acquiring a new one if the cache is empty.

        Concurrent callers that find the cache empty wait for a single
        acquisition request and then share its token.

        Returns:
            AuthToken: Token to authenticate the next command

        Raises:
            ObscuraApiError: The API declined to issue a token
            ObscuraProtocolError: The token response was not the JSON envelope
            ObscuraRequestError: The request failed or the token did not decode
        """
        auth_token = self._token_cache.get()
        if auth_token is not None:
            return auth_token

        async with self._acquiring_auth_token:
            auth_token = self._token_cache.get()
            if auth_token is not None:
                return auth_token

            logger.debug("Acquiring new auth token")
            request = AcquireToken(account_id=self._account_id).to_request(self._base_url)
            response = await self._send_http(request)
            token_value: str = await parse_response(response, str)
            auth_token = AuthToken(token_value)
            self._token_cache.set(auth_token)
            logger.info("Acquired new auth token")

        return auth_token

    async def run(self, command: Command[OutputT]) -> OutputT:
        """Execute a command with a valid auth token.

        A `MissingOrInvalidAuthToken` rejection clears the token that was used
        and retries with a freshly acquired one, up to three attempts in
        total. Every other failure is raised on first occurrence.

        Args:
            command: The command to execute

        Returns:
            The command's decoded result

        Raises:
            ObscuraApiError: The API declined the request
            ObscuraProtocolError: The response was not the JSON API envelope
            ObscuraRequestError: Local, transport or decoding failure, or every
                attempt was rejected for an invalid auth token
        """
        for attempt in range(_MAX_AUTH_ATTEMPTS):
            auth_token = await self.acquire_auth_token()
            try:
                return await self._try_run(command, auth_token)
            except ObscuraApiError as error:
                if not error.is_invalid_auth_token:
                    raise
                cleared = self._token_cache.clear_if_equal(auth_token)
                logger.warning(
                    "Auth token rejected for %s %s (attempt %d of %d, cache cleared: %s)",
                    type(command).method,
                    type(command).path,
                    attempt + 1,
                    _MAX_AUTH_ATTEMPTS,
                    cleared,
                )

        logger.error("Exhausted auth token attempts for %s", type(command).__name__)
        raise ObscuraRequestError.repeated_invalid_token()

    async def _try_run(self, command: Command[OutputT], auth_token: AuthToken) -> OutputT:
        request = command.to_request(self._base_url, auth_token)
        response = await self._send_http(request)
        result: OutputT = await parse_response(response, type(command).output_type)
        return result

    async def check(self) -> CheckResult:
        """Check how the API classifies the caller's IP address.

        This call is unauthenticated and does not touch the token cache.

        Returns:
            CheckResult: Whether the caller appears to be on a safe exit
        """
        url = httpx.URL(self._base_url).join(CHECK_PATH)
        response = await self._send_http(httpx.Request("GET", url))
        result: CheckResult = await parse_response(response, CheckResult)
        return result


__all__ = ["BaseClient"]
