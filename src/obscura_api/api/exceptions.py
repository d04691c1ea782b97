"""Custom exceptions for Obscura API operations.

This module defines the exception hierarchy returned to callers of
`BaseClient.run`. Every failure is one of three kinds:

- `ObscuraApiError`: the API declined the request with a structured error.
- `ObscuraProtocolError`: the response was not the expected JSON envelope,
  most likely a proxy, load balancer or outage page.
- `ObscuraRequestError`: a local, transport or decoding failure.

No message produced here contains the auth token or the account ID.
"""

from __future__ import annotations

from obscura_api.api.models import ApiErrorBody, ApiErrorKindName


class ObscuraClientError(Exception):
    """Base exception for all Obscura API client errors."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        """Initialize Obscura client error.

        Args:
            message: Error message (must not contain secrets)
            status_code: HTTP status code if applicable
        """
        self.status_code = status_code
        super().__init__(message)


class ObscuraApiError(ObscuraClientError):
    """Raised when the API returns a structured error envelope."""

    def __init__(self, status_code: int, body: ApiErrorBody) -> None:
        """Initialize API error.

        Args:
            status_code: Non-success HTTP status code
            body: Parsed error envelope
        """
        self.body = body
        super().__init__(body.msg, status_code=status_code)

    @property
    def kind(self) -> ApiErrorKindName | None:
        """Known error kind, or None for kinds this client does not recognize."""
        return self.body.error.name

    @property
    def is_invalid_auth_token(self) -> bool:
        return self.kind is ApiErrorKindName.MISSING_OR_INVALID_AUTH_TOKEN


class ObscuraProtocolError(ObscuraClientError):
    """Raised when a response does not match the expected API envelope.

    The raw body text is kept for diagnostics; it is not meant to be shown
    to end users verbatim. The underlying failure is chained as `__cause__`.
    """

    def __init__(self, status_code: int, raw: str, reason: str) -> None:
        """Initialize protocol error.

        Args:
            status_code: HTTP status code of the response
            raw: Raw response body text (empty if it could not be read)
            reason: Short description of the mismatch
        """
        self.raw = raw
        self.reason = reason
        super().__init__(f"Unexpected API response: {reason}", status_code=status_code)

    @classmethod
    def non_json(cls, status_code: int, raw: str) -> ObscuraProtocolError:
        """Create an error for a response without the JSON content type."""
        return cls(status_code, raw, f"Non-JSON {status_code} response")

    @classmethod
    def unreadable_body(cls, status_code: int) -> ObscuraProtocolError:
        """Create an error for a response whose body text could not be read."""
        return cls(status_code, "", f"Unreadable {status_code} response body")

    @classmethod
    def malformed_error_body(cls, status_code: int, raw: str) -> ObscuraProtocolError:
        """Create an error for a non-success response that is not a valid error envelope."""
        return cls(status_code, raw, f"Malformed error body in {status_code} response")


class ObscuraRequestError(ObscuraClientError):
    """Raised for request processing failures that are not API or protocol errors."""

    def __init__(self, message: str = "Request processing error", status_code: int | None = None) -> None:
        super().__init__(f"request processing error: {message}", status_code=status_code)

    @classmethod
    def create_build_error(cls, method: str, path: str) -> ObscuraRequestError:
        """Create an error for a request that could not be constructed.

        Args:
            method: HTTP method of the command
            path: Command path relative to the base URL

        Returns:
            ObscuraRequestError with contextual message
        """
        return cls(f"could not construct request (method={method}, path={path})")

    @classmethod
    def create_transport_error(cls, method: str, path: str) -> ObscuraRequestError:
        """Create an error for a request that failed in transit."""
        return cls(f"error executing request (method={method}, path={path})")

    @classmethod
    def create_parse_error(cls, status_code: int, output: str) -> ObscuraRequestError:
        """Create an error for a success response that could not be decoded.

        Args:
            status_code: HTTP status code of the response
            output: Name of the expected result type

        Returns:
            ObscuraRequestError with contextual message
        """
        return cls(
            f"failed to parse response (status={status_code}, expected={output})",
            status_code=status_code,
        )

    @classmethod
    def repeated_invalid_token(cls) -> ObscuraRequestError:
        """Create an error for exhausting the invalid-token retry budget."""
        return cls("repeatedly acquired invalid auth token")
