"""Configuration module for the Obscura API client.

This module provides the ClientConfig Pydantic model for managing client
configuration from files, command-line arguments, and defaults.
"""

from importlib.metadata import version
from typing import Any, Literal

from pydantic import BaseModel, Field, HttpUrl, field_validator


class ClientConfig(BaseModel):
    """Client configuration model with validation and default values.

    Holds the account credentials, API base URL, HTTP timeouts and logging
    level. The account ID is a secret: it is the only input needed to obtain
    an auth token, so it is masked in every logged representation.
    """

    account_id: str = Field(
        ...,
        min_length=1,
        description="Obscura account number used to acquire auth tokens",
    )

    base_url: HttpUrl = Field(
        default=HttpUrl("https://v1.api.prod.obscura.net/api/"),
        description="Base URL for Obscura API endpoints",
    )

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level for the application",
    )

    config_file: str | None = Field(
        default=None,
        description="Path to configuration file",
    )

    http_user_agent: str = Field(
        default_factory=lambda: f"obscura-api/{version('obscura-api')}",
        description="HTTP client User-Agent header",
    )

    timeout_total: float = Field(
        default=60.0,
        ge=1.0,
        le=300.0,
        description="Overall HTTP request timeout in seconds",
    )

    timeout_connect: float = Field(
        default=10.0,
        ge=1.0,
        le=60.0,
        description="HTTP connection timeout in seconds",
    )

    timeout_read: float = Field(
        default=10.0,
        ge=1.0,
        le=120.0,
        description="HTTP read timeout in seconds",
    )

    @field_validator("base_url")
    @classmethod
    def validate_https_url(cls, v: HttpUrl) -> HttpUrl:
        """Validate that the base URL uses HTTPS protocol.

        Args:
            v: The URL value to validate.

        Returns:
            HttpUrl: The validated HTTPS URL.

        Raises:
            ValueError: If the URL does not use HTTPS protocol.
        """
        if v.scheme != "https":
            msg = "URL must use HTTPS"
            raise ValueError(msg)
        return v

    def normalized_base_url(self) -> str:
        """Return the base URL with exactly one trailing path separator."""
        base_url = str(self.base_url)
        if not base_url.endswith("/"):
            base_url += "/"
        return base_url

    def to_redacted_dict(self) -> dict[str, Any]:
        """Return a dictionary representation with sensitive data redacted.

        Returns:
            dict[str, Any]: Configuration dictionary with the account ID masked.
        """
        config_dict = self.model_dump()
        config_dict["account_id"] = "***redacted***"
        config_dict["base_url"] = str(config_dict["base_url"])
        return config_dict
