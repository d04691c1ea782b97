"""Pytest fixtures and configuration for the test suite."""

import tempfile
from collections.abc import Generator
from pathlib import Path

import pytest

from obscura_api.api.client import ObscuraClient
from obscura_api.config import ClientConfig
from tests.test_api_client_common import DEFAULT_API_URL, TEST_ACCOUNT_ID


@pytest.fixture
def config() -> ClientConfig:
    """Provide a ClientConfig instance for testing.

    Returns:
        ClientConfig: A ClientConfig instance with test values.
    """
    return ClientConfig(
        account_id=TEST_ACCOUNT_ID,
        base_url=DEFAULT_API_URL,
    )


@pytest.fixture
def client(config: ClientConfig) -> ObscuraClient:
    """Provide an ObscuraClient instance for testing.

    Args:
        config: A ClientConfig fixture.

    Returns:
        ObscuraClient: An ObscuraClient instance.
    """
    return ObscuraClient(config)


@pytest.fixture
def temp_config_file() -> Generator[str, None, None]:
    """Create a temporary config file for CLI configuration tests.

    Yields:
        str: Path to a temporary TOML config file.
    """
    config_content = f"""
account_id = "{TEST_ACCOUNT_ID}"
base_url = "https://file.test.obscura.net/api/"
log_level = "DEBUG"
"""
    with tempfile.NamedTemporaryFile(mode="w", suffix=".toml", delete=False) as f:
        f.write(config_content)
        temp_path = f.name

    try:
        yield temp_path
    finally:
        Path(temp_path).unlink(missing_ok=True)
