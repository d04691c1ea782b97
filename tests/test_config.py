# ruff: noqa: PLR2004
"""Tests for the configuration module.

This module contains tests for the ClientConfig Pydantic model and the
TOML configuration loading used by the command-line client.
"""

import argparse
import tempfile
from pathlib import Path

import pytest
from pydantic import HttpUrl, ValidationError
from pytest_mock import MockerFixture

from obscura_api.config import ClientConfig
from obscura_api.main import load_configuration
from tests.test_api_client_common import TEST_ACCOUNT_ID


def _args(config_file: str | None = None, **overrides: str | None) -> argparse.Namespace:
    values: dict[str, str | None] = {
        "config_file": config_file,
        "log_level": None,
        "base_url": None,
        "account_id": None,
    }
    values.update(overrides)
    return argparse.Namespace(**values)


def _write_toml(content: str) -> str:
    with tempfile.NamedTemporaryFile(mode="w", suffix=".toml", delete=False) as f:
        f.write(content)
        return f.name


class TestClientConfigModel:
    """Test suite for the ClientConfig Pydantic model."""

    def test_client_config_default_values(self) -> None:
        """Test that ClientConfig initializes with correct default values."""
        config = ClientConfig(account_id=TEST_ACCOUNT_ID)

        assert str(config.base_url) == "https://v1.api.prod.obscura.net/api/"
        assert config.log_level == "INFO"
        assert config.config_file is None
        assert config.timeout_total == 60.0
        assert config.timeout_connect == 10.0
        assert config.timeout_read == 10.0
        assert config.http_user_agent.startswith("obscura-api/")

    def test_client_config_required_account_id(self) -> None:
        """Test that account_id is required and raises ValidationError when missing."""
        with pytest.raises(ValidationError) as exc_info:
            ClientConfig()  # type: ignore[call-arg] - testing missing required parameter

        errors = exc_info.value.errors()
        assert len(errors) == 1
        assert errors[0]["type"] == "missing"
        assert "account_id" in str(errors[0]["loc"])

    def test_client_config_empty_account_id(self) -> None:
        """Test that an empty account ID is rejected."""
        with pytest.raises(ValidationError):
            ClientConfig(account_id="")

    def test_client_config_base_url_validation_https_only(self) -> None:
        """Test that base_url must be an absolute HTTPS URL."""
        config = ClientConfig(
            account_id=TEST_ACCOUNT_ID,
            base_url=HttpUrl("https://api.example.com/api/"),
        )
        assert str(config.base_url) == "https://api.example.com/api/"

        # Invalid: HTTP URL
        with pytest.raises(ValidationError):
            ClientConfig(
                account_id=TEST_ACCOUNT_ID,
                base_url="http://api.example.com/api/",  # type: ignore[arg-type] - testing invalid HTTP URL
            )

        # Invalid: relative URL
        with pytest.raises(ValidationError):
            ClientConfig(
                account_id=TEST_ACCOUNT_ID,
                base_url="/api/",  # type: ignore[arg-type] - testing invalid relative URL
            )

    def test_normalized_base_url_adds_trailing_separator(self) -> None:
        """Test that command paths resolve beneath the base path."""
        config = ClientConfig(
            account_id=TEST_ACCOUNT_ID,
            base_url=HttpUrl("https://api.example.com/api"),
        )

        assert config.normalized_base_url() == "https://api.example.com/api/"

    def test_timeout_validation(self) -> None:
        """Test that timeouts are bounded."""
        with pytest.raises(ValidationError) as exc_info:
            ClientConfig(account_id=TEST_ACCOUNT_ID, timeout_connect=0.5)
        errors = exc_info.value.errors()
        assert any("greater_than_equal" in str(error) for error in errors)

        with pytest.raises(ValidationError) as exc_info:
            ClientConfig(account_id=TEST_ACCOUNT_ID, timeout_total=301.0)
        errors = exc_info.value.errors()
        assert any("less_than_equal" in str(error) for error in errors)

    def test_client_config_log_level_validation(self) -> None:
        """Test that log_level accepts only valid logging levels."""
        for level in ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]:
            config = ClientConfig(account_id=TEST_ACCOUNT_ID, log_level=level)  # type: ignore[arg-type] - loop variable type issue
            assert config.log_level == level

        with pytest.raises(ValidationError):
            ClientConfig(account_id=TEST_ACCOUNT_ID, log_level="INVALID")  # type: ignore[arg-type] - testing invalid log level

    def test_client_config_to_redacted_dict(self) -> None:
        """Test that to_redacted_dict() masks the account ID."""
        config = ClientConfig(
            account_id=TEST_ACCOUNT_ID,
            base_url=HttpUrl("https://api.example.com/api/"),
            log_level="DEBUG",
            config_file="./custom.toml",
        )

        redacted = config.to_redacted_dict()

        assert redacted["account_id"] == "***redacted***"
        assert redacted["base_url"] == "https://api.example.com/api/"
        assert redacted["log_level"] == "DEBUG"
        assert redacted["config_file"] == "./custom.toml"
        assert TEST_ACCOUNT_ID not in str(redacted)


class TestConfigurationLoading:
    """Test suite for configuration file loading functionality."""

    def test_load_configuration_defaults_only(self, mocker: MockerFixture) -> None:
        """Test that defaults alone fail because no account ID is configured."""
        mocker.patch("pathlib.Path.exists", return_value=False)

        with pytest.raises(SystemExit) as exc_info:
            load_configuration(_args())

        assert exc_info.value.code == 1

    def test_load_configuration_missing_file_explicit_path(self, mocker: MockerFixture) -> None:
        """Test that explicitly specified missing config file causes exit."""
        mocker.patch("pathlib.Path.exists", return_value=False)

        with pytest.raises(SystemExit) as exc_info:
            load_configuration(_args("./nonexistent.toml", account_id=TEST_ACCOUNT_ID))

        assert exc_info.value.code == 1

    def test_load_configuration_valid_toml_file(self, temp_config_file: str) -> None:
        """Test loading configuration from valid TOML file."""
        config = load_configuration(_args(temp_config_file))

        assert config.account_id == TEST_ACCOUNT_ID
        assert str(config.base_url) == "https://file.test.obscura.net/api/"
        assert config.log_level == "DEBUG"
        assert config.config_file == temp_config_file

    def test_load_configuration_cli_overrides_file(self, temp_config_file: str) -> None:
        """Test that CLI arguments override file values."""
        args = _args(
            temp_config_file,
            log_level="ERROR",
            base_url="https://cli.test.obscura.net/api/",
            account_id="00000000000000000002",
        )

        config = load_configuration(args)

        assert config.account_id == "00000000000000000002"
        assert str(config.base_url) == "https://cli.test.obscura.net/api/"
        assert config.log_level == "ERROR"

    def test_load_configuration_unknown_keys_rejection(self) -> None:
        """Test that unknown keys in TOML file cause exit with error."""
        temp_path = _write_toml(f'account_id = "{TEST_ACCOUNT_ID}"\nunknown_key = "value"\n')

        try:
            with pytest.raises(SystemExit) as exc_info:
                load_configuration(_args(temp_path))

            assert exc_info.value.code == 1
        finally:
            Path(temp_path).unlink()

    def test_load_configuration_config_file_key_rejected(self) -> None:
        """Test that the config file path cannot be set from inside a file."""
        temp_path = _write_toml(
            f'account_id = "{TEST_ACCOUNT_ID}"\nconfig_file = "./other.toml"\n'
        )

        try:
            with pytest.raises(SystemExit) as exc_info:
                load_configuration(_args(temp_path))

            assert exc_info.value.code == 1
        finally:
            Path(temp_path).unlink()

    def test_load_configuration_invalid_toml_format(self) -> None:
        """Test that invalid TOML format causes exit with error."""
        temp_path = _write_toml('account_id = "token"\nbase_url = [invalid toml syntax\n')

        try:
            with pytest.raises(SystemExit) as exc_info:
                load_configuration(_args(temp_path))

            assert exc_info.value.code == 1
        finally:
            Path(temp_path).unlink()

    def test_load_configuration_default_toml_discovery(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Test that ./obscura.toml is discovered when --config-file is not provided."""
        (tmp_path / "obscura.toml").write_text(f'account_id = "{TEST_ACCOUNT_ID}"\n')
        monkeypatch.chdir(tmp_path)

        config = load_configuration(_args())

        assert config.account_id == TEST_ACCOUNT_ID
        assert config.config_file == "./obscura.toml"

    def test_load_configuration_validation_failure_exit(self) -> None:
        """Test that ClientConfig validation errors cause exit."""
        temp_path = _write_toml(
            f'account_id = "{TEST_ACCOUNT_ID}"\nbase_url = "http://insecure.example.com/"\n'
        )

        try:
            with pytest.raises(SystemExit) as exc_info:
                load_configuration(_args(temp_path))

            assert exc_info.value.code == 1
        finally:
            Path(temp_path).unlink()

    def test_load_configuration_effective_config_logging(
        self, temp_config_file: str, mocker: MockerFixture
    ) -> None:
        """Test that effective configuration is logged with redaction."""
        mock_logger = mocker.patch("obscura_api.main.logger")

        config = load_configuration(_args(temp_config_file))

        mock_logger.info.assert_called_with(
            "Effective configuration: %s",
            config.to_redacted_dict(),
        )
        for call in mock_logger.info.call_args_list:
            assert TEST_ACCOUNT_ID not in str(call)
