"""Command-line entry point for the Obscura API client.

Results are written to stdout as JSON (or WireGuard configuration text);
progress messages and logs go to stderr.

Exit Codes:
    0: Normal successful termination
    1: Configuration failures (TOML parse errors, validation failures, missing
       explicitly requested files, unknown configuration keys), API errors, or
       unhandled exceptions
"""

import argparse
import asyncio
import logging
import shutil
import subprocess
import sys
import tomllib
from collections.abc import Sequence
from pathlib import Path
from typing import Any, TextIO

import qrcode
from pydantic_core import to_json

from obscura_api.api.client import ObscuraClient
from obscura_api.api.commands import TunnelKind
from obscura_api.api.exceptions import ObscuraClientError
from obscura_api.api.models import UdpPortTunnelConfig, WgPubkey
from obscura_api.config import ClientConfig
from obscura_api.wg_conf import build_wg_conf

DEFAULT_CONFIG_FILE = "./obscura.toml"

logger = logging.getLogger(__name__)


def setup_logging(log_level: str) -> None:
    """Configure logging to direct all output to stderr.

    Stdout is reserved for command output so it can be piped.
    """
    logging.basicConfig(
        level=getattr(logging, log_level),
        format="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
        stream=sys.stderr,
    )


def _get_known_config_fields() -> set[str]:
    """Get the set of known configuration field names.

    Returns:
        set[str]: Set of valid configuration field names for TOML validation.
    """
    return set(ClientConfig.model_fields) - {"config_file"}


def _load_config_from_file(config_file: str) -> dict[str, Any]:
    """Load configuration from TOML file with validation.

    Args:
        config_file: Path to the configuration file.

    Returns:
        dict[str, Any]: Configuration data loaded from file.

    Raises:
        SystemExit: On file parsing errors or unknown configuration keys.
    """
    config_data: dict[str, Any] = {}
    config_path = Path(config_file)

    if config_path.exists():
        try:
            with config_path.open("rb") as f:
                file_config = tomllib.load(f)

            unknown_keys = set(file_config.keys()) - _get_known_config_fields()
            if unknown_keys:
                logger.error(
                    "Unknown configuration keys in %s: %s",
                    config_path,
                    ", ".join(sorted(unknown_keys)),
                )
                sys.exit(1)

            config_data.update(file_config)
            logger.info("Loaded configuration from %s", config_path)
        except tomllib.TOMLDecodeError:
            logger.exception("Failed to parse TOML configuration file %s", config_path)
            sys.exit(1)
        except OSError:
            logger.exception("Failed to read configuration file %s", config_path)
            sys.exit(1)

    return config_data


def _apply_cli_overrides(config_data: dict[str, Any], args: argparse.Namespace) -> None:
    """Apply CLI argument overrides to configuration data.

    Args:
        config_data: Configuration data dictionary to modify.
        args: Parsed command-line arguments.
    """
    if args.log_level is not None:
        config_data["log_level"] = args.log_level
    if getattr(args, "base_url", None) is not None:
        config_data["base_url"] = args.base_url
    if getattr(args, "account_id", None) is not None:
        config_data["account_id"] = args.account_id


def _create_validated_config(config_data: dict[str, Any]) -> ClientConfig:
    """Create and validate ClientConfig from configuration data.

    Raises:
        SystemExit: On configuration validation errors.
    """
    try:
        config = ClientConfig(**config_data)
    except Exception:
        logger.exception("Configuration validation failed")
        sys.exit(1)
    else:
        logger.info("Effective configuration: %s", config.to_redacted_dict())
        return config


def load_configuration(args: argparse.Namespace) -> ClientConfig:
    """Load configuration from defaults, file, and CLI arguments with proper precedence.

    Precedence order (CLI > file > defaults):
    1. Command-line arguments (highest priority)
    2. Configuration file values
    3. Default values (lowest priority)

    Args:
        args: Parsed command-line arguments.

    Returns:
        ClientConfig: Loaded and validated configuration.

    Raises:
        SystemExit: On configuration validation errors or file parsing errors.
    """
    config_file = args.config_file or DEFAULT_CONFIG_FILE

    if args.config_file and not Path(config_file).exists():
        logger.error("Configuration file not found: %s", config_file)
        sys.exit(1)

    config_data = _load_config_from_file(config_file)
    _apply_cli_overrides(config_data, args)
    config_data["config_file"] = config_file

    return _create_validated_config(config_data)


def parse_cli_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments.

    Args:
        argv: Argument list (defaults to sys.argv[1:]).

    Returns:
        argparse.Namespace: Parsed command-line arguments.
    """
    parser = argparse.ArgumentParser(
        description="Obscura API example client",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--config-file",
        type=str,
        help=f"Path to configuration file (default: {DEFAULT_CONFIG_FILE})",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Logging level",
    )
    parser.add_argument(
        "--base-url",
        type=str,
        help="Override API base URL (e.g., https://v1.api.prod.obscura.net/api/)",
    )
    parser.add_argument(
        "--account-id",
        type=str,
        help="Override account number used to acquire auth tokens",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)
    subparsers.add_parser("list-exits", help="List exit locations")
    subparsers.add_parser("list-relays", help="List relays")
    subparsers.add_parser("list-tunnels", help="List existing tunnels")

    create = subparsers.add_parser("create-tunnel", help="Create a new tunnel")
    create.add_argument(
        "--obfuscated", action="store_true", help="Create an obfuscated tunnel"
    )
    create.add_argument(
        "--wg-conf",
        action="store_true",
        help="Print WireGuard configuration to stdout (tunnel JSON to stderr)",
    )
    create.add_argument("--relay", type=str, help="Use a specific relay")
    create.add_argument("--exit", type=str, help="Use a specific exit")

    subparsers.add_parser("delete-all-tunnels", help="Delete every existing tunnel")

    top_up = subparsers.add_parser("top-up", help="Create a Lightning top-up invoice")
    top_up.add_argument("--months", type=int, required=True, help="Months of credit to buy")

    return parser.parse_args(argv)


def generate_wg_keypair() -> tuple[str, str]:
    """Generate a WireGuard key pair with the `wg` tool.

    Returns:
        (private_key, public_key), both base64

    Raises:
        RuntimeError: If `wg` is missing or fails
    """
    if shutil.which("wg") is None:
        msg = "wg command not available; install wireguard-tools"
        raise RuntimeError(msg)
    try:
        private_key = subprocess.run(
            ["wg", "genkey"], capture_output=True, text=True, check=True
        ).stdout.strip()
        public_key = subprocess.run(
            ["wg", "pubkey"], input=private_key, capture_output=True, text=True, check=True
        ).stdout.strip()
    except subprocess.CalledProcessError as error:
        msg = f"failed to generate WireGuard key pair: {error.stderr.strip()}"
        raise RuntimeError(msg) from error
    return private_key, public_key


def _print_json(value: Any, *, stream: TextIO | None = None) -> None:
    print(to_json(value, indent=2).decode(), file=stream or sys.stdout)


def _print_qr_code(data: str) -> None:
    qr = qrcode.QRCode(border=1)
    qr.add_data(data)
    qr.make(fit=True)
    qr.print_ascii(out=sys.stderr)


async def _create_tunnel(client: ObscuraClient, args: argparse.Namespace) -> None:
    private_key, public_key = generate_wg_keypair()
    kind = TunnelKind.OBFUSCATED if args.obfuscated else TunnelKind.UDP_PORT
    if kind is TunnelKind.OBFUSCATED:
        print("Created private key", file=sys.stderr)
        print(private_key, file=sys.stderr)
    elif not args.wg_conf:
        print("Created private key", file=sys.stderr)
        print(private_key)

    tunnel = await client.create_tunnel(
        WgPubkey.from_base64(public_key), kind=kind, relay=args.relay, exit_id=args.exit
    )
    print(f"Created tunnel {tunnel.id}", file=sys.stderr)

    if not args.wg_conf:
        _print_json(tunnel)
        return

    _print_json(tunnel, stream=sys.stderr)
    if not isinstance(tunnel.config, UdpPortTunnelConfig):
        msg = f"unexpected tunnel config type: {tunnel.config.type}"
        raise RuntimeError(msg)
    print(build_wg_conf(tunnel.id, private_key, tunnel.config.client, tunnel.config.server))


async def run_command(client: ObscuraClient, args: argparse.Namespace) -> None:
    """Run the selected subcommand against the API."""
    print("Get account info", file=sys.stderr)
    account_info = await client.get_account_info()
    _print_json(account_info, stream=sys.stderr)

    if args.command == "list-exits":
        _print_json(await client.list_exits())
    elif args.command == "list-relays":
        _print_json(await client.list_relays())
    elif args.command == "list-tunnels":
        _print_json(await client.list_tunnels())
    elif args.command == "create-tunnel":
        await _create_tunnel(client, args)
    elif args.command == "delete-all-tunnels":
        tunnels = await client.list_tunnels()
        tunnel_ids = [tunnel.id for tunnel in tunnels]
        print(f"IDs: {tunnel_ids}", file=sys.stderr)
        for tunnel_id in tunnel_ids:
            print(f"Deleting tunnel {tunnel_id}", file=sys.stderr)
            await client.delete_tunnel(tunnel_id)
    elif args.command == "top-up":
        print("Creating top up invoice", file=sys.stderr)
        top_up = await client.create_lightning_top_up(args.months)
        print(top_up.invoice)
        _print_qr_code(top_up.invoice)


async def _run(config: ClientConfig, args: argparse.Namespace) -> None:
    async with ObscuraClient(config) as client:
        await run_command(client, args)


def main(argv: Sequence[str] | None = None) -> None:
    """Main entry point for the Obscura API CLI."""
    args = parse_cli_args(argv)
    setup_logging(args.log_level or "WARNING")

    try:
        config = load_configuration(args)
        logging.getLogger().setLevel(getattr(logging, config.log_level))
        asyncio.run(_run(config, args))
    except KeyboardInterrupt:
        logger.info("Interrupted")
    except ObscuraClientError as error:
        logger.error("Obscura API request failed: %s", error)
        sys.exit(1)
    except Exception:
        logger.exception("Unhandled exception")
        sys.exit(1)


if __name__ == "__main__":
    main()
