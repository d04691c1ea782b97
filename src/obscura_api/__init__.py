"""Obscura API - typed async client for the Obscura VPN account and tunnel API."""

from obscura_api.api.client import ObscuraClient
from obscura_api.config import ClientConfig

__version__ = "0.1.0"

__all__ = ["ClientConfig", "ObscuraClient", "__version__"]
