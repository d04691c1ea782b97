"""Protocol definitions for Obscura API client mixins.

This module provides typing protocols that enable mixins to reference
base client methods without circular imports, supporting strict pyright
type checking.
"""

from typing import Protocol, TypeVar

from obscura_api.api.commands import Command

OutputT = TypeVar("OutputT")


class BaseClientProtocol(Protocol):
    """Protocol defining the interface that mixins can depend on."""

    async def run(self, command: Command[OutputT]) -> OutputT:
        """Execute a command with a valid auth token.

        Args:
            command: The command to execute

        Returns:
            The command's decoded result
        """
        ...
