"""Client configuration.

Settings can be given explicitly or read from the environment:

    TSSERVER_PATH              Server executable (default: "tsserver")
    TSSERVER_ARGS              Extra launch arguments, shell-quoted
    TSSERVER_CWD               Working directory for the server process
    TSSERVER_REQUEST_TIMEOUT   Seconds to wait for a response (unset: forever)
"""

from __future__ import annotations

import logging
import os
import shlex
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)

DEFAULT_SERVER_PATH = "tsserver"
DEFAULT_COMPLETION_COMMAND = "completionInfo"
DISABLE_TYPING_ACQUISITION_FLAG = "--disableAutomaticTypingAcquisition"

# Responses for large projects easily exceed asyncio's 64 KiB line default.
DEFAULT_MAX_LINE_BYTES = 16 * 1024 * 1024


@dataclass
class ClientConfig:
    """Configuration for ProtocolClient."""

    # Process launch
    server_path: str = DEFAULT_SERVER_PATH
    server_args: list[str] = field(default_factory=list)
    working_directory: str | None = None
    env: dict[str, str] | None = None  # merged over os.environ

    # Protocol
    completion_command: str = DEFAULT_COMPLETION_COMMAND
    max_line_bytes: int = DEFAULT_MAX_LINE_BYTES

    # Failure policy
    request_timeout: float | None = None
    fail_pending_on_exit: bool = True
    stop_timeout: float = 5.0

    @classmethod
    def from_env(cls) -> ClientConfig:
        """Build a config from TSSERVER_* environment variables."""
        config = cls()
        if server_path := os.getenv("TSSERVER_PATH"):
            config.server_path = server_path
        if server_args := os.getenv("TSSERVER_ARGS"):
            config.server_args = shlex.split(server_args)
        if cwd := os.getenv("TSSERVER_CWD"):
            config.working_directory = cwd
        if timeout := os.getenv("TSSERVER_REQUEST_TIMEOUT"):
            try:
                config.request_timeout = float(timeout)
            except ValueError:
                logger.warning(f"Ignoring invalid TSSERVER_REQUEST_TIMEOUT: {timeout!r}")
        return config

    def launch_args(self) -> list[str]:
        """Arguments passed to the server, including the fixed flags."""
        return [*self.server_args, DISABLE_TYPING_ACQUISITION_FLAG]


def resolve_server_path(path: str) -> str | None:
    """Normalize a server path, returning it only if it exists on disk."""
    normalized = os.path.normpath(os.path.expanduser(path))
    if os.path.exists(normalized):
        return normalized
    logger.debug(f"Server path does not exist: {normalized}")
    return None
