"""Server version probing and version-dependent command selection.

Servers before 3.0 only understand `completions`; later ones offer the
richer `completionInfo`. The choice is made once, outside the client, and
injected as a strategy.
"""

from __future__ import annotations

import asyncio
import logging
import os
from collections.abc import Callable
from typing import NamedTuple

from .config import DEFAULT_COMPLETION_COMMAND
from .process import build_command
from .protocol.commands import CommandType

logger = logging.getLogger(__name__)

# Maps a detected server version (or None if unknown) to a completion command
CompletionCommandStrategy = Callable[["ServerVersion | None"], str]

COMPLETION_INFO_MIN_VERSION = (3, 0, 0)


class ServerVersion(NamedTuple):
    major: int
    minor: int
    patch: int

    @classmethod
    def parse(cls, raw: str) -> ServerVersion:
        """Parse `tsc --version` output, e.g. "Version 5.4.2" or "Version 5.5.0-beta".

        Raises:
            ValueError: If no version number can be found
        """
        tokens = raw.strip().split()
        if not tokens:
            raise ValueError("Empty version output")
        number = tokens[-1].split("-")[0]
        parts = number.split(".")
        if len(parts) != 3:
            raise ValueError(f"Unrecognized version: {raw.strip()!r}")
        major, minor, patch = (int(p) for p in parts)
        return cls(major, minor, patch)

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}.{self.patch}"


def select_completion_command(version: ServerVersion | None) -> str:
    """Default CompletionCommandStrategy."""
    if version is None:
        return DEFAULT_COMPLETION_COMMAND
    if version >= COMPLETION_INFO_MIN_VERSION:
        return CommandType.COMPLETION_INFO.value
    return CommandType.COMPLETIONS.value


def compiler_path_for(server_path: str) -> str:
    """Path of the `tsc` that ships next to a `tsserver`."""
    directory, name = os.path.split(server_path)
    return os.path.join(directory, name.replace("tsserver", "tsc"))


async def probe_version(server_path: str) -> ServerVersion:
    """Run the companion compiler's `--version` and parse its output.

    Raises:
        OSError: If the compiler cannot be launched
        ValueError: If it exits non-zero or prints an unrecognized version
    """
    compiler = compiler_path_for(server_path)
    process = await asyncio.create_subprocess_exec(
        *build_command(compiler, ["--version"]),
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
    )
    stdout, stderr = await process.communicate()
    if process.returncode != 0:
        raise ValueError(
            f"{compiler} --version exited with {process.returncode}: "
            f"{stderr.decode('utf-8', 'replace').strip()}"
        )

    version = ServerVersion.parse(stdout.decode("utf-8", "replace"))
    logger.info(f"Detected server version {version} ({compiler})")
    return version
