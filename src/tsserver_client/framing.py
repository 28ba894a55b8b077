"""Message framing for the server's output stream.

Each protocol message is exactly one line starting with `{`. Anything else
(banner text, `Content-Length:` headers, blank lines) is noise and skipped.
"""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import AsyncIterator

from pydantic import ValidationError

from .errors import MalformedMessageError
from .protocol.messages import Response, ServerEvent, ServerMessage

logger = logging.getLogger(__name__)

MESSAGE_MARKER = "{"


def is_protocol_line(line: str) -> bool:
    """Check whether a line starts the structured-message marker."""
    return line.startswith(MESSAGE_MARKER)


def parse_message(line: str) -> ServerMessage | None:
    """Parse and classify one protocol line.

    Returns:
        A Response (integer `request_seq` present), a ServerEvent
        (`type == "event"`), or None for any other well-formed object

    Raises:
        MalformedMessageError: If the line is not a valid JSON object or
            does not fit the shape it claims
    """
    try:
        data = json.loads(line)
    except json.JSONDecodeError as e:
        raise MalformedMessageError(line, f"invalid JSON: {e}") from e

    if not isinstance(data, dict):
        raise MalformedMessageError(line, f"expected object, got {type(data).__name__}")

    try:
        request_seq = data.get("request_seq")
        if isinstance(request_seq, int) and not isinstance(request_seq, bool):
            return Response.model_validate(data)
        if data.get("type") == "event":
            return ServerEvent.model_validate(data)
    except ValidationError as e:
        raise MalformedMessageError(line, str(e)) from e

    return None


class MessageFramer:
    """Splits a byte stream into classified protocol messages."""

    def __init__(self, reader: asyncio.StreamReader):
        self._reader = reader

    async def lines(self) -> AsyncIterator[str]:
        """Yield protocol lines until EOF, skipping noise."""
        while True:
            try:
                raw = await self._reader.readline()
            except ValueError as e:
                # Over the stream limit; the reader has already discarded it
                logger.warning(f"Dropped oversized line from server: {e}")
                continue

            if not raw:
                # EOF - process exited
                break

            line = raw.decode("utf-8", "replace").rstrip("\r\n")
            if not line.strip():
                continue

            if not is_protocol_line(line):
                logger.debug(f"Skipping non-protocol line: {line[:80]}")
                continue

            yield line

    async def messages(self) -> AsyncIterator[ServerMessage]:
        """Yield parsed messages until EOF, dropping malformed lines."""
        async for line in self.lines():
            try:
                message = parse_message(line)
            except MalformedMessageError as e:
                logger.warning(f"{e.message} (line: {line[:80]})")
                continue

            if message is None:
                logger.debug(f"Ignoring unclassified message: {line[:80]}")
                continue

            yield message
