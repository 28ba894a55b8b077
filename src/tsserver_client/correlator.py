"""Request/response correlation by sequence number.

Outbound requests get a strictly increasing sequence number. Correlated
requests park an asyncio.Future under that number until the server's
Response with the matching `request_seq` arrives; responses may arrive in
any order. Fire-and-forget requests park nothing, so a response to one
(should the server ever send it) is an orphan and is dropped.

All state is touched only from the event loop, so no locking is needed.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from .errors import RequestFailedError
from .protocol.messages import Request, Response

logger = logging.getLogger(__name__)

# Writes one serialized message line to the server
LineWriter = Callable[[str], Awaitable[None]]


@dataclass
class PendingCompletion:
    """A correlated request waiting for its response."""

    seq: int
    command: str
    future: asyncio.Future[Any]


class RequestCorrelator:
    """Assigns sequence numbers and resolves pending requests."""

    def __init__(self, writer: LineWriter):
        self._writer = writer
        self._next_seq = 0
        self._pending: dict[int, PendingCompletion] = {}

    @property
    def next_seq(self) -> int:
        """The sequence number the next request will receive."""
        return self._next_seq

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    def is_pending(self, seq: int) -> bool:
        return seq in self._pending

    def _allocate(self, command: str, arguments: Any) -> Request:
        seq = self._next_seq
        self._next_seq += 1
        return Request(seq=seq, command=command, arguments=arguments)

    async def send(self, command: str, arguments: Any = None) -> PendingCompletion:
        """Send a correlated request and return its pending entry.

        Raises:
            ProcessNotRunningError: If the request could not be written
        """
        request = self._allocate(command, arguments)
        future: asyncio.Future[Any] = asyncio.get_running_loop().create_future()
        pending = PendingCompletion(request.seq, command, future)
        self._pending[request.seq] = pending

        try:
            await self._writer(request.to_line())
        except BaseException:
            self._pending.pop(request.seq, None)
            raise

        logger.debug(f"Sent request {command} (seq={request.seq})")
        return pending

    async def send_request(self, command: str, arguments: Any = None) -> asyncio.Future[Any]:
        """Send a correlated request.

        Returns:
            Future resolved with the response body, or failed with
            RequestFailedError carrying the server's message

        Raises:
            ProcessNotRunningError: If the request could not be written
        """
        pending = await self.send(command, arguments)
        return pending.future

    async def send_no_response(self, command: str, arguments: Any = None) -> int:
        """Send a request without tracking a response.

        Returns:
            The sequence number used
        """
        request = self._allocate(command, arguments)
        await self._writer(request.to_line())
        logger.debug(f"Sent no-response request {command} (seq={request.seq})")
        return request.seq

    def resolve(self, response: Response) -> bool:
        """Complete the pending request matching a response.

        Returns:
            True if a pending request was found, False for an orphan
        """
        pending = self._pending.pop(response.request_seq, None)
        if pending is None:
            logger.debug(f"Dropping orphan response (request_seq={response.request_seq})")
            return False

        if pending.future.done():
            # Caller cancelled or timed out; nothing left to notify
            return True

        if response.success:
            pending.future.set_result(response.body)
        else:
            pending.future.set_exception(RequestFailedError(pending.command, response.message))
        return True

    def fail_all(self, exc: BaseException) -> int:
        """Fail every outstanding request with `exc`.

        Returns:
            Number of requests failed
        """
        pending = list(self._pending.values())
        self._pending.clear()

        failed = 0
        for entry in pending:
            if not entry.future.done():
                entry.future.set_exception(exc)
                failed += 1
        if failed:
            logger.info(f"Failed {failed} outstanding request(s): {exc}")
        return failed

    def discard(self, seq: int) -> None:
        """Forget a pending request without completing it."""
        self._pending.pop(seq, None)
