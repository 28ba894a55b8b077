"""Protocol client for a tsserver process.

Composes the process supervisor, message framer, request correlator and
event router. This is the only object other code needs to touch:

    async with ProtocolClient(ClientConfig(server_path="node_modules/.bin/tsserver")) as client:
        client.subscribe(DiagnosticsCompleted, on_diagnostics)
        body = await client.request("quickinfo", {"file": path, "line": 1, "offset": 5})

Inbound messages are read by a single read-loop task, one at a time, in
arrival order. Responses complete the caller's future directly. Events are
queued to a separate event task that publishes them as typed notifications,
in arrival order, so a subscriber may await requests of its own while
responses keep flowing.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Callable, Coroutine
from typing import Any, TypeVar

from pydantic import BaseModel

from .bus import Notification, NotificationBus, NotificationDefinition
from .config import ClientConfig
from .correlator import RequestCorrelator
from .errors import (
    MalformedMessageError,
    ProcessCrashedError,
    ProcessNotRunningError,
    RequestTimeoutError,
)
from .framing import MessageFramer, parse_message
from .notifications import DiagnosticGroup, ProcessExited, ProcessExitedProps
from .process import MockProcessSupervisor, ProcessSupervisor
from .protocol.messages import Response, ServerEvent, ServerMessage
from .router import EventRouter
from .version import CompletionCommandStrategy, ServerVersion

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)

# How long stop() waits for the read loop to drain after the process exits
READER_DRAIN_TIMEOUT = 1.0

# How long queued events may take to reach subscribers once the process is gone
EVENT_DRAIN_TIMEOUT = 1.0


class ProtocolClient:
    """Client for one tsserver process.

    Args:
        config: Launch and failure-policy settings
        supervisor: Process owner (default: a real ProcessSupervisor)
        bus: Notification bus (default: a fresh one per client)
        completion_strategy: Picks the completion command from `server_version`;
            when omitted, `config.completion_command` is used
        server_version: Version detected by the caller, if any
    """

    def __init__(
        self,
        config: ClientConfig | None = None,
        *,
        supervisor: ProcessSupervisor | None = None,
        bus: NotificationBus | None = None,
        completion_strategy: CompletionCommandStrategy | None = None,
        server_version: ServerVersion | None = None,
    ):
        self.config = config or ClientConfig()
        self._supervisor = supervisor or ProcessSupervisor(self.config.max_line_bytes)
        self._bus = bus or NotificationBus()
        self._correlator = RequestCorrelator(self._supervisor.write)
        self._router = EventRouter(self._bus)
        self._reader_task: asyncio.Task[None] | None = None
        self._event_task: asyncio.Task[None] | None = None
        self._events: asyncio.Queue[ServerEvent | None] = asyncio.Queue()
        self._stopping = False
        self.server_version = server_version

        if completion_strategy is not None:
            self._completion_command = completion_strategy(server_version)
        else:
            self._completion_command = self.config.completion_command

    # =========================================================================
    # State
    # =========================================================================

    @property
    def is_running(self) -> bool:
        return self._supervisor.is_running

    @property
    def bus(self) -> NotificationBus:
        return self._bus

    @property
    def supervisor(self) -> ProcessSupervisor:
        return self._supervisor

    @property
    def completion_command(self) -> str:
        """Command name used for completion requests."""
        return self._completion_command

    @completion_command.setter
    def completion_command(self, value: str) -> None:
        self._completion_command = value

    @property
    def diagnostics_batch(self) -> list[DiagnosticGroup]:
        """Diagnostics accumulated since the last flush."""
        return self._router.batch

    @property
    def pending_count(self) -> int:
        return self._correlator.pending_count

    @property
    def next_seq(self) -> int:
        return self._correlator.next_seq

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def start(self) -> None:
        """Launch the server and begin reading its output.

        Raises:
            ProcessAlreadyRunningError: If the server is already running
        """
        await self._supervisor.start(
            self.config.server_path,
            self.config.launch_args(),
            working_directory=self.config.working_directory,
            env=self.config.env,
        )
        self._stopping = False
        self._events = asyncio.Queue()
        self._event_task = asyncio.create_task(self._event_loop(self._events))
        self._reader_task = asyncio.create_task(self._read_loop(self._supervisor.stdout))

    async def stop(self) -> int | None:
        """Interrupt the server and fail any outstanding requests.

        Returns:
            The server's exit code

        Raises:
            ProcessNotRunningError: If the server is not running
        """
        if not self._supervisor.is_running:
            raise ProcessNotRunningError("Cannot stop: server process not running")

        self._stopping = True
        try:
            returncode = await self._supervisor.stop(self.config.stop_timeout)

            if self._reader_task:
                try:
                    await asyncio.wait_for(self._reader_task, timeout=READER_DRAIN_TIMEOUT)
                except TimeoutError:
                    # wait_for has already cancelled the task
                    logger.debug("Read loop did not drain after stop")
                self._reader_task = None

            failed = self._correlator.fail_all(ProcessNotRunningError("Server stopped"))
            await self._drain_events()
            await self._bus.publish(
                ProcessExited,
                ProcessExitedProps(returncode=returncode, expected=True, failed_requests=failed),
            )
            return returncode
        finally:
            self._stopping = False

    async def __aenter__(self) -> ProtocolClient:
        await self.start()
        return self

    async def __aexit__(self, *args: Any) -> None:
        if self.is_running:
            await self.stop()

    # =========================================================================
    # Requests
    # =========================================================================

    async def send_request(self, command: str, arguments: Any = None) -> asyncio.Future[Any]:
        """Send a request whose response will be routed back.

        Returns without waiting for the response; await the returned future
        for the response body.

        Raises:
            ProcessNotRunningError: If the server is not running
        """
        return await self._correlator.send_request(command, arguments)

    async def send_no_response(self, command: str, arguments: Any = None) -> int:
        """Send a request the server never answers (open, close, geterr...).

        Returns:
            The sequence number used

        Raises:
            ProcessNotRunningError: If the server is not running
        """
        return await self._correlator.send_no_response(command, arguments)

    async def request(self, command: str, arguments: Any = None, timeout: float | None = None) -> Any:
        """Send a request and wait for its response body.

        Args:
            command: Command name
            arguments: Command arguments
            timeout: Seconds to wait (default: config.request_timeout; None waits forever)

        Raises:
            RequestFailedError: If the server reports failure
            RequestTimeoutError: If the timeout expires
            ProcessCrashedError: If the server exits before responding
            ProcessNotRunningError: If the server is not running or is stopped
        """
        pending = await self._correlator.send(command, arguments)
        effective_timeout = timeout if timeout is not None else self.config.request_timeout
        if effective_timeout is None:
            return await pending.future

        try:
            return await asyncio.wait_for(pending.future, timeout=effective_timeout)
        except TimeoutError:
            self._correlator.discard(pending.seq)
            raise RequestTimeoutError(command, pending.seq, effective_timeout) from None

    # =========================================================================
    # Notifications
    # =========================================================================

    def subscribe(
        self,
        definition: NotificationDefinition[T],
        callback: Callable[[T], Coroutine[Any, Any, None]],
    ) -> Callable[[], None]:
        """Subscribe to one notification kind. Returns an unsubscribe function."""
        return self._bus.subscribe(definition, callback)

    def subscribe_all(
        self, callback: Callable[[Notification], Coroutine[Any, Any, None]]
    ) -> Callable[[], None]:
        """Subscribe to every notification. Returns an unsubscribe function."""
        return self._bus.subscribe_all(callback)

    def expect(self, definition: NotificationDefinition[T]) -> asyncio.Future[T]:
        """Future for the next notification of one kind.

        The subscription is registered immediately, so a notification
        triggered by a request sent afterwards cannot be missed.
        """
        future: asyncio.Future[T] = asyncio.get_running_loop().create_future()

        async def on_notification(properties: T) -> None:
            if not future.done():
                future.set_result(properties)

        unsubscribe = self._bus.subscribe(definition, on_notification)
        future.add_done_callback(lambda _: unsubscribe())
        return future

    async def wait_for(self, definition: NotificationDefinition[T]) -> T:
        """Wait for the next notification of one kind."""
        return await self.expect(definition)

    def stream(self) -> AsyncIterator[Notification]:
        """Yield every notification as it is published."""
        return self._bus.stream()

    # =========================================================================
    # Dispatch
    # =========================================================================

    async def dispatch(self, message: ServerMessage) -> None:
        """Route one inbound message to the correlator or the event router.

        While the client is running, events are queued for the event task
        and this returns without waiting for subscribers.
        """
        if isinstance(message, Response):
            self._correlator.resolve(message)
        elif self._event_task is not None:
            self._events.put_nowait(message)
        else:
            await self._router.route(message)

    async def dispatch_line(self, line: str) -> None:
        """Parse and route one raw protocol line, dropping malformed input."""
        try:
            message = parse_message(line)
        except MalformedMessageError as e:
            logger.warning(f"{e.message} (line: {line[:80]})")
            return
        if message is not None:
            await self.dispatch(message)

    async def _read_loop(self, reader: asyncio.StreamReader) -> None:
        """Background task dispatching server output until EOF."""
        framer = MessageFramer(reader)
        try:
            async for message in framer.messages():
                await self.dispatch(message)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.exception(f"Read loop error: {e}")
            if not self._stopping:
                await self._handle_unexpected_exit(terminate=True)
            return

        if self._stopping:
            return
        await self._handle_unexpected_exit()

    async def _event_loop(self, events: asyncio.Queue[ServerEvent | None]) -> None:
        """Background task publishing queued events until a None sentinel."""
        while True:
            event = await events.get()
            if event is None:
                return
            try:
                await self._router.route(event)
            except Exception as e:
                logger.exception(f"Error routing event {event.event}: {e}")

    async def _drain_events(self) -> None:
        """Let already queued events reach subscribers, then end the event task."""
        task = self._event_task
        if task is None:
            return
        self._event_task = None
        self._events.put_nowait(None)

        # A subscriber that stops the client runs inside the event task itself
        if task is asyncio.current_task():
            return
        try:
            await asyncio.wait_for(task, timeout=EVENT_DRAIN_TIMEOUT)
        except TimeoutError:
            logger.warning("Subscribers did not finish with queued events, cancelled")

    async def _handle_unexpected_exit(self, terminate: bool = False) -> None:
        """Release a server that exited (or whose output failed) and fail its requests.

        Args:
            terminate: Stop the process first; its output can no longer be read
        """
        if terminate:
            try:
                returncode = await self._supervisor.stop(self.config.stop_timeout)
            except ProcessNotRunningError:
                return
        else:
            returncode = await self._supervisor.wait()
            if self._stopping:
                return
            await self._supervisor.release()

        failed = 0
        if self.config.fail_pending_on_exit:
            failed = self._correlator.fail_all(ProcessCrashedError(returncode))
        await self._drain_events()

        logger.warning(f"Server exited unexpectedly (returncode={returncode})")
        await self._bus.publish(
            ProcessExited,
            ProcessExitedProps(returncode=returncode, expected=False, failed_requests=failed),
        )


def create_mock_client(config: ClientConfig | None = None) -> tuple[ProtocolClient, MockProcessSupervisor]:
    """Create a client backed by an in-memory supervisor, for testing.

    Returns:
        The client and its mock supervisor
    """
    supervisor = MockProcessSupervisor()
    return ProtocolClient(config, supervisor=supervisor), supervisor

