"""Server process supervision.

Owns the tsserver child process: launches it with piped stdio, writes
request lines to its stdin, drains its stderr, and terminates it.

Wire format:
- stdin: one JSON request per line, terminated by os.linesep
- stdout: read by MessageFramer
- stderr: logged at DEBUG level and otherwise discarded
"""

from __future__ import annotations

import asyncio
import contextlib
import json
import logging
import os
import signal
import sys
from collections.abc import Sequence
from typing import Any

from .config import DEFAULT_MAX_LINE_BYTES
from .errors import ProcessAlreadyRunningError, ProcessNotRunningError

logger = logging.getLogger(__name__)

IS_WINDOWS = sys.platform == "win32"


def build_command(server_path: str, args: Sequence[str]) -> list[str]:
    """Build the argv used to launch the server.

    On Windows the server (usually a .cmd shim) is wrapped in `cmd /c`.
    """
    if IS_WINDOWS:
        return ["cmd", "/c", server_path, *args]
    return [server_path, *args]


class ProcessSupervisor:
    """Launches and owns a single server subprocess."""

    def __init__(self, max_line_bytes: int = DEFAULT_MAX_LINE_BYTES):
        self._max_line_bytes = max_line_bytes
        self._process: asyncio.subprocess.Process | None = None
        self._stderr_task: asyncio.Task[None] | None = None

    @property
    def process(self) -> asyncio.subprocess.Process | None:
        return self._process

    @property
    def is_running(self) -> bool:
        return self._process is not None

    @property
    def pid(self) -> int | None:
        return self._process.pid if self._process else None

    @property
    def stdout(self) -> asyncio.StreamReader:
        """Server output stream, read by the framer."""
        if not self._process or not self._process.stdout:
            raise ProcessNotRunningError()
        return self._process.stdout

    @property
    def stderr(self) -> asyncio.StreamReader | None:
        return self._process.stderr if self._process else None

    async def start(
        self,
        server_path: str,
        args: Sequence[str] = (),
        working_directory: str | None = None,
        env: dict[str, str] | None = None,
    ) -> None:
        """Launch the server process.

        Returns as soon as the process exists; the protocol has no
        readiness handshake.

        Raises:
            ProcessAlreadyRunningError: If a process is already owned
        """
        if self._process is not None:
            if self._process.returncode is None:
                raise ProcessAlreadyRunningError(self._process.pid)
            await self.release()

        cmd = build_command(server_path, args)

        # Build environment
        full_env = None
        if env:
            full_env = {**os.environ, **env}

        self._process = await asyncio.create_subprocess_exec(
            *cmd,
            stdin=asyncio.subprocess.PIPE,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            cwd=working_directory,
            env=full_env,
            limit=self._max_line_bytes,
            # Detached from our terminal; on Windows detaching opens a console window
            start_new_session=not IS_WINDOWS,
        )

        self._stderr_task = asyncio.create_task(self._read_stderr(self._process))

        logger.info(f"Launched server: {' '.join(cmd)} (pid={self._process.pid})")

    async def stop(self, timeout: float = 5.0) -> int | None:
        """Interrupt the server process and release the handle.

        The process is killed if it has not exited within `timeout`.

        Returns:
            The process exit code

        Raises:
            ProcessNotRunningError: If no process is running
        """
        process = self._process
        if process is None:
            raise ProcessNotRunningError("Cannot stop: server process not running")
        self._process = None

        if process.returncode is None:
            with contextlib.suppress(ProcessLookupError):
                if IS_WINDOWS:
                    process.terminate()
                else:
                    process.send_signal(signal.SIGINT)

        returncode: int | None
        try:
            returncode = await asyncio.wait_for(process.wait(), timeout=timeout)
        except TimeoutError:
            logger.warning(f"Server did not exit after interrupt, killing (pid={process.pid})")
            with contextlib.suppress(ProcessLookupError):
                process.kill()
            returncode = await process.wait()

        if self._stderr_task:
            self._stderr_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._stderr_task
            self._stderr_task = None

        logger.info(f"Server terminated (pid={process.pid}, returncode={returncode})")
        return returncode

    async def write(self, line: str) -> None:
        """Write one message line to the server's stdin.

        Raises:
            ProcessNotRunningError: If no process is running
        """
        if not self._process or not self._process.stdin:
            raise ProcessNotRunningError()

        try:
            self._process.stdin.write((line + os.linesep).encode("utf-8"))
            await self._process.stdin.drain()
        except (BrokenPipeError, ConnectionResetError) as e:
            raise ProcessNotRunningError(f"Server stdin closed: {e}") from e

    async def wait(self) -> int | None:
        """Wait for the current process to exit and return its exit code."""
        if self._process is None:
            raise ProcessNotRunningError()
        return await self._process.wait()

    async def release(self) -> int | None:
        """Drop the handle of a process that has already exited.

        Returns:
            The exit code of the released process, if any
        """
        process = self._process
        self._process = None

        if self._stderr_task:
            self._stderr_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._stderr_task
            self._stderr_task = None

        return process.returncode if process else None

    async def _read_stderr(self, process: asyncio.subprocess.Process) -> None:
        """Read and log stderr output."""
        if not process.stderr:
            return

        try:
            while True:
                try:
                    line = await process.stderr.readline()
                except ValueError as e:
                    # Line longer than the stream limit
                    logger.debug(f"Dropped oversized stderr output: {e}")
                    continue
                if not line:
                    break
                logger.debug(f"[tsserver stderr] {line.decode('utf-8', 'replace').rstrip()}")
        except asyncio.CancelledError:
            pass


class MockProcessSupervisor(ProcessSupervisor):
    """In-memory supervisor for testing.

    Records written lines and lets tests feed server output and simulate
    exits. No process is launched.

    Usage:
        supervisor = MockProcessSupervisor()
        client = ProtocolClient(supervisor=supervisor)
        await client.start()

        future = await client.send_request("quickinfo", {...})
        supervisor.feed({"request_seq": 0, "success": True, "body": {}})
        assert supervisor.requests[0]["command"] == "quickinfo"
    """

    def __init__(self) -> None:
        super().__init__()
        self.written: list[str] = []
        self.launches: list[list[str]] = []
        self._reader: asyncio.StreamReader | None = None
        self._exited: asyncio.Event | None = None
        self._running = False
        self._returncode: int | None = None

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def pid(self) -> int | None:
        return None

    @property
    def stdout(self) -> asyncio.StreamReader:
        if self._reader is None:
            raise ProcessNotRunningError()
        return self._reader

    @property
    def stderr(self) -> asyncio.StreamReader | None:
        return None

    @property
    def requests(self) -> list[dict[str, Any]]:
        """Written lines decoded as JSON objects."""
        return [json.loads(line) for line in self.written]

    async def start(
        self,
        server_path: str,
        args: Sequence[str] = (),
        working_directory: str | None = None,
        env: dict[str, str] | None = None,
    ) -> None:
        if self._running:
            raise ProcessAlreadyRunningError()
        self.launches.append(build_command(server_path, args))
        self._reader = asyncio.StreamReader()
        self._exited = asyncio.Event()
        self._returncode = None
        self._running = True

    async def stop(self, timeout: float = 5.0) -> int | None:
        if not self._running:
            raise ProcessNotRunningError("Cannot stop: server process not running")
        self._running = False
        self._exit(-signal.SIGINT)
        return self._returncode

    async def write(self, line: str) -> None:
        if not self._running:
            raise ProcessNotRunningError()
        self.written.append(line)

    async def wait(self) -> int | None:
        if self._exited is None:
            raise ProcessNotRunningError()
        await self._exited.wait()
        return self._returncode

    async def release(self) -> int | None:
        self._running = False
        return self._returncode

    def feed(self, *messages: str | dict[str, Any]) -> None:
        """Push server output lines (strings verbatim, dicts as JSON)."""
        if self._reader is None:
            raise ProcessNotRunningError()
        for message in messages:
            line = json.dumps(message) if isinstance(message, dict) else message
            self._reader.feed_data((line + "\n").encode("utf-8"))

    def crash(self, returncode: int = 1) -> None:
        """Simulate the server exiting on its own."""
        self._exit(returncode)

    def _exit(self, returncode: int) -> None:
        self._returncode = returncode
        if self._reader is not None:
            self._reader.feed_eof()
        if self._exited is not None:
            self._exited.set()
