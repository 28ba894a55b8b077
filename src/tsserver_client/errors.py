"""Error taxonomy for the tsserver protocol client.

Every failure a caller can observe is a TsServerError carrying an ErrorKind,
so callers can branch on `exc.kind` without matching on message text.
"""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    """Categories of protocol client failures."""

    MALFORMED_MESSAGE = "malformed_message"
    ORPHAN_RESPONSE = "orphan_response"
    REQUEST_FAILURE = "request_failure"
    REQUEST_TIMEOUT = "request_timeout"
    PROCESS_NOT_RUNNING = "process_not_running"
    PROCESS_ALREADY_RUNNING = "process_already_running"
    PROCESS_CRASHED = "process_crashed"


class TsServerError(Exception):
    """Base exception for all protocol client errors."""

    kind: ErrorKind

    def __init__(self, kind: ErrorKind, message: str) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message


class MalformedMessageError(TsServerError):
    """A line from the server could not be parsed as a protocol message."""

    def __init__(self, line: str, reason: str) -> None:
        super().__init__(ErrorKind.MALFORMED_MESSAGE, f"Malformed message: {reason}")
        self.line = line
        self.reason = reason


class RequestFailedError(TsServerError):
    """The server answered a request with success=false."""

    def __init__(self, command: str, message: str | None) -> None:
        super().__init__(ErrorKind.REQUEST_FAILURE, message or f"Request '{command}' failed")
        self.command = command
        self.server_message = message


class RequestTimeoutError(TsServerError):
    """No response arrived within the configured request timeout."""

    def __init__(self, command: str, seq: int, timeout: float) -> None:
        super().__init__(
            ErrorKind.REQUEST_TIMEOUT,
            f"Request '{command}' (seq={seq}) timed out after {timeout}s",
        )
        self.command = command
        self.seq = seq
        self.timeout = timeout


class ProcessNotRunningError(TsServerError):
    """An operation needed the server process but none is running."""

    def __init__(self, message: str = "Server process not running") -> None:
        super().__init__(ErrorKind.PROCESS_NOT_RUNNING, message)


class ProcessAlreadyRunningError(TsServerError):
    """start() was called while a server process is already running."""

    def __init__(self, pid: int | None = None) -> None:
        super().__init__(
            ErrorKind.PROCESS_ALREADY_RUNNING,
            f"Server process already running (pid={pid})",
        )
        self.pid = pid


class ProcessCrashedError(TsServerError):
    """The server process exited while requests were still outstanding."""

    def __init__(self, returncode: int | None) -> None:
        super().__init__(
            ErrorKind.PROCESS_CRASHED,
            f"Server process exited unexpectedly (returncode={returncode})",
        )
        self.returncode = returncode
