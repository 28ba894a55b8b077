"""Wire message definitions for the tsserver protocol.

Three message shapes travel over the child process's stdio:
- Request: client -> server, identified by a sequence number
- Response: server -> client, correlated to a Request by `request_seq`
- ServerEvent: server -> client, unsolicited, never carries `request_seq`

Example (request):
    {"seq": 0, "type": "request", "command": "quickinfo", "arguments": {...}}

Example (response):
    {"request_seq": 0, "success": true, "body": {"kind": "var"}}

Example (event):
    {"type": "event", "event": "semanticDiag", "body": {...}}
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict


class Request(BaseModel):
    """A request from client to server."""

    seq: int
    type: Literal["request"] = "request"
    command: str
    arguments: Any = None

    def to_line(self) -> str:
        """Serialize to a single JSON line (without the line terminator)."""
        return self.model_dump_json()


class Response(BaseModel):
    """A response to a previously sent request.

    The server also sends `seq`, `type` and `command`; they are kept as
    extra fields but correlation only uses `request_seq`.
    """

    model_config = ConfigDict(extra="allow")

    request_seq: int
    success: bool
    body: Any = None
    message: str | None = None


class ServerEvent(BaseModel):
    """An unsolicited event from the server."""

    model_config = ConfigDict(extra="allow")

    type: Literal["event"] = "event"
    event: str
    body: Any = None


ServerMessage = Response | ServerEvent
