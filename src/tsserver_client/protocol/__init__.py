"""tsserver wire protocol.

Defines the request/response/event shapes exchanged with the server
over its standard streams, one JSON document per line.

Key concepts:
- Requests: Client → Server, carry a sequence number
- Responses: Server → Client, carry the request's sequence as `request_seq`
- Events: Server → Client, unsolicited, no sequence correlation
"""

from .commands import NO_RESPONSE_COMMANDS, CommandType, EventName
from .messages import Request, Response, ServerEvent, ServerMessage

__all__ = [
    "CommandType",
    "EventName",
    "NO_RESPONSE_COMMANDS",
    "Request",
    "Response",
    "ServerEvent",
    "ServerMessage",
]
