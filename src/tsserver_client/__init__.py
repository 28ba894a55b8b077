"""tsserver-client - asyncio client for the TypeScript tsserver protocol.

Launches tsserver as a subprocess and talks to it over stdio:
- Requests are correlated to responses by sequence number
- Unsolicited events are published as typed notifications
- Diagnostics from geterr are delivered as one aggregated batch
"""

from .api import TsServerAPI
from .bus import Notification, NotificationBus, NotificationDefinition
from .client import ProtocolClient, create_mock_client
from .config import ClientConfig, resolve_server_path
from .errors import (
    ErrorKind,
    MalformedMessageError,
    ProcessAlreadyRunningError,
    ProcessCrashedError,
    ProcessNotRunningError,
    RequestFailedError,
    RequestTimeoutError,
    TsServerError,
)
from .notifications import (
    DiagnosticCategory,
    DiagnosticGroup,
    DiagnosticsBatchProps,
    DiagnosticsCompleted,
    ProcessExited,
    ProjectLoadingFinished,
    ProjectLoadingStarted,
    ProjectsUpdatedInBackground,
    ServerEventReceived,
    Telemetry,
)
from .process import MockProcessSupervisor, ProcessSupervisor
from .version import ServerVersion, probe_version, select_completion_command

__version__ = "0.1.0"

__all__ = [
    # Client
    "ProtocolClient",
    "TsServerAPI",
    "ClientConfig",
    "create_mock_client",
    "resolve_server_path",
    # Process
    "ProcessSupervisor",
    "MockProcessSupervisor",
    # Notifications
    "NotificationBus",
    "NotificationDefinition",
    "Notification",
    "DiagnosticsCompleted",
    "DiagnosticsBatchProps",
    "DiagnosticGroup",
    "DiagnosticCategory",
    "ProjectLoadingStarted",
    "ProjectLoadingFinished",
    "ProjectsUpdatedInBackground",
    "Telemetry",
    "ProcessExited",
    "ServerEventReceived",
    # Errors
    "ErrorKind",
    "TsServerError",
    "MalformedMessageError",
    "RequestFailedError",
    "RequestTimeoutError",
    "ProcessNotRunningError",
    "ProcessAlreadyRunningError",
    "ProcessCrashedError",
    # Version
    "ServerVersion",
    "probe_version",
    "select_completion_command",
]
