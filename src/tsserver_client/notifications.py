"""Notification definitions.

Every notification a ProtocolClient can publish is declared here, each with
its pydantic properties schema.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel

from .bus import NotificationBus

# =============================================================================
# Project Events
# =============================================================================


class TelemetryProps(BaseModel):
    """Server telemetry payload."""

    body: Any = None


class ProjectsUpdatedProps(BaseModel):
    """Projects were updated in the background (body lists open files)."""

    body: Any = None


class ProjectLoadingStartedProps(BaseModel):
    """The server started loading a project."""

    body: Any = None


class ProjectLoadingFinishedProps(BaseModel):
    """The server finished loading a project."""

    body: Any = None


Telemetry = NotificationBus.define("server.telemetry", TelemetryProps)
ProjectsUpdatedInBackground = NotificationBus.define(
    "project.updated_in_background", ProjectsUpdatedProps
)
ProjectLoadingStarted = NotificationBus.define(
    "project.loading_started", ProjectLoadingStartedProps
)
ProjectLoadingFinished = NotificationBus.define(
    "project.loading_finished", ProjectLoadingFinishedProps
)


# =============================================================================
# Diagnostics Events
# =============================================================================


class DiagnosticCategory(str, Enum):
    """Which analysis pass produced a diagnostic group."""

    SEMANTIC = "semantic"
    SYNTACTIC = "syntactic"
    SUGGESTION = "suggestion"


class DiagnosticGroup(BaseModel):
    """One diagnostic event body, tagged with its category."""

    category: DiagnosticCategory
    body: Any = None


class DiagnosticsBatchProps(BaseModel):
    """All diagnostic groups received since the previous flush, in arrival order."""

    groups: list[DiagnosticGroup] = []

    @property
    def bodies(self) -> list[Any]:
        """The untagged diagnostic bodies, in arrival order."""
        return [group.body for group in self.groups]


DiagnosticsCompleted = NotificationBus.define("diagnostics.completed", DiagnosticsBatchProps)


# =============================================================================
# Process Events
# =============================================================================


class ProcessExitedProps(BaseModel):
    """The server process exited."""

    returncode: int | None = None
    expected: bool = False  # True when exit followed a stop() call
    failed_requests: int = 0


ProcessExited = NotificationBus.define("process.exited", ProcessExitedProps)


# =============================================================================
# Raw Events
# =============================================================================


class ServerEventProps(BaseModel):
    """Any event received from the server, before routing."""

    event: str
    body: Any = None


ServerEventReceived = NotificationBus.define("server.event", ServerEventProps)
