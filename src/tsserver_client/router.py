"""Routing of unsolicited server events to notifications.

Diagnostics arrive as a run of semanticDiag/syntaxDiag/suggestionDiag
events (one per file and pass) followed by a single requestCompleted.
The router accumulates the run and publishes it as one batch.
"""

from __future__ import annotations

import logging

from .bus import NotificationBus
from .notifications import (
    DiagnosticCategory,
    DiagnosticGroup,
    DiagnosticsBatchProps,
    DiagnosticsCompleted,
    ProjectLoadingFinished,
    ProjectLoadingFinishedProps,
    ProjectLoadingStarted,
    ProjectLoadingStartedProps,
    ProjectsUpdatedInBackground,
    ProjectsUpdatedProps,
    ServerEventProps,
    ServerEventReceived,
    Telemetry,
    TelemetryProps,
)
from .protocol.commands import EventName
from .protocol.messages import ServerEvent

logger = logging.getLogger(__name__)

DIAGNOSTIC_EVENTS: dict[str, DiagnosticCategory] = {
    EventName.SEMANTIC_DIAG.value: DiagnosticCategory.SEMANTIC,
    EventName.SYNTAX_DIAG.value: DiagnosticCategory.SYNTACTIC,
    EventName.SUGGESTION_DIAG.value: DiagnosticCategory.SUGGESTION,
}


class EventRouter:
    """Dispatches server events and owns the diagnostics batch."""

    def __init__(self, bus: NotificationBus):
        self._bus = bus
        self._batch: list[DiagnosticGroup] = []

    @property
    def batch(self) -> list[DiagnosticGroup]:
        """Snapshot of the diagnostics accumulated since the last flush."""
        return list(self._batch)

    async def route(self, event: ServerEvent) -> None:
        """Handle one server event."""
        name = event.event
        await self._bus.publish(ServerEventReceived, ServerEventProps(event=name, body=event.body))

        if name in DIAGNOSTIC_EVENTS:
            self._batch.append(DiagnosticGroup(category=DIAGNOSTIC_EVENTS[name], body=event.body))
        elif name == EventName.REQUEST_COMPLETED:
            await self.flush()
        elif name == EventName.PROJECT_LOADING_FINISH:
            await self._bus.publish(
                ProjectLoadingFinished, ProjectLoadingFinishedProps(body=event.body)
            )
        elif name == EventName.PROJECT_LOADING_START:
            await self._bus.publish(
                ProjectLoadingStarted, ProjectLoadingStartedProps(body=event.body)
            )
        elif name == EventName.TELEMETRY:
            await self._bus.publish(Telemetry, TelemetryProps(body=event.body))
        elif name == EventName.PROJECTS_UPDATED_IN_BACKGROUND:
            await self._bus.publish(
                ProjectsUpdatedInBackground, ProjectsUpdatedProps(body=event.body)
            )
        else:
            logger.debug(f"Ignoring unrecognized event: {name}")

    async def flush(self) -> None:
        """Publish the accumulated batch and start a new one."""
        groups = self._batch
        self._batch = []
        logger.debug(f"Flushing diagnostics batch ({len(groups)} group(s))")
        await self._bus.publish(DiagnosticsCompleted, DiagnosticsBatchProps(groups=groups))
