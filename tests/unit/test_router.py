"""Unit tests for event routing and diagnostics batching."""

import pytest

from tsserver_client.bus import Notification, NotificationBus
from tsserver_client.notifications import (
    DiagnosticCategory,
    DiagnosticsCompleted,
    ProjectLoadingFinished,
    ProjectLoadingStarted,
    ProjectsUpdatedInBackground,
    Telemetry,
)
from tsserver_client.protocol import ServerEvent
from tsserver_client.router import EventRouter


def event(name: str, body=None) -> ServerEvent:
    return ServerEvent(event=name, body=body)


@pytest.fixture
def bus():
    return NotificationBus()


@pytest.fixture
def recorded(bus):
    """Every notification published on the bus, in order."""
    notifications: list[Notification] = []

    async def record(notification: Notification) -> None:
        notifications.append(notification)

    bus.subscribe_all(record)
    return notifications


def names(notifications: list[Notification]) -> list[str]:
    return [n.name for n in notifications if n.name != "server.event"]


class TestDiagnosticsBatch:
    """Test accumulation and flushing of diagnostic events."""

    @pytest.mark.asyncio
    async def test_flush_on_request_completed(self, bus, recorded):
        router = EventRouter(bus)

        await router.route(event("semanticDiag", ["d1"]))
        await router.route(event("syntaxDiag", ["d2"]))
        assert len(router.batch) == 2
        assert names(recorded) == []

        await router.route(event("requestCompleted", {"request_seq": 4}))

        assert names(recorded) == ["diagnostics.completed"]
        batch = recorded[-1].properties
        assert batch.bodies == [["d1"], ["d2"]]
        assert [g.category for g in batch.groups] == [
            DiagnosticCategory.SEMANTIC,
            DiagnosticCategory.SYNTACTIC,
        ]
        assert router.batch == []

    @pytest.mark.asyncio
    async def test_interleaved_events_keep_arrival_order(self, bus, recorded):
        """Unrelated events in between neither reorder nor flush the batch."""
        router = EventRouter(bus)

        await router.route(event("semanticDiag", "a"))
        await router.route(event("telemetry", {"name": "x"}))
        await router.route(event("suggestionDiag", "b"))
        await router.route(event("syntaxDiag", "c"))
        await router.route(event("requestCompleted"))

        assert names(recorded) == ["server.telemetry", "diagnostics.completed"]
        assert recorded[-1].properties.bodies == ["a", "b", "c"]

    @pytest.mark.asyncio
    async def test_empty_batch_still_published(self, bus):
        router = EventRouter(bus)
        batches = []

        async def on_batch(props):
            batches.append(props)

        bus.subscribe(DiagnosticsCompleted, on_batch)
        await router.route(event("requestCompleted"))

        assert len(batches) == 1
        assert batches[0].groups == []

    @pytest.mark.asyncio
    async def test_batches_are_independent(self, bus):
        router = EventRouter(bus)
        batches = []

        async def on_batch(props):
            batches.append(props.bodies)

        bus.subscribe(DiagnosticsCompleted, on_batch)
        await router.route(event("semanticDiag", 1))
        await router.route(event("requestCompleted"))
        await router.route(event("syntaxDiag", 2))
        await router.route(event("requestCompleted"))

        assert batches == [[1], [2]]


class TestProjectEvents:
    """Test project lifecycle and telemetry events."""

    @pytest.mark.asyncio
    async def test_project_loading(self, bus, recorded):
        router = EventRouter(bus)

        await router.route(event("projectLoadingStart", {"projectName": "tsconfig.json"}))
        await router.route(event("projectLoadingFinish", {"projectName": "tsconfig.json"}))

        assert names(recorded) == [
            ProjectLoadingStarted.name,
            ProjectLoadingFinished.name,
        ]
        assert recorded[1].properties.body == {"projectName": "tsconfig.json"}

    @pytest.mark.asyncio
    async def test_projects_updated(self, bus, recorded):
        router = EventRouter(bus)

        await router.route(event("projectsUpdatedInBackground", {"openFiles": ["a.ts"]}))

        assert names(recorded) == [ProjectsUpdatedInBackground.name]
        assert recorded[-1].properties.body == {"openFiles": ["a.ts"]}

    @pytest.mark.asyncio
    async def test_telemetry(self, bus):
        router = EventRouter(bus)
        received = []

        async def on_telemetry(props):
            received.append(props.body)

        bus.subscribe(Telemetry, on_telemetry)
        await router.route(event("telemetry", {"telemetryEventName": "projectInfo"}))

        assert received == [{"telemetryEventName": "projectInfo"}]

    @pytest.mark.asyncio
    async def test_unknown_event_only_raw(self, bus, recorded):
        """Unrecognized events produce only the raw server.event notification."""
        router = EventRouter(bus)

        await router.route(event("typingsInstallerPid", 123))

        assert [n.name for n in recorded] == ["server.event"]
        assert recorded[0].properties.event == "typingsInstallerPid"
        assert router.batch == []
