"""Unit tests for the notification bus."""

import asyncio

import pytest
from pydantic import BaseModel

from tsserver_client.bus import Notification, NotificationBus


class PingProps(BaseModel):
    value: int


class OtherProps(BaseModel):
    pass


Ping = NotificationBus.define("test.ping", PingProps)
Other = NotificationBus.define("test.other", OtherProps)


class TestDefine:
    def test_definition(self):
        assert Ping.name == "test.ping"
        assert Ping.schema is PingProps


class TestPublish:
    """Test delivery to subscribers."""

    @pytest.mark.asyncio
    async def test_specific_subscriber_receives_typed_props(self):
        bus = NotificationBus()
        received = []

        async def on_ping(props: PingProps) -> None:
            received.append(props)

        bus.subscribe(Ping, on_ping)
        await bus.publish(Ping, PingProps(value=1))
        await bus.publish(Other, OtherProps())

        assert received == [PingProps(value=1)]

    @pytest.mark.asyncio
    async def test_wildcard_subscriber_receives_everything(self):
        bus = NotificationBus()
        received: list[Notification] = []

        async def on_any(notification: Notification) -> None:
            received.append(notification)

        bus.subscribe_all(on_any)
        await bus.publish(Ping, PingProps(value=2))
        await bus.publish(Other, OtherProps())

        assert [n.name for n in received] == ["test.ping", "test.other"]
        assert received[0].properties == PingProps(value=2)

    @pytest.mark.asyncio
    async def test_unsubscribe(self):
        bus = NotificationBus()
        received = []

        async def on_ping(props: PingProps) -> None:
            received.append(props.value)

        unsubscribe = bus.subscribe(Ping, on_ping)
        await bus.publish(Ping, PingProps(value=1))
        unsubscribe()
        await bus.publish(Ping, PingProps(value=2))

        assert received == [1]
        assert bus.subscriber_count(Ping) == 0

    @pytest.mark.asyncio
    async def test_subscriber_error_is_isolated(self):
        """A failing subscriber must not stop delivery to others."""
        bus = NotificationBus()
        received = []

        async def broken(props: PingProps) -> None:
            raise RuntimeError("boom")

        async def working(props: PingProps) -> None:
            received.append(props.value)

        bus.subscribe(Ping, broken)
        bus.subscribe(Ping, working)
        await bus.publish(Ping, PingProps(value=5))

        assert received == [5]

    @pytest.mark.asyncio
    async def test_wrong_schema_rejected(self):
        bus = NotificationBus()

        with pytest.raises(TypeError):
            await bus.publish(Ping, OtherProps())

    @pytest.mark.asyncio
    async def test_stream(self):
        bus = NotificationBus()
        stream = bus.stream()
        first = asyncio.ensure_future(stream.__anext__())
        await asyncio.sleep(0)

        await bus.publish(Ping, PingProps(value=9))

        notification = await asyncio.wait_for(first, timeout=1.0)
        assert notification.name == "test.ping"
        await stream.aclose()
        assert bus.subscriber_count() == 0

    def test_reset(self):
        bus = NotificationBus()

        async def noop(props) -> None:
            pass

        bus.subscribe(Ping, noop)
        bus.reset()

        assert bus.subscriber_count(Ping) == 0
