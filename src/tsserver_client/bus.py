"""Notification Bus - typed pub/sub for server notifications.

Each client owns its own bus. Notifications are declared once with a
pydantic schema and published with an instance of that schema; subscribers
receive the typed properties object.

Usage:
    DiagnosticsCompleted = NotificationBus.define("diagnostics.completed", DiagnosticsBatchProps)
    unsubscribe = bus.subscribe(DiagnosticsCompleted, on_diagnostics)
    await bus.publish(DiagnosticsCompleted, DiagnosticsBatchProps(groups=[...]))
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Callable, Coroutine
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from pydantic import BaseModel

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)

WILDCARD = "*"


@dataclass(frozen=True)
class NotificationDefinition(Generic[T]):
    """Typed notification definition."""

    name: str
    schema: type[T]


@dataclass(frozen=True)
class Notification:
    """A published notification, as delivered to wildcard subscribers."""

    name: str
    properties: BaseModel


# Type for notification callbacks
NotificationCallback = Callable[[Any], Coroutine[Any, Any, None]]


class NotificationBus:
    """Per-client notification bus with wildcard subscription support.

    Publishing happens only from the client's event loop thread, so subscriber
    lists need no lock; they are copied before iteration so callbacks may
    unsubscribe themselves.
    """

    def __init__(self) -> None:
        self._subscriptions: dict[str, list[NotificationCallback]] = {}

    @staticmethod
    def define(name: str, schema: type[T]) -> NotificationDefinition[T]:
        """Define a typed notification.

        Args:
            name: Dot-separated notification name (e.g., "project.loading_finished")
            schema: Pydantic model for notification properties
        """
        return NotificationDefinition(name=name, schema=schema)

    async def publish(self, definition: NotificationDefinition[T], properties: T) -> None:
        """Publish a notification to all subscribers.

        Subscriber errors are logged and never propagate to the publisher.
        """
        if not isinstance(properties, definition.schema):
            raise TypeError(
                f"{definition.name} expects {definition.schema.__name__}, "
                f"got {type(properties).__name__}"
            )

        specific_subs = list(self._subscriptions.get(definition.name, []))
        wildcard_subs = list(self._subscriptions.get(WILDCARD, []))

        for callback in specific_subs:
            try:
                await callback(properties)
            except Exception:
                logger.exception(f"Error in subscriber for {definition.name}")

        if wildcard_subs:
            notification = Notification(name=definition.name, properties=properties)
            for callback in wildcard_subs:
                try:
                    await callback(notification)
                except Exception:
                    logger.exception(f"Error in wildcard subscriber for {definition.name}")

    def subscribe(
        self,
        definition: NotificationDefinition[T],
        callback: Callable[[T], Coroutine[Any, Any, None]],
    ) -> Callable[[], None]:
        """Subscribe to one notification kind.

        Returns:
            Unsubscribe function
        """
        return self._subscribe(definition.name, callback)

    def subscribe_all(
        self, callback: Callable[[Notification], Coroutine[Any, Any, None]]
    ) -> Callable[[], None]:
        """Subscribe to every notification.

        Returns:
            Unsubscribe function
        """
        return self._subscribe(WILDCARD, callback)

    def _subscribe(self, key: str, callback: NotificationCallback) -> Callable[[], None]:
        self._subscriptions.setdefault(key, []).append(callback)

        def unsubscribe() -> None:
            if key in self._subscriptions and callback in self._subscriptions[key]:
                self._subscriptions[key].remove(callback)

        return unsubscribe

    def subscriber_count(self, definition: NotificationDefinition[Any] | None = None) -> int:
        """Count subscribers for one notification, or wildcard subscribers if None."""
        key = definition.name if definition else WILDCARD
        return len(self._subscriptions.get(key, []))

    async def stream(self) -> AsyncIterator[Notification]:
        """Yield every notification as it is published.

        Usage:
            async for notification in bus.stream():
                print(notification.name, notification.properties)
        """
        queue: asyncio.Queue[Notification] = asyncio.Queue()

        async def on_notification(notification: Notification) -> None:
            await queue.put(notification)

        unsubscribe = self.subscribe_all(on_notification)

        try:
            while True:
                yield await queue.get()
        finally:
            unsubscribe()

    def reset(self) -> None:
        """Drop all subscriptions."""
        self._subscriptions = {}
