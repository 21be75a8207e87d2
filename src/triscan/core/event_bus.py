"""
Internal event bus carrying the display change feed.

The renderer and the stream publish; display sinks (dashboard, reporter,
log) subscribe. The feed has no delete events: a route, once published,
only ever gets updated.
"""

import logging
from collections import defaultdict
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum, auto
from typing import Any, Generic, TypeVar

from triscan.utils.time import get_timestamp_ms


logger = logging.getLogger(__name__)


class EventType(Enum):
    """Display feed event types."""

    OPPORTUNITY_UPSERTED = auto()
    PROFIT_SAMPLE = auto()
    FEED_ERROR = auto()
    CONNECTED = auto()
    DISCONNECTED = auto()


T = TypeVar("T")


@dataclass
class Event(Generic[T]):
    """Generic event with typed payload."""

    type: EventType
    payload: T
    timestamp_ms: int = 0
    source: str = ""


EventHandler = Callable[[Event[Any]], Awaitable[None]]
SyncEventHandler = Callable[[Event[Any]], None]


class EventBus:
    """
    Publish/subscribe hub for display events.

    Handlers run in subscription order, sync handlers first. A failing
    handler is logged and skipped; it never stops delivery to the others
    or propagates to the publisher.
    """

    def __init__(self) -> None:
        self._handlers: dict[EventType, list[EventHandler]] = defaultdict(list)
        self._sync_handlers: dict[EventType, list[SyncEventHandler]] = defaultdict(list)

    def subscribe(self, event_type: EventType, handler: EventHandler) -> None:
        """Subscribe an async handler to an event type."""
        self._handlers[event_type].append(handler)

    def subscribe_sync(self, event_type: EventType, handler: SyncEventHandler) -> None:
        """Subscribe a sync handler to an event type."""
        self._sync_handlers[event_type].append(handler)

    def unsubscribe(
        self,
        event_type: EventType,
        handler: EventHandler | SyncEventHandler,
    ) -> bool:
        """
        Unsubscribe a handler.

        Returns:
            True if handler was found and removed.
        """
        for registry in (self._handlers, self._sync_handlers):
            handlers = registry[event_type]
            for i, registered in enumerate(handlers):
                if registered == handler:
                    handlers.pop(i)
                    return True
        return False

    async def publish(self, event: Event[Any]) -> None:
        """Deliver an event to every subscriber."""
        if not event.timestamp_ms:
            event.timestamp_ms = get_timestamp_ms()

        for sync_handler in self._sync_handlers[event.type]:
            try:
                sync_handler(event)
            except Exception as e:
                logger.error(f"Sync handler error for {event.type.name}: {e}")

        for async_handler in self._handlers[event.type]:
            try:
                await async_handler(event)
            except Exception as e:
                logger.error(f"Async handler error for {event.type.name}: {e}")

    async def emit(self, event_type: EventType, payload: Any, source: str = "") -> None:
        """Shorthand for publishing a freshly built event."""
        await self.publish(Event(type=event_type, payload=payload, source=source))

    def handler_count(self, event_type: EventType) -> int:
        """Get number of handlers for an event type."""
        return len(self._handlers[event_type]) + len(self._sync_handlers[event_type])

    def clear(self) -> None:
        """Remove all handlers."""
        self._handlers.clear()
        self._sync_handlers.clear()
