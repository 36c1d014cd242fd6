# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""In-memory event bus.

Async publish/subscribe between components of one process. The status
stream WebSocket subscribes here to forward engagement state changes to
connected clients.

Subscriptions match by exact event type. Handler failures are logged
and never reach the publisher.

Example:
    from src.infrastructure.events import get_event_bus, EventTypes

    bus = get_event_bus()
    bus.subscribe(EventTypes.Engagement.STATUS_UPDATED, on_status)
    await bus.publish(
        EventTypes.Engagement.STATUS_UPDATED,
        {"status": "remedial"},
        student_id="s-1",
    )
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Awaitable, Callable
from uuid import uuid4

from src.utils.datetime import utc_now

logger = logging.getLogger(__name__)

EventHandler = Callable[["EventData"], Awaitable[None]]


@dataclass
class EventData:
    """Container for event data with metadata.

    Attributes:
        event_type: The event type string.
        payload: The event payload data.
        student_id: Student the event concerns, if any.
        event_id: Unique event identifier.
        timestamp: When the event was published.
    """

    event_type: str
    payload: dict[str, Any]
    student_id: str | None = None
    event_id: str = field(default_factory=lambda: str(uuid4()))
    timestamp: datetime = field(default_factory=utc_now)


class EventBus:
    """In-memory async event bus keyed by event type.

    Designed for single-threaded asyncio use within one process.
    """

    def __init__(self) -> None:
        self._handlers: dict[str, list[EventHandler]] = {}

    def subscribe(self, event_type: str, handler: EventHandler) -> None:
        """Subscribe a handler to an event type."""
        self._handlers.setdefault(event_type, []).append(handler)
        logger.debug("Subscribed handler to: %s", event_type)

    def unsubscribe(self, event_type: str, handler: EventHandler) -> bool:
        """Unsubscribe a handler.

        Returns:
            True if handler was found and removed, False otherwise.
        """
        handlers = self._handlers.get(event_type)
        if not handlers:
            return False
        try:
            handlers.remove(handler)
        except ValueError:
            return False
        if not handlers:
            del self._handlers[event_type]
        return True

    async def publish(
        self,
        event_type: str,
        payload: dict[str, Any],
        student_id: str | None = None,
    ) -> EventData:
        """Publish an event to its subscribers.

        Handlers are called concurrently. Errors in individual handlers
        are logged and don't stop other handlers from executing.

        Args:
            event_type: The event type string.
            payload: Event data dictionary.
            student_id: Student the event concerns.

        Returns:
            EventData object with event metadata.
        """
        event = EventData(event_type=event_type, payload=payload, student_id=student_id)

        handlers_to_call: list[EventHandler] = list(self._handlers.get(event_type, []))

        if not handlers_to_call:
            logger.debug("No handlers for event: %s", event_type)
            return event

        async def safe_call(handler: EventHandler) -> None:
            try:
                await handler(event)
            except Exception as e:
                logger.error(
                    "Handler error for event %s: %s",
                    event_type,
                    str(e),
                    exc_info=True,
                )

        await asyncio.gather(*[safe_call(handler) for handler in handlers_to_call])

        return event

    def clear(self) -> None:
        """Remove all subscriptions."""
        self._handlers.clear()


# Singleton instance
_event_bus: EventBus | None = None


def get_event_bus() -> EventBus:
    """Get the singleton event bus instance."""
    global _event_bus
    if _event_bus is None:
        _event_bus = EventBus()
    return _event_bus


def reset_event_bus() -> None:
    """Reset the event bus singleton. Used by tests."""
    global _event_bus
    if _event_bus is not None:
        _event_bus.clear()
    _event_bus = None
