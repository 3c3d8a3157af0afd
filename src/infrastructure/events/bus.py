# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""In-memory event bus.

This module provides an async event bus for decoupled communication
between the surrounding application and the completion orchestrator.
Events are published and subscribed to by event type strings.

The EventBus supports:
- Async handlers, several per event type
- Concurrent fan-out: publish() awaits every handler before returning
- Per-handler error isolation
- A bounded history of recent events for diagnostics

There is no module-level instance. The application root builds one bus
and passes it to every publisher and subscriber.

Example:
    from src.infrastructure.events import EventBus, EventTypes

    event_bus = EventBus()

    async def on_problem_completed(event):
        print(f"Solved: {event.payload['problem_text']}")

    unsubscribe = event_bus.subscribe(
        EventTypes.PROBLEM_COMPLETED, on_problem_completed
    )

    await event_bus.publish(
        EventTypes.PROBLEM_COMPLETED,
        "user-123",
        {"problem_text": "2 + 2", "problem_type": "arithmetic"},
        profile_id="profile-456",
    )

    unsubscribe()
"""

import asyncio
import logging
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from types import MappingProxyType
from typing import Any, Awaitable, Callable, Mapping
from uuid import uuid4

from src.utils.datetime import format_iso, utc_now

logger = logging.getLogger(__name__)

DEFAULT_HISTORY_SIZE = 100


@dataclass(frozen=True)
class EventData:
    """Immutable container for a published domain event.

    Attributes:
        event_type: The event type string.
        actor_id: User that caused the event.
        payload: The event payload data (read-only view).
        profile_id: Sub-profile the event belongs to; None is the account owner.
        metadata: Free-form publisher metadata (read-only view).
        event_id: Unique event identifier.
        timestamp: When the event was published.
    """

    event_type: str
    actor_id: str
    payload: Mapping[str, Any]
    profile_id: str | None = None
    metadata: Mapping[str, Any] = field(default_factory=dict)
    event_id: str = field(default_factory=lambda: str(uuid4()))
    timestamp: datetime = field(default_factory=utc_now)

    def __post_init__(self) -> None:
        object.__setattr__(self, "payload", MappingProxyType(dict(self.payload)))
        object.__setattr__(self, "metadata", MappingProxyType(dict(self.metadata)))

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "event_id": self.event_id,
            "event_type": self.event_type,
            "actor_id": self.actor_id,
            "profile_id": self.profile_id,
            "payload": dict(self.payload),
            "metadata": dict(self.metadata),
            "timestamp": format_iso(self.timestamp),
        }


# Type alias for event handlers
EventHandler = Callable[[EventData], Awaitable[None]]


class EventBus:
    """In-memory async event bus with bounded history.

    Publishers emit events and subscribers receive them by exact type
    match. Handlers for one event run concurrently; publish() returns
    once all of them have finished.

    Thread-safety: This implementation is designed for single-threaded
    async use.

    Attributes:
        _handlers: Dictionary mapping event types to handler lists.
        _history: Ring buffer of the most recent events.
    """

    def __init__(self, history_size: int = DEFAULT_HISTORY_SIZE) -> None:
        """Initialize the event bus.

        Args:
            history_size: Number of events kept for get_history().
        """
        if history_size < 1:
            raise ValueError("history_size must be at least 1")
        self._handlers: dict[str, list[EventHandler]] = {}
        self._history: deque[EventData] = deque(maxlen=history_size)
        self._event_count = 0
        self._handler_errors = 0
        logger.debug("EventBus initialized (history_size=%d)", history_size)

    @property
    def history_size(self) -> int:
        """Capacity of the event history."""
        return self._history.maxlen or 0

    def subscribe(
        self,
        event_type: str,
        handler: EventHandler,
    ) -> Callable[[], None]:
        """Subscribe a handler to an event type.

        Args:
            event_type: Event type string.
            handler: Async function to call when event is published.

        Returns:
            A closure that removes this subscription. Calling it more
            than once is harmless.
        """
        self._handlers.setdefault(event_type, []).append(handler)
        logger.debug(
            "Subscribed handler to: %s (handlers: %d)",
            event_type,
            len(self._handlers[event_type]),
        )

        def unsubscribe() -> None:
            if self.unsubscribe(event_type, handler):
                logger.debug("Unsubscribed handler from: %s", event_type)

        return unsubscribe

    def unsubscribe(
        self,
        event_type: str,
        handler: EventHandler,
    ) -> bool:
        """Unsubscribe a handler from an event type.

        Args:
            event_type: Event type string.
            handler: The handler function to remove.

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
        actor_id: str,
        payload: Mapping[str, Any],
        profile_id: str | None = None,
        metadata: Mapping[str, Any] | None = None,
    ) -> EventData:
        """Publish an event to all subscribers of its type.

        Handlers are called concurrently using asyncio.gather.
        Errors in individual handlers are logged but don't stop
        other handlers from executing.

        Args:
            event_type: The event type string.
            actor_id: User that caused the event.
            payload: Event data dictionary.
            profile_id: Optional sub-profile id.
            metadata: Optional publisher metadata.

        Returns:
            EventData object with event metadata.
        """
        event = EventData(
            event_type=event_type,
            actor_id=actor_id,
            payload=payload,
            profile_id=profile_id,
            metadata=metadata or {},
        )

        self._history.append(event)
        self._event_count += 1

        # Snapshot so handlers may unsubscribe while running
        handlers_to_call = list(self._handlers.get(event_type, ()))

        logger.info(
            "Event published: %s (actor: %s, profile: %s, handlers: %d)",
            event_type,
            actor_id,
            profile_id,
            len(handlers_to_call),
        )

        if not handlers_to_call:
            logger.debug("No handlers for event: %s", event_type)
            return event

        async def safe_call(handler: EventHandler) -> None:
            """Call handler with error handling."""
            try:
                await handler(event)
            except Exception as e:
                self._handler_errors += 1
                logger.error(
                    "Handler error for event %s: %s",
                    event_type,
                    str(e),
                    exc_info=True,
                )

        await asyncio.gather(
            *[safe_call(handler) for handler in handlers_to_call],
            return_exceptions=True,
        )

        return event

    def get_history(
        self,
        event_type: str | None = None,
        actor_id: str | None = None,
        limit: int | None = None,
    ) -> list[EventData]:
        """Query recent events, oldest first.

        Args:
            event_type: Only events of this type.
            actor_id: Only events caused by this user.
            limit: Keep only the last ``limit`` matching events.

        Returns:
            A new list; mutating it does not affect the bus.
        """
        events = [
            event
            for event in self._history
            if (event_type is None or event.event_type == event_type)
            and (actor_id is None or event.actor_id == actor_id)
        ]
        if limit is not None:
            events = events[-limit:] if limit > 0 else []
        return events

    def handler_count(self, event_type: str) -> int:
        """Number of handlers subscribed to ``event_type``."""
        return len(self._handlers.get(event_type, ()))

    def clear(self) -> None:
        """Remove all subscriptions and forget the history."""
        self._handlers.clear()
        self._history.clear()
        logger.debug("EventBus cleared all subscriptions")

    def get_stats(self) -> dict[str, Any]:
        """Get event bus statistics.

        Returns:
            Dictionary with subscription and event counts.
        """
        return {
            "subscriptions": len(self._handlers),
            "total_handlers": sum(len(h) for h in self._handlers.values()),
            "events_published": self._event_count,
            "handler_errors": self._handler_errors,
            "history_length": len(self._history),
            "history_size": self.history_size,
            "event_types": list(self._handlers.keys()),
        }
