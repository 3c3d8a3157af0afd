# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""UI notification dispatcher.

Delivers lightweight "something changed" signals (for example
``streak_updated``) to in-process observers such as a websocket
broadcaster, so that interested views can refresh without polling.

Delivery is fire-and-forget: dispatch() schedules one task per
listener and returns immediately. There is no acknowledgment and no
retry. A failing listener is logged and does not affect the others.
"""

import asyncio
import inspect
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Awaitable, Callable

from src.utils.datetime import utc_now

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UINotification:
    """A best-effort signal for UI observers.

    Attributes:
        notification_type: Notification name (see NotificationTypes).
        user_id: User whose data changed.
        profile_id: Sub-profile whose data changed; None is the account owner.
        data: Small summary of the change.
        created_at: When the notification was created.
    """

    notification_type: str
    user_id: str
    profile_id: str | None = None
    data: dict[str, Any] = field(default_factory=dict)
    created_at: datetime = field(default_factory=utc_now)


NotificationListener = Callable[[UINotification], Awaitable[None] | None]


class NotificationDispatcher:
    """Fan out UI notifications to registered listeners.

    Listeners may be plain functions or coroutine functions. Pending
    deliveries are tracked so they are not garbage collected mid-flight
    and so drain() can wait for them on shutdown.
    """

    def __init__(self) -> None:
        """Initialize the dispatcher."""
        self._listeners: list[NotificationListener] = []
        self._pending: set[asyncio.Task[None]] = set()
        self._dispatched = 0
        self._failures = 0

    def add_listener(self, listener: NotificationListener) -> Callable[[], None]:
        """Register a listener.

        Args:
            listener: Callable receiving each UINotification.

        Returns:
            A closure that removes the listener.
        """
        self._listeners.append(listener)

        def remove() -> None:
            try:
                self._listeners.remove(listener)
            except ValueError:
                pass

        return remove

    @property
    def listener_count(self) -> int:
        """Number of registered listeners."""
        return len(self._listeners)

    def dispatch(self, notification: UINotification) -> None:
        """Schedule delivery of a notification to every listener.

        Must be called from a running event loop. Returns without
        waiting for any listener.

        Args:
            notification: The notification to deliver.
        """
        if not self._listeners:
            logger.debug(
                "No listeners for notification %s (user %s)",
                notification.notification_type,
                notification.user_id,
            )
            return

        for listener in list(self._listeners):
            task = asyncio.create_task(self._deliver(listener, notification))
            self._pending.add(task)
            task.add_done_callback(self._pending.discard)

        self._dispatched += 1
        logger.debug(
            "Dispatched notification %s to %d listeners (user %s)",
            notification.notification_type,
            len(self._listeners),
            notification.user_id,
        )

    def notify(
        self,
        notification_type: str,
        user_id: str,
        profile_id: str | None = None,
        **data: Any,
    ) -> None:
        """Build and dispatch a notification in one call."""
        self.dispatch(
            UINotification(
                notification_type=notification_type,
                user_id=user_id,
                profile_id=profile_id,
                data=data,
            )
        )

    async def drain(self) -> None:
        """Wait until every scheduled delivery has finished."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    async def _deliver(
        self,
        listener: NotificationListener,
        notification: UINotification,
    ) -> None:
        try:
            result = listener(notification)
            if inspect.isawaitable(result):
                await result
        except Exception as e:
            self._failures += 1
            logger.warning(
                "Notification listener failed for %s (user %s): %s",
                notification.notification_type,
                notification.user_id,
                str(e),
            )

    def get_stats(self) -> dict[str, Any]:
        """Get dispatcher statistics."""
        return {
            "listeners": len(self._listeners),
            "pending": len(self._pending),
            "dispatched": self._dispatched,
            "failures": self._failures,
        }
