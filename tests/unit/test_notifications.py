# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for the UI notification dispatcher."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from src.infrastructure.events import NotificationTypes
from src.infrastructure.notifications import NotificationDispatcher, UINotification


@pytest.fixture
def dispatcher() -> NotificationDispatcher:
    """Create a notification dispatcher."""
    return NotificationDispatcher()


class TestNotificationDispatcher:
    """Tests for NotificationDispatcher."""

    @pytest.mark.asyncio
    async def test_notify_reaches_async_and_sync_listeners(
        self, dispatcher: NotificationDispatcher
    ) -> None:
        """Test delivery to both kinds of listeners."""
        async_listener = AsyncMock()
        sync_listener = MagicMock(return_value=None)
        dispatcher.add_listener(async_listener)
        dispatcher.add_listener(sync_listener)

        dispatcher.notify(
            NotificationTypes.STREAK_UPDATED, "user-1", "profile-1", current_streak=4
        )
        await dispatcher.drain()

        notification = async_listener.await_args.args[0]
        assert isinstance(notification, UINotification)
        assert notification.notification_type == "streak_updated"
        assert notification.profile_id == "profile-1"
        assert notification.data == {"current_streak": 4}
        sync_listener.assert_called_once_with(notification)

    @pytest.mark.asyncio
    async def test_dispatch_does_not_wait_for_listeners(
        self, dispatcher: NotificationDispatcher
    ) -> None:
        """Test that dispatch returns before listeners run."""
        listener = AsyncMock()
        dispatcher.add_listener(listener)

        dispatcher.notify(NotificationTypes.XP_UPDATED, "user-1")

        listener.assert_not_awaited()
        assert dispatcher.get_stats()["pending"] == 1

        await dispatcher.drain()

        listener.assert_awaited_once()
        assert dispatcher.get_stats()["pending"] == 0

    @pytest.mark.asyncio
    async def test_failing_listener_is_isolated(
        self, dispatcher: NotificationDispatcher
    ) -> None:
        """Test that one failing listener does not affect another."""
        failing = AsyncMock(side_effect=RuntimeError("socket closed"))
        healthy = AsyncMock()
        dispatcher.add_listener(failing)
        dispatcher.add_listener(healthy)

        dispatcher.notify(NotificationTypes.STREAK_UPDATED, "user-1")
        await dispatcher.drain()

        healthy.assert_awaited_once()
        assert dispatcher.get_stats()["failures"] == 1

    @pytest.mark.asyncio
    async def test_remove_listener(self, dispatcher: NotificationDispatcher) -> None:
        """Test that a removed listener is no longer called."""
        listener = AsyncMock()
        remove = dispatcher.add_listener(listener)

        remove()
        remove()
        dispatcher.notify(NotificationTypes.STREAK_UPDATED, "user-1")
        await dispatcher.drain()

        listener.assert_not_awaited()
        assert dispatcher.listener_count == 0

    @pytest.mark.asyncio
    async def test_no_listeners_is_a_no_op(
        self, dispatcher: NotificationDispatcher
    ) -> None:
        """Test dispatching with nobody listening."""
        dispatcher.notify(NotificationTypes.STREAK_UPDATED, "user-1")

        assert dispatcher.get_stats()["dispatched"] == 0
