# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Notification infrastructure.

Best-effort UI notifications dispatched after progress records change.

Example:
    from src.infrastructure.notifications import NotificationDispatcher

    dispatcher = NotificationDispatcher()
    dispatcher.add_listener(websocket_broadcaster)
    dispatcher.notify("streak_updated", user_id, current_streak=6)
"""

from src.infrastructure.notifications.dispatcher import (
    NotificationDispatcher,
    NotificationListener,
    UINotification,
)

__all__ = [
    "NotificationDispatcher",
    "NotificationListener",
    "UINotification",
]
