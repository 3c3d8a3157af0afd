# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Event infrastructure module.

This module provides an in-memory event bus for decoupled communication
between the application and the completion orchestrator.

Components:
- EventBus: In-memory pub/sub with bounded history
- EventTypes: Domain event type constants
- NotificationTypes: UI notification names

Quick Start:
    from src.infrastructure.events import EventBus, EventTypes

    event_bus = EventBus(history_size=100)
    event_bus.subscribe(EventTypes.GOAL_COMPLETED, my_handler)

    await event_bus.publish(
        EventTypes.GOAL_COMPLETED,
        "user-123",
        {"goal_id": "goal-1", "goal_type": "problems", "target_subject": "algebra"},
    )
"""

from src.infrastructure.events.bus import (
    DEFAULT_HISTORY_SIZE,
    EventBus,
    EventData,
    EventHandler,
)
from src.infrastructure.events.types import EventTypes, NotificationTypes

__all__ = [
    # Event Bus
    "EventBus",
    "EventData",
    "EventHandler",
    "DEFAULT_HISTORY_SIZE",
    # Event Types
    "EventTypes",
    "NotificationTypes",
]
