# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Centralized event type definitions.

Using constants instead of string literals provides:
- A single source of truth for event names
- IDE autocompletion for publishers and subscribers
"""


class EventTypes:
    """Domain event types published on the event bus."""

    PROBLEM_COMPLETED = "problem_completed"
    ACHIEVEMENT_UNLOCKED = "achievement_unlocked"
    GOAL_COMPLETED = "goal_completed"

    @classmethod
    def all(cls) -> tuple[str, ...]:
        """Return every domain event type."""
        return (
            cls.PROBLEM_COMPLETED,
            cls.ACHIEVEMENT_UNLOCKED,
            cls.GOAL_COMPLETED,
        )


class NotificationTypes:
    """UI-facing notification names dispatched to observers.

    These never travel over the event bus. They are best-effort signals
    telling a UI to refresh its view of a record.
    """

    STREAK_UPDATED = "streak_updated"
    XP_UPDATED = "xp_updated"
