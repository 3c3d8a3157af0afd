# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Data models for the progress domain.

This module defines Pydantic models and enums for the records the
completion orchestrator reads and writes through the persistence
gateway:
- XP record with per-day history and recent gains
- Streak record
- Problem record

All records are keyed by ``(user_id, profile_id)``. A ``profile_id`` of
None is the account owner's own progress.
"""

from datetime import date, datetime
from enum import Enum

from pydantic import BaseModel, Field, field_validator

from src.utils.datetime import ensure_utc


class Difficulty(str, Enum):
    """Problem difficulty bands.

    Each band has its own base XP (see RewardSettings).
    """

    ELEMENTARY = "elementary"
    MIDDLE = "middle"
    HIGH = "high"
    ADVANCED = "advanced"


class XPHistoryEntry(BaseModel):
    """XP earned on one calendar day.

    Attributes:
        date: UTC calendar day.
        xp: XP earned that day.
        reason: Reasons joined with `` + `` when gains were merged.
    """

    date: date
    xp: int = Field(ge=0)
    reason: str


class RecentGain(BaseModel):
    """A single XP award, kept for the "recent activity" view."""

    timestamp: datetime
    xp: int = Field(ge=0)
    reason: str


class XPRecord(BaseModel):
    """Experience points for one user/profile.

    ``level`` and ``xp_to_next_level`` are derived from ``total_xp`` by
    the reward calculators and stored for display only.

    Attributes:
        total_xp: Lifetime XP, never decreases.
        level: Current level.
        xp_to_next_level: XP still needed for the next level.
        xp_history: One entry per calendar day, oldest first.
        recent_gains: Most recent awards, newest first.
    """

    total_xp: int = Field(default=0, ge=0)
    level: int = Field(default=1, ge=1)
    xp_to_next_level: int = Field(default=100, ge=0)
    xp_history: list[XPHistoryEntry] = Field(default_factory=list)
    recent_gains: list[RecentGain] = Field(default_factory=list)


class StreakRecord(BaseModel):
    """Consecutive study days for one user/profile.

    Attributes:
        current_streak: Consecutive days ending at last_study_date.
        longest_streak: Best streak ever reached.
        last_study_date: Last UTC day with a completed problem.
    """

    current_streak: int = Field(default=0, ge=0)
    longest_streak: int = Field(default=0, ge=0)
    last_study_date: date | None = None


class ProblemRecord(BaseModel):
    """A problem the learner worked on.

    Created unsolved by the tutoring flow. The orchestrator is the only
    writer of ``solved_at``.

    Attributes:
        id: Problem identifier.
        text: Problem statement as shown to the learner.
        type: Problem category (arithmetic, algebra, ...).
        solved_at: When the problem was marked solved.
        created_at: When the problem was created.
        user_id: Owning account.
        profile_id: Owning sub-profile, None for the account owner.
    """

    id: str
    text: str
    type: str | None = None
    solved_at: datetime | None = None
    created_at: datetime
    user_id: str | None = None
    profile_id: str | None = None

    @field_validator("solved_at", "created_at")
    @classmethod
    def _as_utc(cls, value: datetime | None) -> datetime | None:
        return ensure_utc(value)

    @property
    def is_solved(self) -> bool:
        """Whether the problem already has a solved timestamp."""
        return self.solved_at is not None
