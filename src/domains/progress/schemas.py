# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Event payload and collaborator result schemas for the progress domain.

This module defines Pydantic models for:
- ProblemCompletedPayload: A learner finished a problem
- AchievementUnlockedPayload: An achievement was unlocked
- GoalCompletedPayload: A learning goal was completed
- Recommendation: A subject suggested by the recommendation service
- Challenge: A social challenge created by the challenge generator

Payloads are validated when a handler reads them off the event bus.
Publishers are expected to send complete payloads; a missing required
field fails that handler only.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ProblemCompletedPayload(BaseModel):
    """Payload of a ``problem_completed`` event.

    Extra keys are kept and forwarded to the challenge generator.
    """

    model_config = ConfigDict(extra="allow")

    problem_text: str = Field(description="Problem statement as the learner saw it")
    problem_type: str = Field(description="Problem category")
    difficulty: str | None = Field(
        default=None,
        description="elementary, middle, high or advanced",
    )
    hints_used: int | None = Field(default=None, ge=0)
    time_spent: int | None = Field(
        default=None,
        ge=0,
        description="Seconds spent on the problem",
    )
    profile_id: str | None = None

    @property
    def hint_count(self) -> int:
        """Hints used, treating a missing value as zero."""
        return self.hints_used or 0


class AchievementUnlockedPayload(BaseModel):
    """Payload of an ``achievement_unlocked`` event."""

    model_config = ConfigDict(extra="allow")

    achievement_id: str
    achievement_name: str
    profile_id: str | None = None


class GoalCompletedPayload(BaseModel):
    """Payload of a ``goal_completed`` event."""

    model_config = ConfigDict(extra="allow")

    goal_id: str
    goal_type: str
    target_subject: str
    profile_id: str | None = None


class Recommendation(BaseModel):
    """A subject recommendation."""

    subject: str
    score: float = 0.0
    reason: str | None = None


class Challenge(BaseModel):
    """A "beat my skill" challenge created after a completion."""

    model_config = ConfigDict(extra="allow")

    id: str
    share_code: str | None = None

    def summary(self) -> dict[str, Any]:
        """Fields worth logging."""
        return {"challenge_id": self.id, "share_code": self.share_code}
