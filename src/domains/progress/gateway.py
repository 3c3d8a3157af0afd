# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Contracts of the collaborators the completion orchestrator drives.

The orchestrator never talks to a database or another service directly.
It reads and writes progress records through a ProgressGateway and
triggers the goal, recommendation and challenge services through the
abstract classes below. Concrete implementations live with the
surrounding application.

Failure semantics:
    - ``get_*`` returning None means "no record yet", not an error.
    - ``update_*`` returning False means the write failed; the
      orchestrator logs it and moves on.
    - Any raised exception is treated as a transient failure of the
      step that made the call.
"""

from abc import ABC, abstractmethod
from typing import Any

from src.domains.progress.models import ProblemRecord, StreakRecord, XPRecord
from src.domains.progress.schemas import Challenge, Recommendation


class ProgressGateway(ABC):
    """Persistence gateway for XP, streak and problem records."""

    @abstractmethod
    async def get_xp_data(
        self,
        user_id: str,
        profile_id: str | None,
    ) -> XPRecord | None:
        """Fetch the XP record, or None if there is none."""
        ...

    @abstractmethod
    async def update_xp_data(
        self,
        user_id: str,
        record: XPRecord,
        profile_id: str | None,
    ) -> bool:
        """Persist the XP record. Returns False on failure."""
        ...

    @abstractmethod
    async def get_streak_data(
        self,
        user_id: str,
        profile_id: str | None,
    ) -> StreakRecord | None:
        """Fetch the streak record, or None if there is none."""
        ...

    @abstractmethod
    async def update_streak_data(
        self,
        user_id: str,
        record: StreakRecord,
        profile_id: str | None,
    ) -> bool:
        """Persist the streak record. Returns False on failure."""
        ...

    @abstractmethod
    async def create_default_streak_data(
        self,
        user_id: str,
        profile_id: str | None,
    ) -> StreakRecord:
        """Create and return a zeroed streak record."""
        ...

    @abstractmethod
    async def get_problems(
        self,
        user_id: str,
        profile_id: str | None = None,
    ) -> list[ProblemRecord]:
        """List the user's known problems for the profile."""
        ...

    @abstractmethod
    async def update_problem(
        self,
        user_id: str,
        problem_id: str,
        patch: dict[str, Any],
    ) -> bool:
        """Apply a partial update to a problem. Returns False on failure."""
        ...


class GoalChecker(ABC):
    """Goal service entry point used after a completion."""

    @abstractmethod
    async def check_goals_for_problem(
        self,
        user_id: str,
        problem_type: str,
        profile_id: str | None,
    ) -> None:
        """Re-evaluate the user's goals against a solved problem."""
        ...


class RecommendationProvider(ABC):
    """Recommendation service entry point used after a goal completes."""

    @abstractmethod
    async def get_subject_recommendations(
        self,
        user_id: str,
        profile_id: str | None,
        count: int,
    ) -> list[Recommendation]:
        """Suggest up to ``count`` subjects to study next."""
        ...


class ChallengeGenerator(ABC):
    """Social challenge service entry point used after a completion."""

    @abstractmethod
    async def generate_challenge(
        self,
        user_id: str,
        payload: dict[str, Any],
    ) -> Challenge | None:
        """Create a shareable challenge from a completed problem."""
        ...
