# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Progress domain.

This module reacts to learner completions and keeps progress records
consistent:
- CompletionOrchestrator: Fans a completion out to XP, streak, goal and
  challenge updates
- RewardCalculator: XP gain, level curve and streak transitions
- ProblemMatcher: Resolves free-text completions to stored problems
- ProgressGateway and service contracts the orchestrator drives

Usage:
    from src.domains.progress import CompletionOrchestrator

    orchestrator = CompletionOrchestrator(
        event_bus=bus,
        gateway=gateway,
        goal_checker=goals,
        recommendation_provider=recommendations,
        challenge_generator=challenges,
    )
    orchestrator.start()
"""

from src.domains.progress.gateway import (
    ChallengeGenerator,
    GoalChecker,
    ProgressGateway,
    RecommendationProvider,
)
from src.domains.progress.matcher import MatchTier, ProblemMatch, ProblemMatcher
from src.domains.progress.models import (
    Difficulty,
    ProblemRecord,
    RecentGain,
    StreakRecord,
    XPHistoryEntry,
    XPRecord,
)
from src.domains.progress.orchestrator import (
    ORCHESTRATOR_ORIGIN,
    CompletionOrchestrator,
    PersistenceWriteError,
    ProgressError,
)
from src.domains.progress.rewards import (
    RewardCalculator,
    level_from_total_xp,
    merge_history,
    next_streak,
    push_recent_gain,
    xp_gain,
    xp_to_next_level,
)
from src.domains.progress.schemas import (
    AchievementUnlockedPayload,
    Challenge,
    GoalCompletedPayload,
    ProblemCompletedPayload,
    Recommendation,
)

__all__ = [
    # Orchestrator
    "CompletionOrchestrator",
    "ORCHESTRATOR_ORIGIN",
    "ProgressError",
    "PersistenceWriteError",
    # Rewards
    "RewardCalculator",
    "level_from_total_xp",
    "xp_to_next_level",
    "xp_gain",
    "next_streak",
    "merge_history",
    "push_recent_gain",
    # Matching
    "ProblemMatcher",
    "ProblemMatch",
    "MatchTier",
    # Contracts
    "ProgressGateway",
    "GoalChecker",
    "RecommendationProvider",
    "ChallengeGenerator",
    # Models
    "Difficulty",
    "XPRecord",
    "XPHistoryEntry",
    "RecentGain",
    "StreakRecord",
    "ProblemRecord",
    # Schemas
    "ProblemCompletedPayload",
    "AchievementUnlockedPayload",
    "GoalCompletedPayload",
    "Recommendation",
    "Challenge",
]
