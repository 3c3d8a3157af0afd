# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Problem matcher.

A completion arrives with the problem statement as free text, not with
a problem id. The matcher resolves that text to one of the learner's
stored problems using three tiers, in strict order:

1. Exact: stored text equals the incoming text.
2. Prefix: the first ``min(prefix_length, len)`` characters agree. This
   catches restatements that were truncated or extended.
3. Recency: the most recently created unsolved problem.

Within a tier the most recently created problem wins. When no tier
yields a problem the result is None and nothing gets marked solved.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Iterable

from src.domains.progress.models import ProblemRecord

logger = logging.getLogger(__name__)

DEFAULT_PREFIX_LENGTH = 50


class MatchTier(str, Enum):
    """How a problem was matched."""

    EXACT = "exact"
    PREFIX = "prefix"
    RECENT_UNSOLVED = "recent_unsolved"


@dataclass(frozen=True)
class ProblemMatch:
    """A resolved problem and the tier that found it."""

    problem: ProblemRecord
    tier: MatchTier


def _prefix_matches(stored: str, incoming: str, prefix_length: int) -> bool:
    length = min(prefix_length, len(stored), len(incoming))
    if length == 0:
        return False
    return stored[:length] == incoming[:length]


def _most_recent(problems: list[ProblemRecord]) -> ProblemRecord | None:
    if not problems:
        return None
    return max(problems, key=lambda p: p.created_at)


class ProblemMatcher:
    """Resolve free-text completions to stored problem records."""

    def __init__(self, prefix_length: int = DEFAULT_PREFIX_LENGTH) -> None:
        """Initialize the matcher.

        Args:
            prefix_length: Characters compared by the prefix tier.
        """
        if prefix_length < 1:
            raise ValueError("prefix_length must be at least 1")
        self._prefix_length = prefix_length

    def match(
        self,
        user_id: str,
        profile_id: str | None,
        incoming_text: str,
        problems: Iterable[ProblemRecord],
    ) -> ProblemMatch | None:
        """Find the stored problem a completion refers to.

        Problems explicitly owned by another user or another profile are
        ignored. Problems without owner fields are taken as the caller's,
        since the gateway already scoped the query.

        Args:
            user_id: Completing user.
            profile_id: Completing profile, None for the account owner.
            incoming_text: Problem text from the completion event.
            problems: The user's known problems.

        Returns:
            The match, or None if no tier produced a problem.
        """
        candidates = [
            p
            for p in problems
            if (p.user_id is None or p.user_id == user_id)
            and (p.profile_id is None or p.profile_id == profile_id)
        ]

        exact = _most_recent([p for p in candidates if p.text == incoming_text])
        if exact is not None:
            return self._matched(exact, MatchTier.EXACT, user_id)

        prefix = _most_recent([
            p
            for p in candidates
            if _prefix_matches(p.text, incoming_text, self._prefix_length)
        ])
        if prefix is not None:
            return self._matched(prefix, MatchTier.PREFIX, user_id)

        recent = _most_recent([p for p in candidates if not p.is_solved])
        if recent is not None:
            return self._matched(recent, MatchTier.RECENT_UNSOLVED, user_id)

        logger.debug(
            "No problem matched for user %s (%d candidates)",
            user_id,
            len(candidates),
        )
        return None

    def _matched(
        self,
        problem: ProblemRecord,
        tier: MatchTier,
        user_id: str,
    ) -> ProblemMatch:
        logger.debug(
            "Matched problem %s for user %s by %s",
            problem.id,
            user_id,
            tier.value,
        )
        return ProblemMatch(problem=problem, tier=tier)
