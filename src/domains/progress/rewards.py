# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Reward calculators.

Pure, deterministic functions that turn a completion into XP, XP into a
level, and a study day into a streak transition. This is the only place
in the application where these rules live; every caller goes through a
RewardCalculator built from RewardSettings.

Level curve:
    Clearing level L costs ``round(base * (L - 1) * growth + base)`` XP,
    so with the defaults levels start at 0, 100, 350, 750, 1300, ...
    total XP. Level 1 covers [0, 100).

Example:
    >>> calc = RewardCalculator()
    >>> calc.xp_gain("middle", hints_used=2)
    6
    >>> calc.level_from_total_xp(350)
    3
"""

import math
from dataclasses import dataclass, field
from datetime import date, datetime

from src.core.config.settings import RewardSettings
from src.domains.progress.models import (
    Difficulty,
    RecentGain,
    StreakRecord,
    XPHistoryEntry,
)
from src.utils.datetime import previous_day

HISTORY_REASON_SEPARATOR = " + "


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


@dataclass(frozen=True)
class RewardCalculator:
    """XP and level rules.

    Attributes:
        base_xp_by_difficulty: Base XP per difficulty band.
        base_xp_default: Base XP for a missing or unknown difficulty.
        hint_penalty_per_hint: XP deducted per hint.
        minimum_xp: Floor for one completion's XP.
        level_base_xp: XP needed to clear level 1.
        level_growth_factor: Growth of the per-level requirement.
    """

    base_xp_by_difficulty: dict[str, int] = field(
        default_factory=lambda: {
            Difficulty.ELEMENTARY.value: 5,
            Difficulty.MIDDLE.value: 10,
            Difficulty.HIGH.value: 15,
            Difficulty.ADVANCED.value: 20,
        }
    )
    base_xp_default: int = 10
    hint_penalty_per_hint: int = 2
    minimum_xp: int = 5
    level_base_xp: int = 100
    level_growth_factor: float = 1.5

    @classmethod
    def from_settings(cls, settings: RewardSettings) -> "RewardCalculator":
        """Build a calculator from reward settings."""
        return cls(
            base_xp_by_difficulty=settings.base_xp_by_difficulty,
            base_xp_default=settings.base_xp_default,
            hint_penalty_per_hint=settings.hint_penalty_per_hint,
            minimum_xp=settings.minimum_xp,
            level_base_xp=settings.level_base_xp,
            level_growth_factor=settings.level_growth_factor,
        )

    # =========================================================================
    # XP gain
    # =========================================================================

    def base_xp(self, difficulty: Difficulty | str | None) -> int:
        """Base XP for a difficulty band."""
        if difficulty is None:
            return self.base_xp_default
        # Difficulty members are str subclasses but str() gives "Difficulty.X"
        key = getattr(difficulty, "value", difficulty)
        return self.base_xp_by_difficulty.get(key.lower(), self.base_xp_default)

    def hint_penalty(self, hints_used: int | None) -> int:
        """XP deducted for the hints used."""
        return self.hint_penalty_per_hint * max(0, hints_used or 0)

    def xp_gain(
        self,
        difficulty: Difficulty | str | None,
        hints_used: int | None = 0,
    ) -> int:
        """XP awarded for one completion.

        ``max(minimum_xp, base_xp(difficulty) - penalty * hints_used)``
        """
        return max(
            self.minimum_xp,
            self.base_xp(difficulty) - self.hint_penalty(hints_used),
        )

    # =========================================================================
    # Levels
    # =========================================================================

    def level_requirement(self, level: int) -> int:
        """XP needed to go from ``level`` to ``level + 1``."""
        return _round_half_up(
            self.level_base_xp * (level - 1) * self.level_growth_factor
            + self.level_base_xp
        )

    def threshold_for(self, level: int) -> int:
        """Total XP at which ``level`` begins."""
        total = 0
        for lower in range(1, level):
            total += self.level_requirement(lower)
        return total

    def level_from_total_xp(self, total_xp: int) -> int:
        """Greatest level whose threshold ``total_xp`` has reached."""
        level = 1
        accumulated = 0
        while accumulated + self.level_requirement(level) <= total_xp:
            accumulated += self.level_requirement(level)
            level += 1
        return level

    def xp_to_next_level(self, total_xp: int, level: int) -> int:
        """XP still needed to reach ``level + 1``, never negative."""
        return max(0, self.threshold_for(level + 1) - total_xp)


# =============================================================================
# Record transitions
# =============================================================================


def next_streak(record: StreakRecord, today: date) -> StreakRecord | None:
    """Streak after studying on ``today``.

    Returns:
        The updated record, or None when ``today`` was already counted.
    """
    last = record.last_study_date
    if last == today:
        return None

    if last is not None and last == previous_day(today):
        current = record.current_streak + 1
    else:
        current = 1

    return StreakRecord(
        current_streak=current,
        longest_streak=max(record.longest_streak, current),
        last_study_date=today,
    )


def merge_history(
    history: list[XPHistoryEntry],
    today: date,
    xp: int,
    reason: str,
) -> list[XPHistoryEntry]:
    """Add a gain to the day's history entry, creating it if needed."""
    merged: list[XPHistoryEntry] = []
    found = False
    for entry in history:
        if entry.date == today and not found:
            merged.append(
                XPHistoryEntry(
                    date=entry.date,
                    xp=entry.xp + xp,
                    reason=f"{entry.reason}{HISTORY_REASON_SEPARATOR}{reason}",
                )
            )
            found = True
        else:
            merged.append(entry)
    if not found:
        merged.append(XPHistoryEntry(date=today, xp=xp, reason=reason))
    return merged


def push_recent_gain(
    recent_gains: list[RecentGain],
    timestamp: datetime,
    xp: int,
    reason: str,
    limit: int,
) -> list[RecentGain]:
    """Prepend a gain, keeping at most ``limit`` entries."""
    gain = RecentGain(timestamp=timestamp, xp=xp, reason=reason)
    return [gain, *recent_gains][: max(0, limit)]


DEFAULT_CALCULATOR = RewardCalculator()


def level_from_total_xp(total_xp: int) -> int:
    """Level for ``total_xp`` under the default rules."""
    return DEFAULT_CALCULATOR.level_from_total_xp(total_xp)


def xp_to_next_level(total_xp: int, level: int) -> int:
    """XP to the next level under the default rules."""
    return DEFAULT_CALCULATOR.xp_to_next_level(total_xp, level)


def xp_gain(
    difficulty: Difficulty | str | None,
    hints_used: int | None = 0,
) -> int:
    """XP for one completion under the default rules."""
    return DEFAULT_CALCULATOR.xp_gain(difficulty, hints_used)
