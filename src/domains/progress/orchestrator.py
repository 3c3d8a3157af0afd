# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Completion orchestrator.

Turns one "the learner finished something" signal into updates across
the XP, streak, goal and challenge subsystems.

Problem completion runs these steps, each fault-isolated so that a
failing step is logged and the next one still runs:

    1. resolve_problem      match the free-text problem to a stored record
    2. update_xp            award XP (skipped if the problem was already solved)
    3. update_streak        count today as a study day
    4. check_goals          ask the goal service to re-evaluate
    5. generate_challenge   create a shareable "beat my skill" challenge
    6. mark_problem_solved  set solved_at on the resolved problem
    7. notify_observers     fire-and-forget UI notifications

Achievement and goal completions are thin translators: they publish the
canonical event on the bus and, for goals, request recommendations.

There is no retry anywhere. Every side effect is at most once. The
read-modify-write on XP and streak records is not locked, so two
concurrent completions for the same user/profile can lose an update.

Example:
    >>> orchestrator = CompletionOrchestrator(
    ...     event_bus=bus,
    ...     gateway=gateway,
    ...     goal_checker=goals,
    ...     recommendation_provider=recommendations,
    ...     challenge_generator=challenges,
    ...     notifier=dispatcher,
    ... )
    >>> orchestrator.start()
    >>> await bus.publish("problem_completed", user_id, payload)
"""

import asyncio
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Awaitable, Callable, Coroutine, Mapping, TypeVar

from pydantic import BaseModel

from src.core.config.settings import Settings, get_settings
from src.domains.progress.gateway import (
    ChallengeGenerator,
    GoalChecker,
    ProgressGateway,
    RecommendationProvider,
)
from src.domains.progress.matcher import ProblemMatch, ProblemMatcher
from src.domains.progress.models import StreakRecord, XPRecord
from src.domains.progress.rewards import (
    RewardCalculator,
    merge_history,
    next_streak,
    push_recent_gain,
)
from src.domains.progress.schemas import (
    AchievementUnlockedPayload,
    GoalCompletedPayload,
    ProblemCompletedPayload,
)
from src.infrastructure.events import EventBus, EventData, EventTypes, NotificationTypes
from src.infrastructure.notifications import NotificationDispatcher
from src.utils.datetime import study_day, utc_now
from src.utils.logging import get_logger

logger = get_logger(__name__)

# Marks events this orchestrator published so its own handlers skip them
ORCHESTRATOR_ORIGIN = "completion_orchestrator"

PayloadT = TypeVar("PayloadT", bound=BaseModel)
T = TypeVar("T")


class ProgressError(Exception):
    """Base exception for progress domain errors."""

    pass


class PersistenceWriteError(ProgressError):
    """Raised when the gateway reports a failed write.

    Attributes:
        record: Which record failed to persist (xp, streak, problem).
        user_id: Owner of the record.
    """

    def __init__(self, record: str, user_id: str) -> None:
        self.record = record
        self.user_id = user_id
        super().__init__(f"Failed to persist {record} record for user {user_id}")


@dataclass
class _Completion:
    """State of one problem completion while its steps run."""

    user_id: str
    payload: ProblemCompletedPayload
    now: datetime
    log: Any
    failed_steps: list[str] = field(default_factory=list)

    @property
    def profile_id(self) -> str | None:
        return self.payload.profile_id


def _coerce(model: type[PayloadT], payload: PayloadT | Mapping[str, Any]) -> PayloadT:
    if isinstance(payload, model):
        return payload
    return model.model_validate(dict(payload))


class CompletionOrchestrator:
    """Coordinates XP, streak, goal and challenge updates for completions.

    Built once by the application root. start() subscribes the handlers
    to the event bus and is idempotent; stop() removes them.

    Attributes:
        _event_bus: Bus the handlers are subscribed to and events published on.
        _gateway: Persistence gateway for XP, streak and problem records.
        _running: Whether the handlers are subscribed.
        _subscriptions: Unsubscribe closures for cleanup.
        _background: Side-effect tasks still running when offloading.
    """

    def __init__(
        self,
        event_bus: EventBus,
        gateway: ProgressGateway,
        goal_checker: GoalChecker,
        recommendation_provider: RecommendationProvider,
        challenge_generator: ChallengeGenerator,
        notifier: NotificationDispatcher | None = None,
        settings: Settings | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            event_bus: Application event bus.
            gateway: Persistence gateway.
            goal_checker: Goal service.
            recommendation_provider: Recommendation service.
            challenge_generator: Challenge service.
            notifier: UI notification dispatcher; None disables notifications.
            settings: Application settings, defaults to get_settings().
            clock: Source of the current UTC time.
        """
        settings = settings or get_settings()
        self._event_bus = event_bus
        self._gateway = gateway
        self._goal_checker = goal_checker
        self._recommendations = recommendation_provider
        self._challenges = challenge_generator
        self._notifier = notifier
        self._clock = clock

        self._config = settings.orchestrator
        self._rewards = RewardCalculator.from_settings(settings.rewards)
        self._recent_gains_limit = settings.rewards.recent_gains_limit
        self._matcher = ProblemMatcher(prefix_length=self._config.problem_prefix_length)

        self._running = False
        self._subscriptions: list[Callable[[], None]] = []
        self._background: set[asyncio.Task[Any]] = set()

    # =========================================================================
    # Lifecycle
    # =========================================================================

    @property
    def is_running(self) -> bool:
        """Check if the handlers are subscribed."""
        return self._running

    def start(self) -> None:
        """Subscribe the completion handlers to the event bus.

        Calling start() again while running does nothing.
        """
        if self._running:
            logger.debug("orchestrator_already_running")
            return

        self._subscriptions = [
            self._event_bus.subscribe(
                EventTypes.PROBLEM_COMPLETED, self._handle_problem_completed
            ),
            self._event_bus.subscribe(
                EventTypes.ACHIEVEMENT_UNLOCKED, self._handle_achievement_unlocked
            ),
            self._event_bus.subscribe(
                EventTypes.GOAL_COMPLETED, self._handle_goal_completed
            ),
        ]
        self._running = True
        logger.info("orchestrator_started", subscriptions=len(self._subscriptions))

    def stop(self) -> None:
        """Unsubscribe the handlers. Safe to call when not running."""
        if not self._running:
            return

        for unsubscribe in self._subscriptions:
            unsubscribe()
        self._subscriptions = []
        self._running = False
        logger.info("orchestrator_stopped")

    async def drain(self) -> None:
        """Wait for offloaded side effects and pending notifications."""
        while self._background:
            await asyncio.gather(*list(self._background), return_exceptions=True)
        if self._notifier is not None:
            await self._notifier.drain()

    # =========================================================================
    # Event bus handlers
    # =========================================================================

    async def _handle_problem_completed(self, event: EventData) -> None:
        await self.on_problem_completed(event.actor_id, self._event_payload(event))

    async def _handle_achievement_unlocked(self, event: EventData) -> None:
        if self._is_own(event):
            return
        # Already canonical on the bus; nothing else hangs off achievements yet
        logger.debug(
            "achievement_observed",
            user_id=event.actor_id,
            achievement_id=event.payload.get("achievement_id"),
        )

    async def _handle_goal_completed(self, event: EventData) -> None:
        if self._is_own(event):
            return
        payload = _coerce(GoalCompletedPayload, self._event_payload(event))
        await self._recommend_after_goal(event.actor_id, payload)

    @staticmethod
    def _is_own(event: EventData) -> bool:
        return event.metadata.get("origin") == ORCHESTRATOR_ORIGIN

    @staticmethod
    def _event_payload(event: EventData) -> dict[str, Any]:
        payload = dict(event.payload)
        if payload.get("profile_id") is None and event.profile_id is not None:
            payload["profile_id"] = event.profile_id
        return payload

    # =========================================================================
    # Problem completion
    # =========================================================================

    async def on_problem_completed(
        self,
        user_id: str,
        payload: ProblemCompletedPayload | Mapping[str, Any],
    ) -> None:
        """Apply every side effect of a completed problem.

        Never raises for downstream failures. A payload missing a
        required field raises pydantic.ValidationError before any step
        runs.

        Args:
            user_id: Completing user.
            payload: Completion details.
        """
        payload = _coerce(ProblemCompletedPayload, payload)
        completion = _Completion(
            user_id=user_id,
            payload=payload,
            now=self._clock(),
            log=logger.bind(user_id=user_id, profile_id=payload.profile_id),
        )
        completion.log.info(
            "problem_completion_started",
            problem_type=payload.problem_type,
            difficulty=payload.difficulty,
            hints_used=payload.hint_count,
        )

        match = await self._run_step(completion, "resolve_problem", self._resolve_problem)
        problem = match.problem if match is not None else None
        already_solved = problem is not None and problem.is_solved

        xp_record: XPRecord | None = None
        if already_solved:
            completion.log.info("xp_skipped_problem_already_solved", problem_id=problem.id)
        else:
            xp_record = await self._run_step(completion, "update_xp", self._update_xp)

        streak_record = await self._run_step(
            completion, "update_streak", self._update_streak
        )

        await self._side_effect(completion, "check_goals", self._check_goals)
        await self._side_effect(completion, "generate_challenge", self._generate_challenge)

        if problem is not None and not already_solved:
            await self._run_step(
                completion,
                "mark_problem_solved",
                lambda c: self._mark_problem_solved(c, problem.id),
            )

        self._notify_observers(completion, xp_record, streak_record)

        completion.log.info(
            "problem_completion_orchestrated",
            problem_id=problem.id if problem is not None else None,
            failed_steps=completion.failed_steps,
        )

    async def _run_step(
        self,
        completion: _Completion,
        step: str,
        func: Callable[[_Completion], Awaitable[T]],
    ) -> T | None:
        """Run one step, logging and swallowing its failure."""
        try:
            return await func(completion)
        except Exception as e:
            completion.failed_steps.append(step)
            completion.log.error(
                "orchestration_step_failed",
                step=step,
                error=str(e),
                error_type=type(e).__name__,
                exc_info=True,
            )
            return None

    async def _side_effect(
        self,
        completion: _Completion,
        step: str,
        func: Callable[[_Completion], Coroutine[Any, Any, Any]],
    ) -> None:
        """Run a collaborator call inline or hand it off to a background task."""
        if not self._config.offload_side_effects:
            await self._run_step(completion, step, func)
            return

        task = asyncio.create_task(self._run_step(completion, step, func))
        self._background.add(task)
        task.add_done_callback(self._background.discard)
        completion.log.debug("side_effect_offloaded", step=step)

    async def _resolve_problem(self, completion: _Completion) -> ProblemMatch | None:
        problems = await self._gateway.get_problems(
            completion.user_id, completion.profile_id
        )
        match = self._matcher.match(
            completion.user_id,
            completion.profile_id,
            completion.payload.problem_text,
            problems,
        )
        if match is None:
            completion.log.info("problem_not_matched", known_problems=len(problems))
        else:
            completion.log.debug(
                "problem_matched",
                problem_id=match.problem.id,
                tier=match.tier.value,
                already_solved=match.problem.is_solved,
            )
        return match

    async def _update_xp(self, completion: _Completion) -> XPRecord | None:
        current = await self._gateway.get_xp_data(
            completion.user_id, completion.profile_id
        )
        if current is None:
            completion.log.warning("xp_record_missing")
            return None

        payload = completion.payload
        gained = self._rewards.xp_gain(payload.difficulty, payload.hint_count)
        total_xp = current.total_xp + gained
        level = self._rewards.level_from_total_xp(total_xp)
        reason = f"Solved {payload.problem_type.replace('_', ' ')} problem"

        record = XPRecord(
            total_xp=total_xp,
            level=level,
            xp_to_next_level=self._rewards.xp_to_next_level(total_xp, level),
            xp_history=merge_history(
                current.xp_history, study_day(completion.now), gained, reason
            ),
            recent_gains=push_recent_gain(
                current.recent_gains,
                completion.now,
                gained,
                reason,
                self._recent_gains_limit,
            ),
        )

        if not await self._gateway.update_xp_data(
            completion.user_id, record, completion.profile_id
        ):
            raise PersistenceWriteError("xp", completion.user_id)

        completion.log.info(
            "xp_awarded",
            xp_gained=gained,
            total_xp=total_xp,
            level=level,
            leveled_up=level > current.level,
        )
        return record

    async def _update_streak(self, completion: _Completion) -> StreakRecord | None:
        current = await self._gateway.get_streak_data(
            completion.user_id, completion.profile_id
        )
        if current is None:
            current = await self._gateway.create_default_streak_data(
                completion.user_id, completion.profile_id
            )
            completion.log.info("streak_record_created")

        updated = next_streak(current, study_day(completion.now))
        if updated is None:
            completion.log.debug(
                "streak_already_counted_today",
                current_streak=current.current_streak,
            )
            return None

        if not await self._gateway.update_streak_data(
            completion.user_id, updated, completion.profile_id
        ):
            raise PersistenceWriteError("streak", completion.user_id)

        completion.log.info(
            "streak_updated",
            current_streak=updated.current_streak,
            longest_streak=updated.longest_streak,
        )
        return updated

    async def _check_goals(self, completion: _Completion) -> None:
        await self._goal_checker.check_goals_for_problem(
            completion.user_id,
            completion.payload.problem_type,
            completion.profile_id,
        )

    async def _generate_challenge(self, completion: _Completion) -> None:
        challenge = await self._challenges.generate_challenge(
            completion.user_id,
            completion.payload.model_dump(exclude_unset=True),
        )
        if challenge is not None:
            completion.log.info("challenge_generated", **challenge.summary())

    async def _mark_problem_solved(self, completion: _Completion, problem_id: str) -> None:
        if not await self._gateway.update_problem(
            completion.user_id, problem_id, {"solved_at": completion.now}
        ):
            raise PersistenceWriteError("problem", completion.user_id)
        completion.log.info("problem_marked_solved", problem_id=problem_id)

    def _notify_observers(
        self,
        completion: _Completion,
        xp_record: XPRecord | None,
        streak_record: StreakRecord | None,
    ) -> None:
        if self._notifier is None or not self._config.notifications_enabled:
            return

        try:
            if xp_record is not None:
                self._notifier.notify(
                    NotificationTypes.XP_UPDATED,
                    completion.user_id,
                    completion.profile_id,
                    total_xp=xp_record.total_xp,
                    level=xp_record.level,
                )
            streak_data: dict[str, Any] = {"changed": streak_record is not None}
            if streak_record is not None:
                streak_data["current_streak"] = streak_record.current_streak
                streak_data["longest_streak"] = streak_record.longest_streak
            self._notifier.notify(
                NotificationTypes.STREAK_UPDATED,
                completion.user_id,
                completion.profile_id,
                **streak_data,
            )
        except Exception as e:
            completion.failed_steps.append("notify_observers")
            completion.log.warning("notify_observers_failed", error=str(e))

    # =========================================================================
    # Achievement and goal completion
    # =========================================================================

    async def on_achievement_unlocked(
        self,
        user_id: str,
        payload: AchievementUnlockedPayload | Mapping[str, Any],
    ) -> None:
        """Publish the canonical achievement_unlocked event.

        Args:
            user_id: User who unlocked the achievement.
            payload: Achievement details, published unchanged.
        """
        payload = _coerce(AchievementUnlockedPayload, payload)
        log = logger.bind(user_id=user_id, profile_id=payload.profile_id)
        log.info("achievement_unlock_started", achievement_id=payload.achievement_id)

        try:
            await self._publish_canonical(
                EventTypes.ACHIEVEMENT_UNLOCKED, user_id, payload
            )
        except Exception as e:
            log.error("achievement_publish_failed", error=str(e), exc_info=True)

    async def on_goal_completed(
        self,
        user_id: str,
        payload: GoalCompletedPayload | Mapping[str, Any],
    ) -> None:
        """Publish the canonical goal_completed event and fetch recommendations.

        Args:
            user_id: User who completed the goal.
            payload: Goal details, published unchanged.
        """
        payload = _coerce(GoalCompletedPayload, payload)
        log = logger.bind(user_id=user_id, profile_id=payload.profile_id)
        log.info("goal_completion_started", goal_id=payload.goal_id)

        try:
            await self._publish_canonical(EventTypes.GOAL_COMPLETED, user_id, payload)
        except Exception as e:
            log.error("goal_publish_failed", error=str(e), exc_info=True)

        await self._recommend_after_goal(user_id, payload)

    async def _publish_canonical(
        self,
        event_type: str,
        user_id: str,
        payload: BaseModel,
    ) -> None:
        profile_id = getattr(payload, "profile_id", None)
        await self._event_bus.publish(
            event_type,
            user_id,
            payload.model_dump(exclude_unset=True),
            profile_id=profile_id,
            metadata={"origin": ORCHESTRATOR_ORIGIN},
        )

    async def _recommend_after_goal(
        self,
        user_id: str,
        payload: GoalCompletedPayload,
    ) -> None:
        log = logger.bind(user_id=user_id, profile_id=payload.profile_id)
        try:
            recommendations = await self._recommendations.get_subject_recommendations(
                user_id,
                payload.profile_id,
                self._config.recommendation_count,
            )
        except Exception as e:
            log.error(
                "orchestration_step_failed",
                step="recommend_subjects",
                error=str(e),
                error_type=type(e).__name__,
                exc_info=True,
            )
            return

        log.info(
            "recommendations_generated",
            goal_id=payload.goal_id,
            recommendation_count=len(recommendations),
            subjects=[r.subject for r in recommendations],
        )
