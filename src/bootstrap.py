# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Application root.

Wires the event bus, the UI notification dispatcher and the completion
orchestrator together. The surrounding application supplies the
persistence gateway and the goal, recommendation and challenge services.

Example:
    >>> app = build_application(
    ...     gateway=gateway,
    ...     goal_checker=goals,
    ...     recommendation_provider=recommendations,
    ...     challenge_generator=challenges,
    ... )
    >>> async with lifespan(app):
    ...     await app.event_bus.publish("problem_completed", user_id, payload)
"""

import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import AsyncGenerator

from src.core.config import Settings, get_settings
from src.domains.progress import (
    ChallengeGenerator,
    CompletionOrchestrator,
    GoalChecker,
    ProgressGateway,
    RecommendationProvider,
)
from src.infrastructure.events import EventBus
from src.infrastructure.notifications import NotificationDispatcher
from src.utils.logging import setup_logging

logger = logging.getLogger(__name__)


@dataclass
class Application:
    """Everything the application root builds.

    Attributes:
        settings: Settings the components were built from.
        event_bus: The one event bus of this application.
        notifier: UI notification dispatcher.
        orchestrator: Completion orchestrator subscribed to event_bus.
    """

    settings: Settings
    event_bus: EventBus
    notifier: NotificationDispatcher
    orchestrator: CompletionOrchestrator

    def start(self) -> None:
        """Subscribe the orchestrator to the event bus."""
        self.orchestrator.start()

    async def stop(self) -> None:
        """Unsubscribe the orchestrator and wait for pending side effects."""
        self.orchestrator.stop()
        await self.orchestrator.drain()


def build_application(
    gateway: ProgressGateway,
    goal_checker: GoalChecker,
    recommendation_provider: RecommendationProvider,
    challenge_generator: ChallengeGenerator,
    settings: Settings | None = None,
) -> Application:
    """Create the event bus, notifier and orchestrator.

    Nothing is subscribed until Application.start() is called.

    Args:
        gateway: Persistence gateway for progress records.
        goal_checker: Goal service.
        recommendation_provider: Recommendation service.
        challenge_generator: Challenge service.
        settings: Settings to use, defaults to get_settings().

    Returns:
        The wired Application.
    """
    settings = settings or get_settings()

    event_bus = EventBus(history_size=settings.event_bus.history_size)
    notifier = NotificationDispatcher()
    orchestrator = CompletionOrchestrator(
        event_bus=event_bus,
        gateway=gateway,
        goal_checker=goal_checker,
        recommendation_provider=recommendation_provider,
        challenge_generator=challenge_generator,
        notifier=notifier,
        settings=settings,
    )

    return Application(
        settings=settings,
        event_bus=event_bus,
        notifier=notifier,
        orchestrator=orchestrator,
    )


@asynccontextmanager
async def lifespan(app: Application) -> AsyncGenerator[Application, None]:
    """Run the application between startup and shutdown.

    Configures logging, starts the orchestrator and, on exit, stops it
    and drains outstanding side effects and notifications.

    Args:
        app: Application built by build_application().

    Yields:
        The started application.
    """
    setup_logging(app.settings)
    logger.info(
        "Starting completion orchestrator (environment: %s, debug: %s)",
        app.settings.environment,
        app.settings.debug,
    )

    app.start()

    try:
        yield app
    finally:
        try:
            await app.stop()
            logger.info("Completion orchestrator stopped")
        except Exception as e:
            logger.warning("Error stopping completion orchestrator: %s", str(e))
