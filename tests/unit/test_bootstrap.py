# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for the application root."""

import logging
from collections.abc import Generator
from typing import Any
from unittest.mock import MagicMock

import pytest
import structlog

from src.bootstrap import build_application, lifespan
from src.core.config.settings import EventBusSettings, Settings
from src.infrastructure.events import EventTypes
from src.utils.logging import HANDLER_NAME


@pytest.fixture(autouse=True)
def reset_logging() -> Generator[None, None, None]:
    """Undo the logging configuration applied by lifespan."""
    yield
    structlog.reset_defaults()
    root = logging.getLogger()
    for handler in list(root.handlers):
        if handler.get_name() == HANDLER_NAME:
            root.removeHandler(handler)


@pytest.fixture
def application(
    mock_gateway: MagicMock,
    mock_goal_checker: MagicMock,
    mock_recommendation_provider: MagicMock,
    mock_challenge_generator: MagicMock,
):
    """Build an application around the mock collaborators."""
    return build_application(
        gateway=mock_gateway,
        goal_checker=mock_goal_checker,
        recommendation_provider=mock_recommendation_provider,
        challenge_generator=mock_challenge_generator,
        settings=Settings(
            _env_file=None,
            event_bus=EventBusSettings(history_size=10),
        ),
    )


class TestBuildApplication:
    """Tests for build_application."""

    def test_components_share_one_bus(self, application) -> None:
        """Test that the bus is built from settings and nothing is subscribed yet."""
        assert application.event_bus.history_size == 10
        assert application.orchestrator.is_running is False
        assert application.event_bus.handler_count(EventTypes.PROBLEM_COMPLETED) == 0

    def test_separate_applications_do_not_share_state(
        self,
        application,
        mock_gateway: MagicMock,
        mock_goal_checker: MagicMock,
        mock_recommendation_provider: MagicMock,
        mock_challenge_generator: MagicMock,
    ) -> None:
        """Test that each application root gets its own bus."""
        other = build_application(
            gateway=mock_gateway,
            goal_checker=mock_goal_checker,
            recommendation_provider=mock_recommendation_provider,
            challenge_generator=mock_challenge_generator,
            settings=application.settings,
        )

        assert other.event_bus is not application.event_bus


class TestLifespan:
    """Tests for the lifespan context manager."""

    @pytest.mark.asyncio
    async def test_lifespan_starts_and_stops(
        self,
        application,
        mock_gateway: MagicMock,
        sample_user_id: str,
        sample_completion_payload: dict[str, Any],
    ) -> None:
        """Test that events are handled only while the application runs."""
        async with lifespan(application) as app:
            assert app.orchestrator.is_running is True
            await app.event_bus.publish(
                EventTypes.PROBLEM_COMPLETED, sample_user_id, sample_completion_payload
            )

        assert application.orchestrator.is_running is False
        mock_gateway.update_xp_data.assert_awaited_once()

        await application.event_bus.publish(
            EventTypes.PROBLEM_COMPLETED, sample_user_id, sample_completion_payload
        )

        mock_gateway.update_xp_data.assert_awaited_once()
