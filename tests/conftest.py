# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Pytest configuration and shared fixtures.

This module provides fixtures used across the unit tests:
- Settings built without reading the developer's .env
- Mock collaborators for the completion orchestrator
- Sample identifiers and payloads
"""

from datetime import datetime, timezone
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.core.config.settings import (
    EventBusSettings,
    OrchestratorSettings,
    RewardSettings,
    Settings,
)
from src.domains.progress.gateway import (
    ChallengeGenerator,
    GoalChecker,
    ProgressGateway,
    RecommendationProvider,
)
from src.domains.progress.models import StreakRecord, XPRecord


# =============================================================================
# Marker Configuration
# =============================================================================


def pytest_configure(config: pytest.Config) -> None:
    """Configure custom pytest markers."""
    config.addinivalue_line(
        "markers", "unit: mark test as a unit test"
    )


# =============================================================================
# Settings Fixtures
# =============================================================================


@pytest.fixture
def settings() -> Settings:
    """Provide settings with default reward rules and inline side effects."""
    return Settings(
        _env_file=None,
        rewards=RewardSettings(),
        event_bus=EventBusSettings(),
        orchestrator=OrchestratorSettings(),
    )


# =============================================================================
# Collaborator Fixtures
# =============================================================================


@pytest.fixture
def mock_gateway() -> MagicMock:
    """Create a mock persistence gateway with empty, writable records."""
    gateway = MagicMock(spec=ProgressGateway)
    gateway.get_xp_data = AsyncMock(return_value=XPRecord())
    gateway.update_xp_data = AsyncMock(return_value=True)
    gateway.get_streak_data = AsyncMock(return_value=None)
    gateway.update_streak_data = AsyncMock(return_value=True)
    gateway.create_default_streak_data = AsyncMock(return_value=StreakRecord())
    gateway.get_problems = AsyncMock(return_value=[])
    gateway.update_problem = AsyncMock(return_value=True)
    return gateway


@pytest.fixture
def mock_goal_checker() -> MagicMock:
    """Create a mock goal service."""
    checker = MagicMock(spec=GoalChecker)
    checker.check_goals_for_problem = AsyncMock(return_value=None)
    return checker


@pytest.fixture
def mock_recommendation_provider() -> MagicMock:
    """Create a mock recommendation service."""
    provider = MagicMock(spec=RecommendationProvider)
    provider.get_subject_recommendations = AsyncMock(return_value=[])
    return provider


@pytest.fixture
def mock_challenge_generator() -> MagicMock:
    """Create a mock challenge service."""
    generator = MagicMock(spec=ChallengeGenerator)
    generator.generate_challenge = AsyncMock(return_value=None)
    return generator


# =============================================================================
# Helper Fixtures
# =============================================================================


@pytest.fixture
def sample_user_id() -> str:
    """Provide a sample user ID for testing."""
    return "550e8400-e29b-41d4-a716-446655440001"


@pytest.fixture
def sample_profile_id() -> str:
    """Provide a sample sub-profile ID for testing."""
    return "550e8400-e29b-41d4-a716-446655440002"


@pytest.fixture
def fixed_now() -> datetime:
    """Provide a fixed UTC instant used as "now" by the orchestrator."""
    return datetime(2024, 5, 10, 15, 30, tzinfo=timezone.utc)


@pytest.fixture
def sample_completion_payload() -> dict[str, Any]:
    """Provide a sample problem_completed payload."""
    return {
        "problem_text": "Solve for x: 2x + 3 = 11",
        "problem_type": "linear_equation",
        "difficulty": "middle",
        "hints_used": 0,
        "time_spent": 95,
    }
