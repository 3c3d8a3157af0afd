# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for application settings."""

import os
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from src.core.config.settings import (
    EventBusSettings,
    OrchestratorSettings,
    RewardSettings,
    Settings,
    clear_settings_cache,
    get_settings,
)


class TestRewardSettings:
    """Tests for RewardSettings."""

    def test_default_values(self) -> None:
        """Test default reward rules."""
        settings = RewardSettings()

        assert settings.base_xp_by_difficulty == {
            "elementary": 5,
            "middle": 10,
            "high": 15,
            "advanced": 20,
        }
        assert settings.base_xp_default == 10
        assert settings.hint_penalty_per_hint == 2
        assert settings.minimum_xp == 5
        assert settings.level_base_xp == 100
        assert settings.level_growth_factor == 1.5
        assert settings.recent_gains_limit == 10

    def test_loads_from_environment(self) -> None:
        """Test that settings load from environment variables."""
        env = {
            "REWARD_MINIMUM_XP": "3",
            "REWARD_BASE_XP_ADVANCED": "25",
        }

        with patch.dict(os.environ, env, clear=False):
            settings = RewardSettings()

        assert settings.minimum_xp == 3
        assert settings.base_xp_by_difficulty["advanced"] == 25

    def test_rejects_negative_penalty(self) -> None:
        """Test validation of the hint penalty."""
        with pytest.raises(ValidationError):
            RewardSettings(hint_penalty_per_hint=-1)


class TestEventBusSettings:
    """Tests for EventBusSettings."""

    def test_default_values(self) -> None:
        """Test default history size."""
        assert EventBusSettings().history_size == 100

    def test_rejects_zero_history(self) -> None:
        """Test that history_size must be positive."""
        with pytest.raises(ValidationError):
            EventBusSettings(history_size=0)


class TestOrchestratorSettings:
    """Tests for OrchestratorSettings."""

    def test_default_values(self) -> None:
        """Test default configuration values."""
        settings = OrchestratorSettings()

        assert settings.problem_prefix_length == 50
        assert settings.recommendation_count == 3
        assert settings.offload_side_effects is False
        assert settings.notifications_enabled is True

    def test_loads_from_environment(self) -> None:
        """Test that settings load from environment variables."""
        env = {"ORCHESTRATOR_OFFLOAD_SIDE_EFFECTS": "true"}

        with patch.dict(os.environ, env, clear=False):
            settings = OrchestratorSettings()

        assert settings.offload_side_effects is True


class TestSettings:
    """Tests for main Settings class."""

    def test_default_values(self) -> None:
        """Test default configuration values."""
        settings = Settings(_env_file=None)

        assert settings.environment == "development"
        assert settings.debug is True
        assert settings.log_level == "DEBUG"

    def test_production_with_debug_raises_error(self) -> None:
        """Test that production environment with debug enabled raises error."""
        with pytest.raises(ValueError) as exc_info:
            Settings(_env_file=None, environment="production", debug=True)

        assert "Debug mode must be disabled in production" in str(exc_info.value)

    def test_production_without_debug_succeeds(self) -> None:
        """Test that production works once debug is off."""
        settings = Settings(_env_file=None, environment="production", debug=False)

        assert settings.is_production is True
        assert settings.is_development is False

    def test_subsettings_loaded(self) -> None:
        """Test that all subsettings are loaded."""
        settings = Settings(_env_file=None)

        assert isinstance(settings.rewards, RewardSettings)
        assert isinstance(settings.event_bus, EventBusSettings)
        assert isinstance(settings.orchestrator, OrchestratorSettings)


class TestGetSettings:
    """Tests for get_settings function."""

    def test_returns_cached_instance(self) -> None:
        """Test that get_settings returns cached instance."""
        clear_settings_cache()

        settings1 = get_settings()
        settings2 = get_settings()

        assert isinstance(settings1, Settings)
        assert settings1 is settings2

    def test_clear_cache_allows_reload(self) -> None:
        """Test that clearing cache allows reloading settings."""
        clear_settings_cache()

        settings1 = get_settings()
        clear_settings_cache()
        settings2 = get_settings()

        assert settings1 is not settings2
