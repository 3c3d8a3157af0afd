# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Application configuration settings using Pydantic Settings.

This module provides centralized configuration for the completion
orchestrator. Settings are loaded from environment variables with
defaults that reproduce the production reward rules.

The Settings class is the main entry point and aggregates all subsettings.
A singleton instance is provided via get_settings() for dependency injection.

Example:
    >>> from src.core.config.settings import get_settings
    >>> settings = get_settings()
    >>> settings.rewards.minimum_xp
    5
"""

from functools import lru_cache
from typing import Literal, Self

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class RewardSettings(BaseSettings):
    """Reward rule configuration.

    These constants feed the reward calculators. Every XP and level
    computation in the application reads them from here.

    Attributes:
        base_xp_elementary: Base XP for an elementary problem.
        base_xp_middle: Base XP for a middle school problem.
        base_xp_high: Base XP for a high school problem.
        base_xp_advanced: Base XP for an advanced problem.
        base_xp_default: Base XP when the difficulty is missing or unknown.
        hint_penalty_per_hint: XP deducted per hint used.
        minimum_xp: Floor for a single problem's XP gain.
        level_base_xp: XP needed to clear level 1.
        level_growth_factor: Growth of the per-level requirement.
        recent_gains_limit: Number of recent gains kept on the XP record.
    """

    model_config = SettingsConfigDict(
        env_prefix="REWARD_",
        extra="ignore",
    )

    base_xp_elementary: int = 5
    base_xp_middle: int = 10
    base_xp_high: int = 15
    base_xp_advanced: int = 20
    base_xp_default: int = 10
    hint_penalty_per_hint: int = Field(default=2, ge=0)
    minimum_xp: int = Field(default=5, ge=0)
    level_base_xp: int = Field(default=100, ge=1)
    level_growth_factor: float = Field(default=1.5, ge=0)
    recent_gains_limit: int = Field(default=10, ge=0)

    @property
    def base_xp_by_difficulty(self) -> dict[str, int]:
        """Map difficulty names to their base XP."""
        return {
            "elementary": self.base_xp_elementary,
            "middle": self.base_xp_middle,
            "high": self.base_xp_high,
            "advanced": self.base_xp_advanced,
        }


class EventBusSettings(BaseSettings):
    """In-process event bus configuration.

    Attributes:
        history_size: Number of events kept in the diagnostic ring buffer.
    """

    model_config = SettingsConfigDict(
        env_prefix="EVENT_BUS_",
        extra="ignore",
    )

    history_size: int = Field(default=100, ge=1)


class OrchestratorSettings(BaseSettings):
    """Completion orchestrator configuration.

    Attributes:
        problem_prefix_length: Characters compared by the prefix matcher.
        recommendation_count: Subjects requested after a goal completes.
        offload_side_effects: Run goal check and challenge generation as
            background tasks instead of awaiting them inline.
        notifications_enabled: Dispatch UI notifications after completion.
    """

    model_config = SettingsConfigDict(
        env_prefix="ORCHESTRATOR_",
        extra="ignore",
    )

    problem_prefix_length: int = Field(default=50, ge=1)
    recommendation_count: int = Field(default=3, ge=1)
    offload_side_effects: bool = False
    notifications_enabled: bool = True


class Settings(BaseSettings):
    """Main application settings aggregating all subsettings.

    Use get_settings() to obtain a cached singleton instance.

    Attributes:
        environment: Current environment (development, staging, production).
        debug: Enable debug mode.
        log_level: Logging level.
        rewards: Reward rule settings.
        event_bus: Event bus settings.
        orchestrator: Completion orchestrator settings.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    # Environment
    environment: Literal["development", "staging", "production"] = "development"
    debug: bool = True
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "DEBUG"

    # Subsettings - loaded with their own env prefixes
    rewards: RewardSettings = Field(default_factory=RewardSettings)
    event_bus: EventBusSettings = Field(default_factory=EventBusSettings)
    orchestrator: OrchestratorSettings = Field(default_factory=OrchestratorSettings)

    @model_validator(mode="after")
    def validate_production_settings(self) -> Self:
        """Validate that production settings are properly configured.

        Raises:
            ValueError: If running in production with debug enabled.
        """
        if self.environment == "production" and self.debug:
            raise ValueError(
                "Debug mode must be disabled in production. "
                "Set DEBUG=false environment variable."
            )
        return self

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    Call clear_settings_cache() if you need to reload settings.

    Returns:
        Cached Settings instance.
    """
    return Settings()


def clear_settings_cache() -> None:
    """Clear the settings cache.

    Call this if you need to reload settings from environment.
    Useful for testing or dynamic configuration updates.
    """
    get_settings.cache_clear()
