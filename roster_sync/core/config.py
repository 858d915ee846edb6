"""
Application configuration.

Supported environment files (loaded in order of precedence):
1. .env.{ENVIRONMENT} (e.g., .env.production, .env.development)
2. .env (fallback)

Required settings for production:
- DATABASE_URL
"""
import os
import logging
from pathlib import Path
from typing import Literal

from pydantic import ConfigDict
from pydantic_settings import BaseSettings

from roster_sync.models.options import PlayerMatchingOptions, SyncOptions

# Project root is two levels up from this file (roster_sync/core/config.py)
PROJECT_ROOT = Path(__file__).parent.parent.parent

DEFAULT_DATABASE_URL = f"sqlite:///{PROJECT_ROOT / 'roster_sync.db'}"

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Application settings with environment-specific configuration."""

    ENVIRONMENT: Literal["development", "production", "test"] = "development"

    model_config = ConfigDict(
        env_file=str(PROJECT_ROOT / ".env"),
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore"
    )

    # Application
    APP_NAME: str = "NFL Roster Sync API"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 8002

    # Database
    DATABASE_URL: str = os.getenv("DATABASE_URL", DEFAULT_DATABASE_URL)

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = True

    # ESPN API
    ESPN_API_BASE_URL: str = "https://site.api.espn.com/apis/site/v2/sports/football/nfl"
    ESPN_API_TIMEOUT: float = 30.0
    ESPN_API_MAX_RETRIES: int = 3
    ESPN_API_REQUEST_DELAY: float = 0.25  # Delay between roster requests
    ESPN_BREAKER_FAIL_MAX: int = 5
    ESPN_BREAKER_RESET_TIMEOUT: int = 60

    # Season
    CURRENT_SEASON: int = 2025
    WEEKS_IN_SEASON: int = 18

    # Player matching
    MATCH_MINIMUM_CONFIDENCE: float = 0.5
    MATCH_AUTO_LINK_CONFIDENCE: float = 0.9
    MATCH_MANUAL_REVIEW_GAP: float = 0.1
    MATCH_MAX_ALTERNATES: int = 5
    MATCH_NAME_WEIGHT: float = 0.7
    MATCH_TEAM_WEIGHT: float = 0.2
    MATCH_POSITION_WEIGHT: float = 0.1
    MATCH_ENABLE_PHONETIC: bool = True
    MATCH_ENABLE_NAME_VARIATIONS: bool = True
    MATCH_MAX_WORKERS: int = 4

    # Sync runs
    SYNC_BATCH_SIZE: int = 100
    SYNC_RETRY_DELAY_MS: int = 1000
    SYNC_TIMEOUT_MINUTES: int = 60
    SYNC_SKIP_INACTIVES: bool = True
    SYNC_SKIP_INVALID_RECORDS: bool = True
    SYNC_CONTINUE_ON_ERROR: bool = True

    # Scheduler
    SCHEDULER_ENABLED: bool = False
    SCHEDULER_TIMEZONE: str = "America/New_York"
    PLAYER_SYNC_CRON_HOUR: int = 9
    STATS_SYNC_CRON_HOUR: int = 10

    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.ENVIRONMENT == "production"

    def validate_required_settings(self) -> list[str]:
        """
        Check settings that must be set explicitly for the current environment.

        Returns:
            List of missing setting names (empty if all present)
        """
        missing = []

        if self.is_production() and (
            not self.DATABASE_URL or self.DATABASE_URL == DEFAULT_DATABASE_URL
        ):
            missing.append("DATABASE_URL")

        if not self.ESPN_API_BASE_URL:
            missing.append("ESPN_API_BASE_URL")

        return missing


def _load_env_file() -> Path:
    """
    Pick the environment file based on the ENVIRONMENT variable.

    Loads in order of precedence:
    1. .env.{ENVIRONMENT}
    2. .env (fallback)
    """
    environment = os.getenv("ENVIRONMENT", "development")

    env_file = PROJECT_ROOT / f".env.{environment}"
    if env_file.exists():
        logger.info(f"Loading environment from {env_file.name}")
        return env_file

    default_env = PROJECT_ROOT / ".env"
    if default_env.exists():
        logger.info(f"Loading environment from .env (environment: {environment})")
    return default_env


_env_file = _load_env_file()


class _SettingsWithEnvFile(Settings):
    model_config = ConfigDict(
        env_file=str(_env_file),
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore"
    )


settings = _SettingsWithEnvFile()


def default_matching_options(source: Settings = None) -> PlayerMatchingOptions:
    """PlayerMatchingOptions built from settings."""
    source = source or settings
    return PlayerMatchingOptions(
        minimum_confidence_threshold=source.MATCH_MINIMUM_CONFIDENCE,
        auto_link_confidence_threshold=source.MATCH_AUTO_LINK_CONFIDENCE,
        manual_review_threshold=source.MATCH_MANUAL_REVIEW_GAP,
        max_alternate_candidates=source.MATCH_MAX_ALTERNATES,
        enable_phonetic_matching=source.MATCH_ENABLE_PHONETIC,
        enable_name_variation_matching=source.MATCH_ENABLE_NAME_VARIATIONS,
        name_match_weight=source.MATCH_NAME_WEIGHT,
        team_match_weight=source.MATCH_TEAM_WEIGHT,
        position_match_weight=source.MATCH_POSITION_WEIGHT,
        max_workers=source.MATCH_MAX_WORKERS,
    )


def default_sync_options(source: Settings = None, **overrides) -> SyncOptions:
    """SyncOptions built from settings, with per-run overrides."""
    source = source or settings
    values = dict(
        batch_size=source.SYNC_BATCH_SIZE,
        retry_delay_ms=source.SYNC_RETRY_DELAY_MS,
        timeout_minutes=source.SYNC_TIMEOUT_MINUTES,
        skip_inactives=source.SYNC_SKIP_INACTIVES,
        skip_invalid_records=source.SYNC_SKIP_INVALID_RECORDS,
        continue_on_error=source.SYNC_CONTINUE_ON_ERROR,
    )
    values.update({k: v for k, v in overrides.items() if v is not None})
    return SyncOptions(**values)
