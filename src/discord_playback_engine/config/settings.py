"""Application Settings and Configuration

Pydantic-based settings management using environment variables.
Settings are loaded from environment variables with support for .env files,
type validation, and sensible defaults. All settings are frozen and immutable
after initialization.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import AliasChoices, BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..domain.shared.messages import ErrorMessages
from ..domain.shared.types import HistoryLimit, RetryBudget, VolumeFloat


class PlaybackSettings(BaseModel):
    """Queue state machine configuration."""

    model_config = SettingsConfigDict(frozen=True, populate_by_name=True)

    history_limit: HistoryLimit = 50
    max_resolution_attempts: RetryBudget = 2
    max_stream_abort_retries: RetryBudget = 2
    idle_teardown_seconds: float = Field(
        default=180.0,
        ge=0.0,
        validation_alias=AliasChoices("idle_teardown_seconds", "idle_timeout"),
    )
    transport_ready_timeout_seconds: float = Field(default=30.0, gt=0.0, le=300.0)
    prefetch_ttl_seconds: float = Field(default=300.0, gt=0.0)
    resolution_retry_backoff_seconds: float = Field(default=0.5, ge=0.0, le=30.0)


class AudioSettings(BaseModel):
    """Audio decoding and extraction configuration."""

    model_config = SettingsConfigDict(frozen=True, populate_by_name=True)

    default_volume: VolumeFloat = 0.5
    ffmpeg_executable: str = Field(
        default="ffmpeg",
        min_length=1,
        validation_alias=AliasChoices("ffmpeg_executable", "ffmpeg_path", "ffmpeg"),
    )
    reconnect_delay_max: int = Field(default=5, ge=0, le=60)
    ytdlp_format: str = "bestaudio/best"
    extract_timeout_seconds: float = Field(default=30.0, gt=0.0, le=300.0)


class Settings(BaseSettings):
    """Application settings container.

    Automatically loads configuration from environment variables.

    Environment variable naming:
    - ENVIRONMENT, DEBUG, LOG_LEVEL (top-level)
    - PLAYBACK__HISTORY_LIMIT, PLAYBACK__IDLE_TEARDOWN_SECONDS, etc. (nested)
    - AUDIO__FFMPEG_EXECUTABLE, AUDIO__YTDLP_FORMAT, etc. (nested)
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    environment: Literal["development", "production", "test"] = "development"
    debug: bool = False
    log_level: str = "INFO"

    playback: PlaybackSettings = Field(default_factory=PlaybackSettings)
    audio: AudioSettings = Field(default_factory=AudioSettings)

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(
                ErrorMessages.INVALID_LOG_LEVEL.format(level=v, valid_levels=valid_levels)
            )
        return v_upper


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached application settings.

    Settings are automatically loaded from:
    1. .env file (if present)
    2. Environment variables
    3. Default values
    """
    return Settings()


def clear_settings_cache() -> None:
    """Clear the settings cache (useful for testing)."""
    get_settings.cache_clear()
