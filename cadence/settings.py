"""
Typed settings management using pydantic-settings.

All knobs of the scheduler live here: daemon behaviour, signal dispatch mode,
the command channel location and logging. Values are read from environment
variables prefixed with ``CADENCE_`` and from a ``.env`` file.

Usage:
    from cadence.settings import get_settings

    settings = get_settings()
    if settings.daemon:
        ...
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


class SchedulerSettings(BaseSettings):
    """Process group configuration shared by the monitor, daemon head and workers."""

    model_config = SettingsConfigDict(
        env_prefix="CADENCE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    prefix: str = Field(default="cadence", description="Process title prefix")
    daemon: bool = Field(default=False, description="Detach into the background")
    is_chdir: bool = Field(
        default=False, description="chdir to / after detaching"
    )
    close_std_io: bool = Field(
        default=False, description="Redirect stdin/stdout/stderr to /dev/null after detaching"
    )
    can_async: bool = Field(
        default=True,
        description="Deliver signals asynchronously instead of pumping them after each sleep",
    )
    ipc_key: Optional[str] = Field(
        default=None, description="Partitions the command channel per task group"
    )
    channel_dir: Optional[Path] = Field(
        default=None, description="Directory holding the channel file (platform temp dir if unset)"
    )

    monitor_wait_iterations: int = Field(default=10, ge=1)
    sync_sleep_seconds: int = Field(default=1, ge=1)
    async_sleep_seconds: int = Field(default=100, ge=1)

    log_level: str = Field(default="INFO")
    log_file: Optional[Path] = Field(default=None)

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in _LOG_LEVELS:
            raise ValueError(f"log_level must be one of {sorted(_LOG_LEVELS)}")
        return level

    @property
    def sleep_seconds(self) -> int:
        """Suspend quantum used by worker loops."""
        return self.async_sleep_seconds if self.can_async else self.sync_sleep_seconds


# =============================================================================
# Cached Singleton Accessors
# =============================================================================


@lru_cache(maxsize=1)
def get_settings() -> SchedulerSettings:
    """Get the cached settings singleton.

    The settings are loaded once and cached for the process lifetime.
    To reload, call clear_settings_cache() first.
    """
    return SchedulerSettings()


def clear_settings_cache() -> None:
    """Clear the cached settings instance."""
    get_settings.cache_clear()
