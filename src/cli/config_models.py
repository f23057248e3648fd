"""Pydantic configuration models for update-reminder."""

import os
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from reminder.models import (
    FIRST_REMINDER_DELAY_MS,
    MIN_RESCHEDULE_MS,
    MINUTE_MS,
    REMINDER_INTERVAL_MS,
    TimingPolicy,
)
from shared_types import BackgroundMode


class ScheduleConfig(BaseModel):
    """Reminder timing, all in milliseconds unless noted."""

    first_reminder_delay_ms: int = Field(default=FIRST_REMINDER_DELAY_MS, ge=0)
    cadence_ms: int = Field(default=REMINDER_INTERVAL_MS, gt=0)
    min_reschedule_ms: int = Field(default=MIN_RESCHEDULE_MS, gt=0)
    inactive_poll_ms: int = Field(default=6 * MIN_RESCHEDULE_MS, gt=0)
    fullscreen_poll_fraction: float = 1 / 6
    fullscreen_min_poll_ms: int = Field(default=MINUTE_MS, gt=0)
    toast_auto_hide_ms: int = Field(default=8000, ge=0)  # 0 = toast stays until acted on

    @field_validator("fullscreen_poll_fraction")
    @classmethod
    def validate_fraction(cls, v: float) -> float:
        if not 0.0 < v <= 1.0:
            raise ValueError(f"fullscreen_poll_fraction must be in (0, 1], got {v}")
        return v

    @model_validator(mode="after")
    def validate_floors(self):
        """The fullscreen floor must not undercut the normal reschedule floor."""
        if self.fullscreen_min_poll_ms < self.min_reschedule_ms:
            raise ValueError(
                "fullscreen_min_poll_ms must be >= min_reschedule_ms "
                f"({self.fullscreen_min_poll_ms} < {self.min_reschedule_ms})"
            )
        return self


class NotificationsConfig(BaseModel):
    """Background side channel used while the window is inactive."""

    background_mode: BackgroundMode = BackgroundMode.OS_NOTIFICATION
    rate_limit_ms: int = Field(default=REMINDER_INTERVAL_MS, gt=0)


class SourcesConfig(BaseModel):
    """Update sources."""

    manifest_url: Optional[str] = None  # None = remote check disabled
    current_version: str = "0.0.0"
    remote_check_interval_seconds: int = Field(default=6 * 3600, gt=0)
    local_feed_enabled: bool = False
    local_feed_path: Path = Path("~/.update-reminder/UPDATE.txt")
    local_feed_refresh_seconds: int = Field(default=30, gt=0)
    fullscreen_poll_seconds: int = Field(default=60, gt=0)
    state_sync_seconds: int = Field(default=10, gt=0)  # pick up CLI edits to the state file
    update_lock_path: Optional[Path] = None  # exists while an install is being applied

    @model_validator(mode="after")
    def expand_paths(self):
        self.local_feed_path = self.local_feed_path.expanduser()
        if self.update_lock_path is not None:
            self.update_lock_path = self.update_lock_path.expanduser()
        return self


class RetryConfig(BaseModel):
    """Retry/backoff for the remote manifest fetch."""

    max_attempts: int = 3
    min_wait: float = 2.0
    max_wait: float = 10.0


class PathsConfig(BaseModel):
    """File paths configuration."""

    state_file: Path = Path("~/.update-reminder/state.json")
    log_file: Path = Path("~/.update-reminder/reminder.log")

    @model_validator(mode="after")
    def expand_paths(self):
        """Expand ~ in all paths."""
        self.state_file = self.state_file.expanduser()
        self.log_file = self.log_file.expanduser()
        return self


VALID_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = "INFO"
    json_mode: bool = False

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        v_upper = v.upper()
        if v_upper not in VALID_LOG_LEVELS:
            raise ValueError(f"Invalid log level: {v}. Must be one of {VALID_LOG_LEVELS}")
        return v_upper


class ReminderConfig(BaseModel):
    """Main configuration model."""

    schedule: ScheduleConfig = Field(default_factory=ScheduleConfig)
    notifications: NotificationsConfig = Field(default_factory=NotificationsConfig)
    sources: SourcesConfig = Field(default_factory=SourcesConfig)
    retry: RetryConfig = Field(default_factory=RetryConfig)
    paths: PathsConfig = Field(default_factory=PathsConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @model_validator(mode="after")
    def expand_env_vars(self):
        """Expand a ``${VAR}`` manifest URL (e.g. one carrying an access token)."""
        url = self.sources.manifest_url
        if url and url.startswith("${") and url.endswith("}"):
            self.sources.manifest_url = os.getenv(url[2:-1]) or None
        return self

    @classmethod
    def from_dict(cls, data: dict) -> "ReminderConfig":
        return cls.model_validate(data)

    def to_dict(self) -> dict:
        return self.model_dump(mode="python")

    def timing_policy(self) -> TimingPolicy:
        s = self.schedule
        return TimingPolicy(
            first_reminder_delay_ms=s.first_reminder_delay_ms,
            default_cadence_ms=s.cadence_ms,
            min_reschedule_ms=s.min_reschedule_ms,
            inactive_poll_ms=s.inactive_poll_ms,
            fullscreen_poll_fraction=s.fullscreen_poll_fraction,
            fullscreen_min_poll_ms=s.fullscreen_min_poll_ms,
            notification_rate_limit_ms=self.notifications.rate_limit_ms,
        )
