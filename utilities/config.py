"""
Configuration management using environment variables.
Handles all watcher settings with proper validation and defaults.
"""

import uuid
from functools import lru_cache
from typing import Optional
from pydantic import Field, model_validator, validator
from pydantic_settings import BaseSettings
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from watcher.models import PollerConfig


class WatcherSettings(BaseSettings):
    """
    Configuration class for watcher settings.
    Uses pydantic BaseSettings for environment variable management.
    """

    # Venue
    venue_url: str = Field(..., env="VENUE_URL")
    party_size: int = Field(..., env="PARTY_SIZE")
    restaurant_id: int = Field(..., env="RESTAURANT_ID")

    # Session credentials (captured by whatever bootstraps the browser session)
    session_cookie: str = Field(default="", env="SESSION_COOKIE")
    csrf_token: Optional[str] = Field(default=None, env="CSRF_TOKEN")
    request_timeout: int = Field(default=30, env="REQUEST_TIMEOUT")

    # Lookahead window (days from today)
    lookahead_start: int = Field(default=11, env="LOOKAHEAD_START")
    lookahead_end: int = Field(default=15, env="LOOKAHEAD_END")
    timezone: Optional[str] = Field(default=None, env="TIMEZONE")

    # Polling cadence
    poll_interval_seconds: float = Field(default=60.0, env="POLL_INTERVAL_SECONDS")
    poll_jitter_seconds: float = Field(default=20.0, env="POLL_JITTER_SECONDS")
    min_poll_interval_seconds: float = Field(default=10.0, env="MIN_POLL_INTERVAL_SECONDS")
    request_gap_min_seconds: float = Field(default=1.0, env="REQUEST_GAP_MIN_SECONDS")
    request_gap_max_seconds: float = Field(default=3.0, env="REQUEST_GAP_MAX_SECONDS")
    max_polls: Optional[int] = Field(default=None, env="MAX_POLLS")

    # Observation log
    dump_file: Optional[str] = Field(default=None, env="DUMP_FILE")

    # Logging Configuration
    log_level: str = Field(default="INFO", env="LOG_LEVEL")
    log_format: str = Field(default="console", env="LOG_FORMAT")
    log_file: Optional[str] = Field(default=None, env="LOG_FILE")
    debug: bool = Field(default=False, env="DEBUG")

    @validator('party_size')
    def validate_party_size(cls, v):
        """Ensure party size is reasonable."""
        if v < 1 or v > 20:
            raise ValueError('party_size must be between 1 and 20')
        return v

    @validator('restaurant_id')
    def validate_restaurant_id(cls, v):
        """Restaurant ids are positive integers."""
        if v <= 0:
            raise ValueError('restaurant_id must be positive')
        return v

    @validator('request_timeout')
    def validate_timeout(cls, v):
        """Ensure timeout is reasonable."""
        if v < 5 or v > 300:
            raise ValueError('request_timeout must be between 5 and 300 seconds')
        return v

    @validator('lookahead_start')
    def validate_lookahead_start(cls, v):
        """The window cannot start in the past."""
        if v < 0:
            raise ValueError('lookahead_start cannot be negative')
        return v

    @validator('timezone')
    def validate_timezone(cls, v):
        """Timezone must be a known IANA name."""
        if v is None:
            return v
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError):
            raise ValueError(f'timezone is not a known IANA timezone: {v}')
        return v

    @validator(
        'poll_interval_seconds', 'poll_jitter_seconds', 'min_poll_interval_seconds',
        'request_gap_min_seconds', 'request_gap_max_seconds'
    )
    def validate_non_negative(cls, v):
        """Delays are never negative."""
        if v < 0:
            raise ValueError('delays must be non-negative')
        return v

    @validator('max_polls')
    def validate_max_polls(cls, v):
        """A poll budget, when given, allows at least one cycle."""
        if v is not None and v < 1:
            raise ValueError('max_polls must be at least 1')
        return v

    @validator('log_level')
    def validate_log_level(cls, v):
        """Ensure log level is valid."""
        valid_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
        if v.upper() not in valid_levels:
            raise ValueError(f'log_level must be one of: {valid_levels}')
        return v.upper()

    @validator('log_format')
    def validate_log_format(cls, v):
        """Ensure log format is valid."""
        valid_formats = ['json', 'console']
        if v.lower() not in valid_formats:
            raise ValueError(f'log_format must be one of: {valid_formats}')
        return v.lower()

    @model_validator(mode="after")
    def validate_ranges(self):
        """Cross-field checks for the window and the request gap."""
        if self.lookahead_start > self.lookahead_end:
            raise ValueError('lookahead_start must not exceed lookahead_end')
        if self.request_gap_min_seconds > self.request_gap_max_seconds:
            raise ValueError('request_gap_min_seconds must not exceed request_gap_max_seconds')
        return self

    class Config:
        """Pydantic configuration."""
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False
        extra = "ignore"  # Ignore extra fields from .env

    def get_log_file_path(self) -> Optional[Path]:
        """Get log file path as Path object."""
        if self.log_file:
            return Path(self.log_file)
        return None

    def get_dump_file_path(self) -> Optional[Path]:
        """Get observation log path as Path object."""
        if self.dump_file:
            return Path(self.dump_file)
        return None

    def get_csrf_token(self) -> str:
        """CSRF token to send; a random one when the session did not provide it."""
        return self.csrf_token or str(uuid.uuid4())

    def to_poller_config(self, max_polls: Optional[int] = None) -> PollerConfig:
        """
        Build the core poller configuration.

        Args:
            max_polls: Optional override of the configured poll budget

        Returns:
            PollerConfig for the poll service
        """
        return PollerConfig(
            lookahead_start=self.lookahead_start,
            lookahead_end=self.lookahead_end,
            poll_interval_seconds=self.poll_interval_seconds,
            poll_jitter_seconds=self.poll_jitter_seconds,
            min_poll_interval_seconds=self.min_poll_interval_seconds,
            request_gap_min_seconds=self.request_gap_min_seconds,
            request_gap_max_seconds=self.request_gap_max_seconds,
            max_polls=max_polls if max_polls is not None else self.max_polls,
            dump_file=self.dump_file,
            timezone=self.timezone,
        )


@lru_cache
def get_settings() -> WatcherSettings:
    """
    Load and cache settings.

    Raises ValidationError if the environment is incomplete or invalid.
    """
    return WatcherSettings()
