"""
Configuration management for SeatWatch.

Loads and validates API credentials and scheduling options from environment
variables (or a .env file). Uses Pydantic Settings for type safety and
validation.
"""

import logging
from functools import lru_cache
from typing import List, Optional

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from seatwatch.models import AlertResetPolicy, MonitorTarget


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    The client credentials must be set, or the application will fail fast
    with a clear error message indicating which variables are missing.
    Term and course IDs normally come from the command line and are passed
    in as overrides.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # University API Configuration
    umich_client_id: str = Field(
        ...,
        description="Consumer key issued by the university API directory"
    )
    umich_client_secret: str = Field(
        ...,
        description="Consumer secret issued by the university API directory"
    )
    umich_auth_url: str = Field(
        default="https://api-km.it.umich.edu/token",
        description="Token endpoint used for issuance and refresh"
    )
    umich_api_base_url: str = Field(
        default="https://api-gw.it.umich.edu/Curriculum/SOC/v1",
        description="Base URL of the schedule-of-classes API"
    )
    oauth_scope: str = Field(
        default="PRODUCTION",
        description="Scope requested on every token exchange"
    )

    # Monitoring targets
    term: Optional[int] = Field(
        default=None,
        description="Term code to monitor (e.g., 2010 for Fall 2014)"
    )
    course_ids: List[int] = Field(
        default_factory=list,
        description="Class numbers to monitor within the term"
    )

    # Scheduling
    refresh_period: float = Field(
        default=600.0,
        description="Seconds between access token refreshes"
    )
    token_lifetime: float = Field(
        default=3600.0,
        description="Nominal server-side lifetime of an access token in seconds"
    )
    poll_period: float = Field(
        default=200.5,
        description="Seconds between availability poll cycles"
    )
    request_timeout: float = Field(
        default=15.0,
        description="Timeout in seconds for every HTTP request"
    )
    max_requests_per_minute: int = Field(
        default=60,
        description="Rate limit imposed by the availability API"
    )
    seat_field: str = Field(
        default="AvailableSeats",
        description="Name of the open-seat field in the class payload"
    )

    # Auth retry
    auth_max_retries: int = Field(
        default=3,
        description="Attempts per token exchange on transient network errors"
    )
    auth_retry_backoff: float = Field(
        default=5.0,
        description="Initial backoff in seconds between attempts, doubles each retry"
    )

    # Alerting
    alert_reset_policy: AlertResetPolicy = Field(
        default=AlertResetPolicy.SEATS_GONE,
        description="When a target becomes eligible to alert again"
    )
    alert_repeats: int = Field(
        default=3,
        description="Number of terminal bells per alert"
    )
    telegram_bot_token: Optional[str] = Field(
        default=None,
        description="Telegram Bot API token; enables Telegram alerts when set with chat ID"
    )
    telegram_chat_id: Optional[str] = Field(
        default=None,
        description="Telegram chat ID that receives alerts"
    )

    # Optional Configuration
    log_level: str = Field(
        default="INFO",
        description="Logging level"
    )

    @field_validator("umich_auth_url", "umich_api_base_url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        """Ensure URLs don't have a trailing slash."""
        return v.rstrip("/")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensure log level is valid."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper = v.upper()
        if upper not in valid_levels:
            raise ValueError(f"Log level must be one of: {valid_levels}")
        return upper

    @field_validator("refresh_period", "token_lifetime", "poll_period", "request_timeout")
    @classmethod
    def validate_positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("Periods and timeouts must be positive")
        return v

    @field_validator("course_ids")
    @classmethod
    def validate_course_ids(cls, v: List[int]) -> List[int]:
        """Course IDs must be positive and listed once."""
        if any(course_id <= 0 for course_id in v):
            raise ValueError("Course IDs must be positive integers")
        if len(set(v)) != len(v):
            raise ValueError("Course IDs must be unique")
        return v

    @model_validator(mode="after")
    def validate_schedule(self) -> "Settings":
        """
        Check the schedule against the token lifetime and the API rate limit.

        The refresh must fire before the token expires, and a full poll
        cycle over every target must stay within max_requests_per_minute.
        """
        if self.refresh_period >= self.token_lifetime:
            raise ValueError(
                f"refresh_period ({self.refresh_period}s) must be shorter than "
                f"token_lifetime ({self.token_lifetime}s)"
            )
        if self.requests_per_minute > self.max_requests_per_minute:
            raise ValueError(
                f"{len(self.course_ids)} target(s) every {self.poll_period}s is "
                f"{self.requests_per_minute:.1f} requests/minute, above the limit "
                f"of {self.max_requests_per_minute}"
            )
        return self

    @property
    def requests_per_minute(self) -> float:
        """Request volume generated by one target list at poll_period."""
        return len(self.course_ids) * 60.0 / self.poll_period

    @property
    def monitor_targets(self) -> List[MonitorTarget]:
        """Targets to poll, one per configured course ID."""
        if self.term is None:
            return []
        return [
            MonitorTarget(term=self.term, course_id=course_id)
            for course_id in self.course_ids
        ]

    @property
    def telegram_enabled(self) -> bool:
        return bool(self.telegram_bot_token and self.telegram_chat_id)


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached application settings.

    Returns:
        Settings: Validated application settings

    Raises:
        ValidationError: If required environment variables are missing or invalid
    """
    return Settings()


def load_settings(**overrides) -> Settings:
    """
    Load settings with explicit overrides (e.g., from the command line).

    Overrides take precedence over environment variables. Keys whose value
    is None are ignored so unset CLI options fall through to the environment.

    Raises:
        ValidationError: If the combined configuration is invalid
    """
    values = {key: value for key, value in overrides.items() if value is not None}
    return Settings(**values)


def setup_logging(settings: Optional[Settings] = None) -> logging.Logger:
    """
    Configure application logging.

    Args:
        settings: Optional settings instance, will be loaded if not provided

    Returns:
        logging.Logger: Configured logger instance
    """
    if settings is None:
        settings = get_settings()

    logging.basicConfig(
        level=getattr(logging, settings.log_level),
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    # Reduce noise from third-party libraries
    logging.getLogger("urllib3").setLevel(logging.WARNING)

    return logging.getLogger("seatwatch")
