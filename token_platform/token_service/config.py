"""
Configuration management for the token service
"""
import re
from datetime import timedelta
from functools import lru_cache
from typing import List, Literal, Optional

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ConfigurationError(ValueError):
    """Raised when the process configuration cannot be used."""


_DURATION_RE = re.compile(r"^\s*(-?\d+(?:\.\d+)?)\s*([a-z]*)\s*$", re.IGNORECASE)

_DURATION_UNITS = {
    "": 1.0,
    "ms": 0.001, "msec": 0.001, "msecs": 0.001,
    "millisecond": 0.001, "milliseconds": 0.001,
    "s": 1.0, "sec": 1.0, "secs": 1.0, "second": 1.0, "seconds": 1.0,
    "m": 60.0, "min": 60.0, "mins": 60.0, "minute": 60.0, "minutes": 60.0,
    "h": 3600.0, "hr": 3600.0, "hrs": 3600.0, "hour": 3600.0, "hours": 3600.0,
    "d": 86400.0, "day": 86400.0, "days": 86400.0,
    "w": 604800.0, "week": 604800.0, "weeks": 604800.0,
    "y": 31557600.0, "yr": 31557600.0, "yrs": 31557600.0,
    "year": 31557600.0, "years": 31557600.0,
}


def parse_duration(value) -> timedelta:
    """
    Parse an expiry such as "15m", "7d" or "36500d" into a timedelta.

    Args:
        value: Duration string, a number of seconds, or a timedelta

    Returns:
        timedelta: Parsed positive duration

    Raises:
        ConfigurationError: If the value is not a positive duration
    """
    if isinstance(value, timedelta):
        seconds = value.total_seconds()
    elif isinstance(value, (int, float)) and not isinstance(value, bool):
        seconds = float(value)
    else:
        match = _DURATION_RE.match(str(value or ""))
        if not match or match.group(2).lower() not in _DURATION_UNITS:
            raise ConfigurationError(f"Invalid duration: {value!r}")
        seconds = float(match.group(1)) * _DURATION_UNITS[match.group(2).lower()]

    if seconds <= 0:
        raise ConfigurationError(f"Duration must be positive: {value!r}")
    return timedelta(seconds=seconds)


class Settings(BaseSettings):
    """Token service configuration loaded from environment variables"""

    # Server Configuration
    HOST: str = "0.0.0.0"
    PORT: int = 8080
    LOG_LEVEL: str = "INFO"
    LOG_DIR: Optional[str] = None

    # Database Configuration
    DATABASE_URL: str = "sqlite:///./app.db"

    # Token Configuration
    JWT_ACCESS_SECRET: str
    JWT_REFRESH_SECRET: str
    JWT_ACCESS_EXPIRESIN: timedelta = timedelta(minutes=15)
    JWT_REFRESH_EXPIRESIN: timedelta = timedelta(days=7)
    JWT_ALGORITHM: str = "HS256"

    # "reject" refuses refresh tokens that were already rotated away,
    # "allow" accepts any correctly signed token for a known user.
    REFRESH_TOKEN_REUSE: Literal["reject", "allow"] = "reject"

    # Bootstrap
    SEED_TEST_ACCOUNTS: bool = True

    # CORS Configuration
    CORS_ORIGINS: List[str] = ["*"]

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    @field_validator("JWT_ACCESS_EXPIRESIN", "JWT_REFRESH_EXPIRESIN", mode="before")
    @classmethod
    def _parse_expiry(cls, value):
        return parse_duration(value)

    @field_validator("JWT_ACCESS_SECRET", "JWT_REFRESH_SECRET")
    @classmethod
    def _require_secret(cls, value: str) -> str:
        if not value or not value.strip():
            raise ConfigurationError("JWT secrets must not be empty")
        return value

    @model_validator(mode="after")
    def _separate_secrets(self):
        # Access and refresh tokens must not be interchangeable.
        if self.JWT_ACCESS_SECRET == self.JWT_REFRESH_SECRET:
            raise ConfigurationError(
                "JWT_ACCESS_SECRET and JWT_REFRESH_SECRET must be different"
            )
        return self


@lru_cache
def get_settings() -> Settings:
    """
    Build the process settings once.

    Raises:
        ConfigurationError: If the environment does not describe a usable configuration
    """
    try:
        return Settings()
    except ValueError as e:
        raise ConfigurationError(str(e)) from e
