"""Engine configuration.

Settings are read from environment variables with the ``CRONSCHED``
prefix:

    CRONSCHED_TIMEZONE=Europe/Berlin
    CRONSCHED_SEARCH_HORIZON_DAYS=4018
    CRONSCHED_LOG_LEVEL=DEBUG

Usage:
    >>> from cronsched.config import get_config
    >>> config = get_config()
    >>> config.tzinfo()
"""

from __future__ import annotations

import logging
import os
import threading
from dataclasses import dataclass
from datetime import tzinfo as TzInfo

import pytz

logger = logging.getLogger(__name__)

ENV_PREFIX = "CRONSCHED"

# Longest gap between two leap days is eight years (2096 -> 2104); keep
# some margin so any satisfiable expression is found.
DEFAULT_SEARCH_HORIZON_DAYS = 4018

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class ConfigError(Exception):
    """Base configuration error."""

    pass


class ConfigValidationError(ConfigError):
    """Configuration validation error."""

    def __init__(self, errors: list[str]) -> None:
        self.errors = errors
        super().__init__(f"Configuration validation failed: {', '.join(errors)}")


@dataclass(frozen=True)
class EngineConfig:
    """Configuration for the scheduling engine.

    Attributes:
        timezone: Zone used for "now" by schedules (None = system local zone).
        search_horizon_days: How far next/last execution searches look.
        log_level: Log level for the command line interface.
    """

    timezone: str | None = None
    search_horizon_days: int = DEFAULT_SEARCH_HORIZON_DAYS
    log_level: str = "WARNING"

    @classmethod
    def from_env(cls, prefix: str = ENV_PREFIX) -> "EngineConfig":
        """Build a configuration from environment variables.

        Raises:
            ConfigValidationError: If a variable holds an invalid value.
        """
        horizon_raw = os.getenv(f"{prefix}_SEARCH_HORIZON_DAYS")
        try:
            horizon = int(horizon_raw) if horizon_raw else DEFAULT_SEARCH_HORIZON_DAYS
        except ValueError:
            raise ConfigValidationError(
                [f"{prefix}_SEARCH_HORIZON_DAYS must be an integer, got {horizon_raw!r}"]
            ) from None

        config = cls(
            timezone=os.getenv(f"{prefix}_TIMEZONE") or None,
            search_horizon_days=horizon,
            log_level=(os.getenv(f"{prefix}_LOG_LEVEL") or "WARNING").upper(),
        )
        errors = config.validate()
        if errors:
            raise ConfigValidationError(errors)
        return config

    def validate(self) -> list[str]:
        """Validate configuration.

        Returns:
            List of validation errors (empty if valid).
        """
        errors = []

        if self.search_horizon_days <= 0:
            errors.append(f"search_horizon_days must be > 0, got {self.search_horizon_days}")

        if self.log_level.upper() not in LOG_LEVELS:
            errors.append(f"Unknown log level: {self.log_level}")

        if self.timezone is not None:
            try:
                pytz.timezone(self.timezone)
            except pytz.UnknownTimeZoneError:
                errors.append(f"Unknown timezone: {self.timezone}")

        return errors

    def tzinfo(self) -> TzInfo | None:
        """Resolve the configured zone.

        Returns:
            pytz zone, or None when the system local zone should be used.

        Raises:
            ConfigError: If the zone name is unknown.
        """
        if self.timezone is None:
            return None
        try:
            return pytz.timezone(self.timezone)
        except pytz.UnknownTimeZoneError:
            raise ConfigError(f"Unknown timezone: {self.timezone}") from None


# =============================================================================
# Global Configuration
# =============================================================================

_config: EngineConfig | None = None
_lock = threading.Lock()


def get_config() -> EngineConfig:
    """Get the process-wide configuration, loading it from the environment once."""
    global _config

    with _lock:
        if _config is None:
            _config = EngineConfig.from_env()
            logger.debug("Loaded engine configuration: %s", _config)
        return _config


def set_config(config: EngineConfig) -> None:
    """Replace the process-wide configuration.

    Raises:
        ConfigValidationError: If the configuration is invalid.
    """
    global _config

    errors = config.validate()
    if errors:
        raise ConfigValidationError(errors)

    with _lock:
        _config = config


def reset_config() -> None:
    """Forget the process-wide configuration; the next access reloads it."""
    global _config

    with _lock:
        _config = None
