# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Configuration dataclasses and loader for the dispatch pipeline.

Provides a nested configuration structure:
- config.breaker.failure_threshold
- config.retry.initial_delay
- config.rate_limit.window_seconds

Settings are read from an INI file with environment variables as fallbacks.

Example:
    Configuration file format (config.ini)::

        [breaker]
        failure_threshold = 3
        cooldown_seconds = 10

        [retry]
        max_retries = 3
        initial_delay = 0.1

        [rate_limit]
        limit = 5
        window_seconds = 60

    Loading it::

        config = load_settings("/etc/mail-dispatch/config.ini")
        service = MailDispatchService(providers, config=config)
"""

from __future__ import annotations

import configparser
import os
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

from .errors import ConfigurationError
from .logger import get_logger

logger = get_logger("DispatchConfig")


@dataclass
class BreakerConfig:
    """Circuit breaker settings, applied to every provider."""

    failure_threshold: int = 3
    """Consecutive failures that open the breaker."""

    cooldown_seconds: float = 10.0
    """How long an open breaker rejects requests before probing."""


@dataclass
class RetryConfig:
    """Retry behavior against a single provider."""

    max_retries: int = 3
    """Maximum send attempts per provider per request."""

    initial_delay: float = 0.1
    """First backoff delay in seconds, doubled after every failed attempt."""


@dataclass
class RateLimitConfig:
    """Global fixed-window rate limit."""

    limit: int = 5
    """Maximum dispatches accepted per window."""

    window_seconds: float = 60.0
    """Window duration in seconds."""


@dataclass
class DispatchConfig:
    """Main configuration container for MailDispatchService.

    Example:
        config = DispatchConfig(
            retry=RetryConfig(max_retries=5),
            rate_limit=RateLimitConfig(limit=100),
        )
    """

    breaker: BreakerConfig = field(default_factory=BreakerConfig)
    """Circuit breaker settings."""

    retry: RetryConfig = field(default_factory=RetryConfig)
    """Retry settings."""

    rate_limit: RateLimitConfig = field(default_factory=RateLimitConfig)
    """Rate limit settings."""

    def validate(self) -> DispatchConfig:
        """Check value ranges, raising ConfigurationError on the first problem."""
        if self.breaker.failure_threshold < 1:
            raise ConfigurationError("breaker.failure_threshold must be >= 1")
        if self.breaker.cooldown_seconds < 0:
            raise ConfigurationError("breaker.cooldown_seconds must be >= 0")
        if self.retry.max_retries < 0:
            raise ConfigurationError("retry.max_retries must be >= 0")
        if self.retry.initial_delay < 0:
            raise ConfigurationError("retry.initial_delay must be >= 0")
        if self.rate_limit.limit < 0:
            raise ConfigurationError("rate_limit.limit must be >= 0")
        if self.rate_limit.window_seconds <= 0:
            raise ConfigurationError("rate_limit.window_seconds must be > 0")
        return self

    def as_dict(self) -> dict[str, Any]:
        return asdict(self)


def load_settings(config_path: str | os.PathLike[str] | None = None) -> DispatchConfig:
    """Load configuration from an INI file with environment variables as fallbacks.

    Environment variables (all prefixed with MDP_):
      MDP_CONFIG - Path to config.ini file (default: config.ini)
      MDP_FAILURE_THRESHOLD - Breaker failure threshold (default: 3)
      MDP_COOLDOWN_SECONDS - Breaker cooldown (default: 10)
      MDP_MAX_RETRIES - Attempts per provider (default: 3)
      MDP_INITIAL_DELAY - First backoff delay in seconds (default: 0.1)
      MDP_RATE_LIMIT - Dispatches per window (default: 5)
      MDP_RATE_WINDOW_SECONDS - Rate window duration (default: 60)

    Values found in the file win over the environment. A missing file is not
    an error; defaults and environment apply.

    Raises:
        ConfigurationError: If a value cannot be parsed or is out of range.
    """
    path = Path(config_path or os.getenv("MDP_CONFIG", "config.ini"))
    parser = configparser.ConfigParser()
    if path.exists():
        parser.read(path)
        logger.debug("Loaded dispatch configuration from %s", path)

    def get(section: str, option: str, env: str) -> str | None:
        if parser.has_option(section, option):
            return parser.get(section, option)
        return os.getenv(env)

    def get_int(section: str, option: str, env: str, default: int) -> int:
        value = get(section, option, env)
        if value is None or not value.strip():
            return default
        try:
            return int(value)
        except ValueError as exc:
            raise ConfigurationError(f"Invalid integer for [{section}] {option}: {value!r}") from exc

    def get_float(section: str, option: str, env: str, default: float) -> float:
        value = get(section, option, env)
        if value is None or not value.strip():
            return default
        try:
            return float(value)
        except ValueError as exc:
            raise ConfigurationError(f"Invalid number for [{section}] {option}: {value!r}") from exc

    config = DispatchConfig(
        breaker=BreakerConfig(
            failure_threshold=get_int("breaker", "failure_threshold", "MDP_FAILURE_THRESHOLD", 3),
            cooldown_seconds=get_float("breaker", "cooldown_seconds", "MDP_COOLDOWN_SECONDS", 10.0),
        ),
        retry=RetryConfig(
            max_retries=get_int("retry", "max_retries", "MDP_MAX_RETRIES", 3),
            initial_delay=get_float("retry", "initial_delay", "MDP_INITIAL_DELAY", 0.1),
        ),
        rate_limit=RateLimitConfig(
            limit=get_int("rate_limit", "limit", "MDP_RATE_LIMIT", 5),
            window_seconds=get_float("rate_limit", "window_seconds", "MDP_RATE_WINDOW_SECONDS", 60.0),
        ),
    )
    return config.validate()


__all__ = [
    "BreakerConfig",
    "DispatchConfig",
    "RateLimitConfig",
    "RetryConfig",
    "load_settings",
]
