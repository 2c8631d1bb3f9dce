# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Global fixed-window rate limiter.

Bounds the number of dispatches accepted per window across all providers.
A window starts on the first acquire after the previous one expired; the
counter then resets to zero and the window end moves to ``now + window``.

Example:
    Using the rate limiter::

        limiter = RateLimiter(limit=5, window=60.0)
        if not limiter.try_acquire():
            return Outcome.failed("rate limit exceeded")
"""

from __future__ import annotations

from .clock import Clock, SystemClock
from .errors import ConfigurationError
from .logger import get_logger

logger = get_logger("RateLimiter")


class RateLimiter:
    """Fixed-window counter bounding accepted dispatches per window.

    Attributes:
        limit: Maximum acquisitions per window.
        window: Window duration in seconds.
    """

    def __init__(self, limit: int = 5, window: float = 60.0, *, clock: Clock | None = None):
        if limit < 0:
            raise ConfigurationError("limit must be >= 0")
        if window <= 0:
            raise ConfigurationError("window must be > 0")
        self.limit = limit
        self.window = window
        self._clock = clock or SystemClock()
        self._count = 0
        self._window_end = self._clock.now() + window

    def _roll(self) -> float:
        now = self._clock.now()
        if now > self._window_end:
            self._count = 0
            self._window_end = now + self.window
        return now

    def try_acquire(self) -> bool:
        """Consume one unit of quota, or return False if the window is full."""
        self._roll()
        if self._count >= self.limit:
            logger.warning("Rate limit exceeded (%d/%d in current window)", self._count, self.limit)
            return False
        self._count += 1
        return True

    @property
    def count(self) -> int:
        return self._count

    @property
    def remaining(self) -> int:
        """Units of quota left in the current window."""
        self._roll()
        return max(0, self.limit - self._count)

    @property
    def reset_in(self) -> float:
        """Seconds until the current window rolls over."""
        now = self._roll()
        return max(0.0, self._window_end - now)


__all__ = ["RateLimiter"]
