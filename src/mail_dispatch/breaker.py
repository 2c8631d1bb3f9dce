# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Per-provider circuit breaker.

A breaker starts CLOSED. After ``failure_threshold`` consecutive recorded
failures it goes OPEN and rejects requests until its cooldown expires. The
first ``can_request()`` call after expiry moves it to HALF_OPEN and lets one
trial through; the trial's recorded outcome closes the breaker again or
re-opens it with a fresh cooldown.

There is no background timer: the OPEN to HALF_OPEN transition is evaluated
lazily whenever the breaker is queried.

Example:
    Gating a provider::

        breaker = CircuitBreaker("smtp-primary", failure_threshold=3, cooldown=10.0)
        if breaker.can_request():
            try:
                await provider.send(request)
            except Exception:
                breaker.record_failure()
            else:
                breaker.record_success()
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from .clock import Clock, SystemClock
from .errors import ConfigurationError
from .logger import get_logger

logger = get_logger("CircuitBreaker")


class CircuitState(str, Enum):
    """Breaker states."""

    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


@dataclass(frozen=True)
class BreakerSnapshot:
    """Point-in-time view of a breaker, for status reporting."""

    name: str
    state: CircuitState
    consecutive_failures: int
    cooldown_until: float | None


class CircuitBreaker:
    """Failure-tripped gate with closed, open and half-open states.

    Attributes:
        name: Name of the provider this breaker guards.
        failure_threshold: Consecutive failures that open the breaker.
        cooldown: Seconds an open breaker waits before allowing a trial.
    """

    def __init__(
        self,
        name: str = "",
        *,
        failure_threshold: int = 3,
        cooldown: float = 10.0,
        clock: Clock | None = None,
    ):
        if failure_threshold < 1:
            raise ConfigurationError("failure_threshold must be >= 1")
        if cooldown < 0:
            raise ConfigurationError("cooldown must be >= 0")
        self.name = name
        self.failure_threshold = failure_threshold
        self.cooldown = cooldown
        self._clock = clock or SystemClock()
        self._state = CircuitState.CLOSED
        self._failures = 0
        self._cooldown_until: float | None = None

    @property
    def state(self) -> CircuitState:
        """Current state, without triggering the lazy half-open transition."""
        return self._state

    @property
    def consecutive_failures(self) -> int:
        return self._failures

    @property
    def cooldown_until(self) -> float | None:
        return self._cooldown_until

    def can_request(self) -> bool:
        """Return whether a send may be attempted through this breaker.

        An open breaker whose cooldown has strictly elapsed moves to
        HALF_OPEN and admits the call as its trial.
        """
        if self._state is CircuitState.OPEN:
            if self._cooldown_until is not None and self._clock.now() > self._cooldown_until:
                self._state = CircuitState.HALF_OPEN
                logger.info("Circuit %s half-open, probing provider", self.name)
                return True
            return False
        return True

    def record_success(self) -> None:
        self._failures = 0
        if self._state is CircuitState.HALF_OPEN:
            self._state = CircuitState.CLOSED
            self._cooldown_until = None
            logger.info("Circuit %s closed after successful trial", self.name)

    def record_failure(self) -> None:
        self._failures += 1
        if self._failures >= self.failure_threshold:
            self._open()

    def force_open(self) -> None:
        """Open the breaker immediately with a fresh cooldown."""
        self._failures = max(self._failures, self.failure_threshold)
        self._open()

    def reset(self) -> None:
        """Return to CLOSED and clear the failure count."""
        self._state = CircuitState.CLOSED
        self._failures = 0
        self._cooldown_until = None

    def snapshot(self) -> BreakerSnapshot:
        return BreakerSnapshot(
            name=self.name,
            state=self._state,
            consecutive_failures=self._failures,
            cooldown_until=self._cooldown_until,
        )

    def _open(self) -> None:
        was = self._state
        self._state = CircuitState.OPEN
        self._cooldown_until = self._clock.now() + self.cooldown
        logger.warning(
            "Circuit %s opened (%s -> open) after %d consecutive failures, cooling down %.1fs",
            self.name,
            was.value,
            self._failures,
            self.cooldown,
        )

    def __repr__(self) -> str:
        return (
            f"CircuitBreaker(name={self.name!r}, state={self._state.value}, "
            f"failures={self._failures})"
        )


__all__ = ["BreakerSnapshot", "CircuitBreaker", "CircuitState"]
