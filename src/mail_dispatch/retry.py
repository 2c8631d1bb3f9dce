# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Bounded retry with exponential backoff against a single provider.

Delays start at ``initial_delay`` and double after every failed attempt
(0.1s, 0.2s, 0.4s, ... with the defaults). There is no jitter and no cap;
callers bound the total wait through ``max_retries`` and ``initial_delay``.

Sleeping goes through the injected clock, so it suspends only the dispatch
lane that is running the attempt.
"""

from __future__ import annotations

from .clock import Clock, SystemClock
from .errors import RetryExhaustedError
from .logger import get_logger
from .models import Request
from .providers import Provider

DEFAULT_MAX_RETRIES = 3
DEFAULT_INITIAL_DELAY = 0.1

logger = get_logger("RetryExecutor")


class RetryExecutor:
    """Drives up to ``max_retries`` send attempts against one provider.

    Attributes:
        max_retries: Default number of attempts per call.
        initial_delay: Default first backoff delay in seconds.
    """

    def __init__(
        self,
        max_retries: int = DEFAULT_MAX_RETRIES,
        initial_delay: float = DEFAULT_INITIAL_DELAY,
        *,
        clock: Clock | None = None,
    ):
        self.max_retries = max_retries
        self.initial_delay = initial_delay
        self._clock = clock or SystemClock()

    @staticmethod
    def backoff_delays(max_retries: int, initial_delay: float) -> list[float]:
        """Sleep sequence between ``max_retries`` attempts."""
        return [initial_delay * (2 ** i) for i in range(max(0, max_retries - 1))]

    async def attempt(
        self,
        provider: Provider,
        request: Request,
        max_retries: int | None = None,
        initial_delay: float | None = None,
    ) -> None:
        """Send ``request`` through ``provider``, retrying on failure.

        Returns as soon as one attempt succeeds.

        Raises:
            RetryExhaustedError: If ``max_retries`` is below 1.
            Exception: The last attempt's exception once all attempts failed.
        """
        attempts = self.max_retries if max_retries is None else max_retries
        delay = self.initial_delay if initial_delay is None else initial_delay
        if attempts < 1:
            raise RetryExhaustedError(f"No attempts permitted for {provider.name} (max_retries={attempts})")

        attempt = 0
        while True:
            try:
                await provider.send(request)
                return
            except Exception as exc:
                attempt += 1
                if attempt >= attempts:
                    raise
                logger.warning(
                    "%s failed request %s (attempt %d/%d): %s - retrying in %.3fs",
                    provider.name,
                    request.id,
                    attempt,
                    attempts,
                    exc,
                    delay,
                )
            await self._clock.sleep(delay)
            delay *= 2


__all__ = ["DEFAULT_INITIAL_DELAY", "DEFAULT_MAX_RETRIES", "RetryExecutor"]
