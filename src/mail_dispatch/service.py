# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Caller-facing dispatch service.

MailDispatchService wires the pipeline together: one circuit breaker per
provider, the global rate limiter, the deduplicator, the retry executor,
the failover router, the status publisher and the single-lane queue. All
state is owned by the service instance; nothing is global.

Example:
    Submitting requests::

        from mail_dispatch import MailDispatchService, SmtpProvider

        service = MailDispatchService(
            [
                SmtpProvider("primary", "smtp.example.com", user="u", password="p"),
                SmtpProvider("backup", "smtp.backup.example.com", 465),
            ]
        )
        service.on_status(lambda event: print(event.to_dict()))

        result = await service.submit(
            {"id": "email-001", "to": "a@example.com", "subject": "Hello", "body": "Hi"}
        )
        # {"status": "sent", "provider": "primary"}
"""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from typing import Any

from prometheus_client import CollectorRegistry

from .breaker import CircuitBreaker
from .clock import Clock, SystemClock
from .config import DispatchConfig
from .dedup import Deduplicator
from .errors import ConfigurationError
from .events import StatusObserver, StatusPublisher
from .logger import get_logger
from .models import Outcome, Request
from .prometheus import DispatchMetrics
from .providers import Provider
from .queue import DispatchQueue
from .rate_limit import RateLimiter
from .retry import RetryExecutor
from .router import FailoverRouter, ProviderSlot


class MailDispatchService:
    """Resilient dispatch of requests across ordered providers.

    Attributes:
        config: The validated configuration in use.
        slots: Providers paired with their breakers, in priority order.
        rate_limiter: Global rate limiter.
        deduplicator: Delivered-id set.
        publisher: Status event channel.
        router: Failover router.
        queue: Single-lane dispatch queue.
        metrics: Prometheus metrics collector.
    """

    def __init__(
        self,
        providers: Sequence[Provider],
        *,
        config: DispatchConfig | None = None,
        clock: Clock | None = None,
        metrics: DispatchMetrics | None = None,
        registry: CollectorRegistry | None = None,
        logger=None,
    ):
        self.config = (config or DispatchConfig()).validate()
        self.logger = logger or get_logger()
        self._clock = clock or SystemClock()

        names = [p.name for p in providers]
        duplicates = sorted({n for n in names if names.count(n) > 1})
        if duplicates:
            raise ConfigurationError(f"Duplicate provider names: {', '.join(duplicates)}")

        breaker_cfg = self.config.breaker
        self.slots = tuple(
            ProviderSlot(
                provider=p,
                breaker=CircuitBreaker(
                    p.name,
                    failure_threshold=breaker_cfg.failure_threshold,
                    cooldown=breaker_cfg.cooldown_seconds,
                    clock=self._clock,
                ),
            )
            for p in providers
        )
        self.rate_limiter = RateLimiter(
            self.config.rate_limit.limit,
            self.config.rate_limit.window_seconds,
            clock=self._clock,
        )
        self.deduplicator = Deduplicator()
        self.metrics = metrics or DispatchMetrics(registry)
        self.publisher = StatusPublisher()
        self.retry = RetryExecutor(
            self.config.retry.max_retries,
            self.config.retry.initial_delay,
            clock=self._clock,
        )
        self.router = FailoverRouter(
            self.slots,
            rate_limiter=self.rate_limiter,
            deduplicator=self.deduplicator,
            retry=self.retry,
            publisher=self.publisher,
            metrics=self.metrics,
        )
        self.queue = DispatchQueue(self.router, metrics=self.metrics)
        self.logger.info(
            "Dispatch service ready with providers: %s", ", ".join(names) or "(none)"
        )

    async def submit(self, request: Request | Mapping[str, Any]) -> dict[str, Any]:
        """Queue ``request`` and wait for its outcome.

        Business failures (rate limiting, exhausted providers) come back as a
        ``{"status": "failed", "error": ...}`` result. Only contract
        violations raise.

        Raises:
            pydantic.ValidationError: If a mapping is not a valid Request.
            QueueClosedError: If the service was closed.
        """
        outcome = await self.dispatch(request)
        return outcome.to_dict()

    async def dispatch(self, request: Request | Mapping[str, Any]) -> Outcome:
        """Like ``submit`` but returns the Outcome object."""
        if not isinstance(request, Request):
            request = Request.model_validate(request)
        return await self.queue.enqueue(request)

    def on_status(self, observer: StatusObserver) -> Callable[[], None]:
        """Subscribe to status events; returns the unsubscribe callable."""
        return self.publisher.subscribe(observer)

    def breaker(self, provider_name: str) -> CircuitBreaker:
        for slot in self.slots:
            if slot.name == provider_name:
                return slot.breaker
        raise KeyError(provider_name)

    def provider_status(self) -> list[dict[str, Any]]:
        """Breaker state of every provider, in priority order."""
        result = []
        for slot in self.slots:
            snap = slot.breaker.snapshot()
            result.append(
                {
                    "provider": snap.name,
                    "state": snap.state.value,
                    "consecutive_failures": snap.consecutive_failures,
                    "cooldown_until": snap.cooldown_until,
                }
            )
        return result

    def rate_limit_status(self) -> dict[str, Any]:
        return {
            "limit": self.rate_limiter.limit,
            "remaining": self.rate_limiter.remaining,
            "reset_in": self.rate_limiter.reset_in,
        }

    async def close(self) -> None:
        """Stop accepting requests and wait for queued ones to finish."""
        await self.queue.close()


__all__ = ["MailDispatchService"]
