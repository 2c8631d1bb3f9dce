# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Failover routing of a single request across ordered providers.

For one request the router:

1. Returns ``already_sent`` if the id was delivered before. Nothing else
   is touched and no event is published.
2. Fails immediately when no provider could ever be tried (empty provider
   list or retries disabled), without consuming rate-limit quota.
3. Consumes one unit of global rate-limit quota, or fails with
   ``rate limit exceeded``. Breakers are not affected by rate limiting.
4. Walks providers in configured order. A provider whose breaker refuses
   the request is skipped without recording anything. Otherwise the retry
   executor runs against it; success records on the breaker, marks the id
   delivered and stops, while exhaustion records a breaker failure and
   moves on to the next provider.
5. Fails with ``all providers failed`` when the loop ends without success.

Every outcome except ``already_sent`` publishes exactly one status event.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from .breaker import CircuitBreaker
from .dedup import Deduplicator
from .events import StatusPublisher
from .logger import get_logger
from .models import Outcome, OutcomeStatus, Request, StatusEvent
from .prometheus import DispatchMetrics
from .providers import Provider
from .rate_limit import RateLimiter
from .retry import RetryExecutor

RATE_LIMIT_EXCEEDED = "rate limit exceeded"
ALL_PROVIDERS_FAILED = "all providers failed"

logger = get_logger("FailoverRouter")


@dataclass(frozen=True)
class ProviderSlot:
    """A provider paired with the breaker that guards it."""

    provider: Provider
    breaker: CircuitBreaker

    @property
    def name(self) -> str:
        return self.provider.name


class FailoverRouter:
    """Per-request decision procedure composing dedup, rate limit, breakers and retry.

    Attributes:
        slots: Providers with their breakers, in priority order.
        max_retries: Attempts per provider passed to the retry executor.
        initial_delay: First backoff delay passed to the retry executor.
    """

    def __init__(
        self,
        slots: Sequence[ProviderSlot],
        *,
        rate_limiter: RateLimiter,
        deduplicator: Deduplicator,
        retry: RetryExecutor,
        publisher: StatusPublisher | None = None,
        metrics: DispatchMetrics | None = None,
    ):
        self.slots = tuple(slots)
        self.rate_limiter = rate_limiter
        self.deduplicator = deduplicator
        self.retry = retry
        self.publisher = publisher or StatusPublisher()
        self.metrics = metrics or DispatchMetrics()

    async def dispatch(self, request: Request) -> Outcome:
        if self.deduplicator.already_delivered(request.id):
            logger.info("Request %s already sent", request.id)
            self.metrics.inc_already_sent()
            return Outcome.already_delivered()

        if not self.slots or self.retry.max_retries < 1:
            logger.error(
                "Request %s cannot be dispatched: %d providers, max_retries=%d",
                request.id,
                len(self.slots),
                self.retry.max_retries,
            )
            return await self._fail(request, ALL_PROVIDERS_FAILED)

        if not self.rate_limiter.try_acquire():
            self.metrics.inc_rate_limited()
            return await self._fail(request, RATE_LIMIT_EXCEEDED)

        for slot in self.slots:
            if not slot.breaker.can_request():
                logger.warning("%s circuit breaker open, skipping provider", slot.name)
                continue

            try:
                await self.retry.attempt(slot.provider, request)
            except Exception as exc:
                slot.breaker.record_failure()
                self.metrics.inc_provider_error(slot.name)
                logger.error("%s failed to send request %s: %s", slot.name, request.id, exc)
                continue

            slot.breaker.record_success()
            self.deduplicator.mark_delivered(request.id)
            self.metrics.inc_sent(slot.name)
            logger.info("Request %s sent successfully via %s", request.id, slot.name)
            await self.publisher.publish(
                StatusEvent(request_id=request.id, status=OutcomeStatus.SENT, provider=slot.name)
            )
            return Outcome.sent(slot.name)

        logger.error("All providers failed for request %s", request.id)
        return await self._fail(request, ALL_PROVIDERS_FAILED)

    async def _fail(self, request: Request, reason: str) -> Outcome:
        self.metrics.inc_failed()
        await self.publisher.publish(
            StatusEvent(request_id=request.id, status=OutcomeStatus.FAILED, error=reason)
        )
        return Outcome.failed(reason)


__all__ = ["ALL_PROVIDERS_FAILED", "FailoverRouter", "ProviderSlot", "RATE_LIMIT_EXCEEDED"]
