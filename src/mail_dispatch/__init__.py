# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Resilient mail dispatch pipeline.

Features:
    - Single-lane FIFO dispatch queue with concurrent submission
    - Ordered provider failover with per-provider circuit breakers
    - Bounded retry with exponential backoff
    - Global fixed-window rate limiting
    - Idempotent resubmission by request id
    - Status event notifications and Prometheus metrics

Example::

    from mail_dispatch import MailDispatchService, MockProvider

    service = MailDispatchService([MockProvider("a", 0.3), MockProvider("b", 0.2)])
    result = await service.submit({"id": "email-001", "to": "a@example.com"})
"""

from .breaker import CircuitBreaker, CircuitState
from .config import BreakerConfig, DispatchConfig, RateLimitConfig, RetryConfig, load_settings
from .dedup import Deduplicator
from .errors import ConfigurationError, MailDispatchError, QueueClosedError, RetryExhaustedError
from .events import StatusPublisher
from .models import Outcome, OutcomeStatus, Request, StatusEvent
from .providers import MockProvider, Provider, SmtpProvider
from .queue import DispatchQueue
from .rate_limit import RateLimiter
from .retry import RetryExecutor
from .router import FailoverRouter, ProviderSlot
from .service import MailDispatchService

__all__ = [
    "BreakerConfig",
    "CircuitBreaker",
    "CircuitState",
    "ConfigurationError",
    "Deduplicator",
    "DispatchConfig",
    "DispatchQueue",
    "FailoverRouter",
    "MailDispatchError",
    "MailDispatchService",
    "MockProvider",
    "Outcome",
    "OutcomeStatus",
    "Provider",
    "ProviderSlot",
    "QueueClosedError",
    "RateLimitConfig",
    "RateLimiter",
    "Request",
    "RetryConfig",
    "RetryExecutor",
    "SmtpProvider",
    "StatusEvent",
    "StatusPublisher",
    "load_settings",
]
