# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Prometheus metrics for monitoring the dispatch pipeline.

All metrics use the ``mdp_`` prefix (mail-dispatch-pipeline).

Metrics exposed:
    - ``mdp_sent_total``: Counter of delivered requests per provider.
    - ``mdp_failed_total``: Counter of requests that ended failed.
    - ``mdp_already_sent_total``: Counter of deduplicated submissions.
    - ``mdp_rate_limited_total``: Counter of rate-limit rejections.
    - ``mdp_provider_errors_total``: Counter of exhausted provider attempts.
    - ``mdp_pending_requests``: Gauge of requests waiting in the lane.
"""

from prometheus_client import CollectorRegistry, Counter, Gauge, generate_latest


class DispatchMetrics:
    """Prometheus metrics collector for the dispatch pipeline.

    Attributes:
        registry: The Prometheus CollectorRegistry holding all metrics.
    """

    def __init__(self, registry: CollectorRegistry | None = None):
        """Initialize metrics with an optional custom registry.

        Args:
            registry: Optional Prometheus CollectorRegistry. If not provided,
                a new registry is created, so several services can coexist
                in one process.
        """
        self.registry = registry or CollectorRegistry()
        self.sent = Counter(
            "mdp_sent_total",
            "Total delivered requests",
            ["provider"],
            registry=self.registry,
        )
        self.failed = Counter(
            "mdp_failed_total",
            "Total failed requests",
            registry=self.registry,
        )
        self.already_sent = Counter(
            "mdp_already_sent_total",
            "Total deduplicated submissions",
            registry=self.registry,
        )
        self.rate_limited = Counter(
            "mdp_rate_limited_total",
            "Total rate limit rejections",
            registry=self.registry,
        )
        self.provider_errors = Counter(
            "mdp_provider_errors_total",
            "Total exhausted attempts per provider",
            ["provider"],
            registry=self.registry,
        )
        self.pending = Gauge(
            "mdp_pending_requests",
            "Requests waiting in the dispatch lane",
            registry=self.registry,
        )

    def inc_sent(self, provider: str) -> None:
        self.sent.labels(provider=provider or "default").inc()

    def inc_failed(self) -> None:
        self.failed.inc()

    def inc_already_sent(self) -> None:
        self.already_sent.inc()

    def inc_rate_limited(self) -> None:
        self.rate_limited.inc()

    def inc_provider_error(self, provider: str) -> None:
        self.provider_errors.labels(provider=provider or "default").inc()

    def set_pending(self, value: int) -> None:
        self.pending.set(value)

    def generate_latest(self) -> bytes:
        """Export all metrics in Prometheus text exposition format."""
        return generate_latest(self.registry)
