"""Client metrics: a no-op sink and a Prometheus-backed sink.

Metrics
-------

* ``client_backend_duration_seconds{success=...}`` – latency of price source
  calls, labelled by outcome.
* ``client_backend_errors_total`` – failed price source calls.
* ``cached_client_cache_hits_total`` – lookups served from the cache.
* ``cached_client_cache_misses_total`` – lookups that fell through to the
  price source after consulting the cache.
"""
from __future__ import annotations

import logging

from prometheus_client import REGISTRY, CollectorRegistry, Counter, Histogram

logger = logging.getLogger(__name__)


class NoopMetrics:
    """Metrics sink used when metrics are disabled and in tests."""

    def observe_backend_call(self, duration: float, success: bool) -> None:
        pass

    def cache_hit(self) -> None:
        pass

    def cache_miss(self) -> None:
        pass


class PrometheusMetrics:
    """Expose client metrics for Prometheus.

    Collectors are registered on ``registry`` (the process-wide default when
    omitted); registering twice on the same registry raises ``ValueError``,
    so build one instance per registry.
    """

    def __init__(self, registry: CollectorRegistry | None = None) -> None:
        self.registry = registry if registry is not None else REGISTRY
        self.backend_latency = Histogram(
            "client_backend_duration_seconds",
            "Duration of backend get_price calls in seconds, labelled by success",
            labelnames=["success"],
            registry=self.registry,
        )
        self.backend_errors = Counter(
            "client_backend_errors_total",
            "Number of backend errors",
            registry=self.registry,
        )
        self.cache_hits = Counter(
            "cached_client_cache_hits_total",
            "Number of cache hits served by the cached price client",
            registry=self.registry,
        )
        self.cache_misses = Counter(
            "cached_client_cache_misses_total",
            "Number of cache misses in the cached price client",
            registry=self.registry,
        )

    def observe_backend_call(self, duration: float, success: bool) -> None:
        try:
            if not success:
                self.backend_errors.inc()
            label = "true" if success else "false"
            self.backend_latency.labels(success=label).observe(duration)
        except Exception as exc:
            logger.debug("Failed to record backend call metric: %s", exc)

    def cache_hit(self) -> None:
        self.cache_hits.inc()

    def cache_miss(self) -> None:
        self.cache_misses.inc()
