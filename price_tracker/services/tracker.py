"""Builds the price lookup stack from configuration."""
from __future__ import annotations

import logging
from typing import Callable

from prometheus_client import CollectorRegistry

from ..cache import MemoryCache, RedisCache
from ..client import CachedPriceClient
from ..config import AppConfig, CacheConfig, SourceConfig
from ..interfaces.cache import Cache
from ..interfaces.metrics import MetricsSink
from ..interfaces.price_source import PriceSource
from ..models import BatchOutcome, PairsInput
from ..observability import NoopMetrics, PrometheusMetrics
from ..sources import CoinGeckoSource
from .rates import RateService

logger = logging.getLogger(__name__)

_FROM_CONFIG = object()

# Registry of price source factories keyed by provider name.
_SOURCE_FACTORIES: dict[str, Callable[[SourceConfig], PriceSource]] = {
    "coingecko": lambda cfg: CoinGeckoSource(cfg.coingecko),
}

# Registry of cache factories keyed by backend name.
_CACHE_FACTORIES: dict[str, Callable[[CacheConfig], Cache | None]] = {
    "redis": lambda cfg: RedisCache.from_url(cfg.redis.url, cfg.ttl_seconds),
    "memory": lambda cfg: MemoryCache(cfg.ttl_seconds),
    "none": lambda cfg: None,
}


class PriceTracker:
    """Owns the source, cache and metrics and exposes single and batch lookups."""

    def __init__(
        self,
        config: AppConfig,
        source: PriceSource | None = None,
        cache: Cache | None | object = _FROM_CONFIG,
        metrics: MetricsSink | None = None,
    ) -> None:
        self._config = config

        self.source: PriceSource = (
            source if source is not None else _SOURCE_FACTORIES[config.source.provider](config.source)
        )
        # An explicit None disables caching.
        self.cache: Cache | None = (
            _CACHE_FACTORIES[config.cache.backend](config.cache)
            if cache is _FROM_CONFIG
            else cache
        )
        # Each tracker registers on its own registry so several can coexist.
        if metrics is None:
            metrics = (
                PrometheusMetrics(CollectorRegistry())
                if config.metrics.enabled
                else NoopMetrics()
            )
        self.metrics: MetricsSink = metrics

        self.client = CachedPriceClient(self.source, self.cache, self.metrics)
        self.rates = RateService(self.client)

    @property
    def default_pairs(self) -> dict[str, str]:
        return dict(self._config.rates.pairs)

    async def start(self) -> None:
        """Check backend connectivity. Failures are logged, not raised."""
        if isinstance(self.cache, RedisCache):
            await self.cache.ping()
        logger.info(
            "Price tracker ready (source=%s, cache=%s)",
            self._config.source.provider,
            self._config.cache.backend if self.cache is not None else "none",
        )

    async def close(self) -> None:
        if isinstance(self.cache, RedisCache):
            await self.cache.close()

    async def get_price(self, asset_id: str, quote_currency: str) -> float:
        return await self.client.get_price(asset_id, quote_currency)

    async def get_many(
        self, pairs: PairsInput | None = None, timeout: float | None = None
    ) -> BatchOutcome:
        """Batch lookup; defaults to the configured rate pairs."""
        if pairs is None:
            pairs = self._config.rates.pairs
        return await self.rates.get_many(pairs, timeout=timeout)
