"""Cache-aside price client.

Wraps any ``PriceSource`` with a best-effort cache: reads are served from the
cache when it holds a decodable quote, otherwise the source is called and the
result is written back. Cache failures of any kind never reach the caller;
only source failures and cancellation do. A cancel that lands while the
fetched price is being written back abandons the write, not the lookup.

Concurrent lookups of the same key are not deduplicated: each one that misses
the cache issues its own source call.
"""
from __future__ import annotations

import asyncio
import logging
import time

from ..errors import PriceFetchError, PriceSourceError, QuoteDecodeError
from ..interfaces.cache import Cache
from ..interfaces.metrics import MetricsSink
from ..interfaces.price_source import PriceSource
from ..models import PriceKey, decode_quote, encode_quote, is_valid_quote
from ..observability import NoopMetrics

logger = logging.getLogger(__name__)


class CachedPriceClient:
    """Single-pair price lookups with cache-aside semantics."""

    def __init__(
        self,
        source: PriceSource,
        cache: Cache | None = None,
        metrics: MetricsSink | None = None,
    ) -> None:
        self._source = source
        self._cache = cache
        self._metrics: MetricsSink = metrics if metrics is not None else NoopMetrics()

    async def get_price(self, asset_id: str, quote_currency: str) -> float:
        """Return the price of ``asset_id`` in ``quote_currency``.

        Raises:
            ValueError: if either identifier is empty.
            PriceFetchError: if the price source fails; wraps the cause.
        """
        key = PriceKey(asset_id, quote_currency)

        if self._cache is not None:
            cached = await self._read_cache(key)
            if cached is not None:
                self._metrics.cache_hit()
                return cached
            self._metrics.cache_miss()

        price = await self._fetch(key)

        if self._cache is not None:
            await self._write_cache(key, price)

        return price

    async def _read_cache(self, key: PriceKey) -> float | None:
        try:
            payload = await self._cache.get(key.cache_key)
        except Exception as e:
            logger.debug("Cache read failed for %s: %s", key.cache_key, e)
            return None

        if payload is None:
            return None

        try:
            return decode_quote(payload)
        except QuoteDecodeError as e:
            logger.debug("Ignoring cache entry %s: %s", key.cache_key, e)
            return None

    async def _fetch(self, key: PriceKey) -> float:
        start = time.monotonic()
        success = False
        try:
            price = await self._source.get_price(key.asset_id, key.quote_currency)
            if not is_valid_quote(price):
                raise PriceSourceError(f"source returned invalid price {price!r}")
            success = True
        except Exception as e:
            raise PriceFetchError(key, e) from e
        finally:
            self._metrics.observe_backend_call(time.monotonic() - start, success)
        return float(price)

    async def _write_cache(self, key: PriceKey, price: float) -> None:
        try:
            await self._cache.set(key.cache_key, encode_quote(price))
        except asyncio.CancelledError:
            task = asyncio.current_task()
            if task is not None:
                task.uncancel()
            logger.debug("Cache write for %s abandoned on cancellation", key.cache_key)
        except Exception as e:
            logger.debug("Cache write failed for %s: %s", key.cache_key, e)
