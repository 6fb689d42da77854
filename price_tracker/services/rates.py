"""Concurrent batch lookups over a price client."""
from __future__ import annotations

import asyncio
import logging
from typing import Protocol

from ..errors import BatchTimeoutError
from ..models import BatchOutcome, BatchResult, PairsInput, PriceKey, normalize_pairs

logger = logging.getLogger(__name__)


class PriceClient(Protocol):
    async def get_price(self, asset_id: str, quote_currency: str) -> float: ...


class RateService:
    """Fan a batch of pairs out to one task each and merge the results.

    The first failing pair cancels its still-running siblings; the call then
    waits for every task to settle and returns whatever succeeded along with
    that first error. A sibling sees the cancellation at its next await, so
    a pair whose lookup already returned keeps its price.
    """

    def __init__(self, client: PriceClient) -> None:
        self._client = client

    async def get_many(
        self, pairs: PairsInput, timeout: float | None = None
    ) -> BatchOutcome:
        """Look up every pair concurrently.

        Args:
            pairs: ``{asset_id: quote_currency}`` or an iterable of
                ``(asset_id, quote_currency)`` tuples / ``PriceKey``s.
                Never mutated.
            timeout: Optional deadline in seconds for the whole batch.
                Pairs still running when it expires are cancelled and the
                outcome carries a ``BatchTimeoutError``.
        """
        keys = normalize_pairs(pairs)
        results: BatchResult = {}
        if not keys:
            return BatchOutcome(prices=results)

        lock = asyncio.Lock()

        async def fetch_one(key: PriceKey) -> None:
            price = await self._client.get_price(key.asset_id, key.quote_currency)
            async with lock:
                results.setdefault(key.asset_id, {})[key.quote_currency] = price

        tasks: dict[asyncio.Task, PriceKey] = {
            asyncio.create_task(fetch_one(key), name=f"price:{key}"): key
            for key in keys
        }

        try:
            done, pending = await asyncio.wait(
                tasks, timeout=timeout, return_when=asyncio.FIRST_EXCEPTION
            )
        except asyncio.CancelledError:
            await _cancel_and_wait(tasks)
            raise

        timed_out = bool(pending) and not any(
            not t.cancelled() and t.exception() is not None for t in done
        )
        if pending:
            await _cancel_and_wait(pending)

        failed: list[PriceKey] = []
        cancelled: list[PriceKey] = []
        error: BaseException | None = None
        late_error: BaseException | None = None
        for task, key in tasks.items():
            if task.cancelled():
                cancelled.append(key)
                continue
            exc = task.exception()
            if exc is None:
                continue
            failed.append(key)
            if task in done:
                error = error or exc
            else:
                # failed after the cancel request but before observing it
                late_error = late_error or exc

        error = error or late_error
        if timed_out and error is None:
            error = BatchTimeoutError(timeout, tuple(cancelled))

        if error is not None:
            logger.warning(
                "Batch of %d pairs: %d ok, %d failed, %d cancelled: %s",
                len(keys),
                len(keys) - len(failed) - len(cancelled),
                len(failed),
                len(cancelled),
                error,
            )

        return BatchOutcome(
            prices=results,
            error=error,
            failed=tuple(failed),
            cancelled=tuple(cancelled),
        )


async def _cancel_and_wait(tasks) -> None:
    for task in tasks:
        task.cancel()
    await asyncio.gather(*tasks, return_exceptions=True)
