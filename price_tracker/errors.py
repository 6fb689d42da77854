"""Exception hierarchy for price lookups."""
from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .models import PriceKey


class PriceTrackerError(Exception):
    """Base class for all price tracker errors."""


class PriceSourceError(PriceTrackerError):
    """The remote price source could not produce a price."""


class PriceFetchError(PriceTrackerError):
    """A single price lookup failed.

    Carries the requested key; the underlying failure is kept as ``cause``
    and as ``__cause__`` when raised with ``from``.
    """

    def __init__(self, key: PriceKey, cause: BaseException) -> None:
        super().__init__(f"{key}: {cause}")
        self.key = key
        self.cause = cause


class CacheError(PriceTrackerError):
    """Operational cache failure (not a plain miss)."""


class QuoteDecodeError(PriceTrackerError):
    """A cached payload is not a valid price quote."""


class BatchTimeoutError(PriceTrackerError, TimeoutError):
    """A batch deadline expired before every pair finished."""

    def __init__(self, timeout: float, pending: tuple[PriceKey, ...]) -> None:
        names = ", ".join(str(k) for k in pending)
        super().__init__(f"batch deadline of {timeout}s exceeded; pending: {names}")
        self.timeout = timeout
        self.pending = pending
