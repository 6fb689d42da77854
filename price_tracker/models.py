"""Data models — all frozen (immutable)."""
from __future__ import annotations

import json
import math
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Union

from .errors import QuoteDecodeError

CACHE_KEY_PREFIX = "price"

# asset id -> quote currency
BatchRequest = Mapping[str, str]
# asset id -> quote currency -> price, successful pairs only
BatchResult = dict[str, dict[str, float]]

PairsInput = Union[BatchRequest, Iterable[Union["PriceKey", tuple[str, str]]]]


@dataclass(frozen=True)
class PriceKey:
    """Identifies one price lookup: an asset priced in a quote currency."""

    asset_id: str
    quote_currency: str

    def __post_init__(self) -> None:
        if not isinstance(self.asset_id, str) or not self.asset_id:
            raise ValueError("asset_id must be a non-empty string")
        if not isinstance(self.quote_currency, str) or not self.quote_currency:
            raise ValueError("quote_currency must be a non-empty string")

    @property
    def cache_key(self) -> str:
        return f"{CACHE_KEY_PREFIX}:{self.asset_id}:{self.quote_currency}"

    def __str__(self) -> str:
        return f"{self.asset_id}->{self.quote_currency}"


@dataclass(frozen=True)
class BatchOutcome:
    """Result of a batched lookup: whatever succeeded plus the first error."""

    prices: BatchResult = field(default_factory=dict)
    error: Exception | None = None
    failed: tuple[PriceKey, ...] = ()
    cancelled: tuple[PriceKey, ...] = ()

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def is_partial(self) -> bool:
        return self.error is not None and bool(self.prices)

    @property
    def is_total_failure(self) -> bool:
        return self.error is not None and not self.prices


def is_valid_quote(value: object) -> bool:
    """True for finite, non-negative numbers (booleans excluded)."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value) and value >= 0


def encode_quote(value: float) -> bytes:
    """Serialize a quote for the cache as a JSON number."""
    return json.dumps(float(value)).encode()


def decode_quote(payload: bytes | str) -> float:
    """Parse a cached payload back into a quote."""
    try:
        value = json.loads(payload)
    except (TypeError, ValueError) as e:
        raise QuoteDecodeError(f"undecodable cache payload: {e}") from e
    if not is_valid_quote(value):
        raise QuoteDecodeError(f"cache payload is not a valid quote: {value!r}")
    return float(value)


def normalize_pairs(pairs: PairsInput) -> list[PriceKey]:
    """Turn a batch request into distinct keys, preserving first-seen order."""
    if isinstance(pairs, Mapping):
        items: Iterable = pairs.items()
    else:
        items = pairs

    keys: list[PriceKey] = []
    seen: set[PriceKey] = set()
    for item in items:
        key = item if isinstance(item, PriceKey) else PriceKey(*item)
        if key not in seen:
            seen.add(key)
            keys.append(key)
    return keys
