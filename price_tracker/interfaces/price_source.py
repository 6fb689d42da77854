"""Price source protocol — remote price feed abstraction."""
from typing import Protocol


class PriceSource(Protocol):
    """Abstract interface for fetching a single asset price."""

    async def get_price(self, asset_id: str, quote_currency: str) -> float: ...
