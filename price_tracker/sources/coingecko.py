"""CoinGecko simple-price source."""
from __future__ import annotations

import asyncio
import logging
import ssl

import aiohttp
import certifi

from ..config import CoinGeckoConfig
from ..errors import PriceSourceError
from ..models import is_valid_quote

logger = logging.getLogger(__name__)

API_KEY_HEADER = "x-cg-demo-api-key"


class CoinGeckoSource:
    """Fetch single prices from the CoinGecko ``/simple/price`` endpoint."""

    def __init__(self, config: CoinGeckoConfig) -> None:
        self.base_url = config.base_url.rstrip("/")
        self.timeout = config.timeout
        self.api_key = config.api_key

    async def get_price(self, asset_id: str, quote_currency: str) -> float:
        """Return the price of ``asset_id`` in ``quote_currency``.

        Raises:
            PriceSourceError: on transport failure, non-200 status, malformed
                body, or a response that does not contain the requested pair.
        """
        url = f"{self.base_url}/api/v3/simple/price"
        params = {"ids": asset_id, "vs_currencies": quote_currency}
        headers = {API_KEY_HEADER: self.api_key} if self.api_key else None

        ssl_context = ssl.create_default_context(cafile=certifi.where())
        connector = aiohttp.TCPConnector(ssl=ssl_context)

        try:
            async with aiohttp.ClientSession(connector=connector) as session:
                async with session.get(
                    url,
                    params=params,
                    headers=headers,
                    timeout=aiohttp.ClientTimeout(total=self.timeout),
                ) as response:
                    if response.status != 200:
                        raise PriceSourceError(
                            f"unexpected status: HTTP {response.status}"
                        )
                    try:
                        data = await response.json(content_type=None)
                    except ValueError as e:
                        raise PriceSourceError(f"decode json: {e}") from e
        except PriceSourceError:
            raise
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise PriceSourceError(f"request failed: {e!r}") from e

        price = _extract_price(data, asset_id, quote_currency)
        logger.debug("CoinGecko %s/%s = %s", asset_id, quote_currency, price)
        return price


def _extract_price(data: object, asset_id: str, quote_currency: str) -> float:
    if not isinstance(data, dict):
        raise PriceSourceError(f"decode json: unexpected payload type {type(data).__name__}")

    prices = data.get(asset_id)
    if not isinstance(prices, dict):
        raise PriceSourceError(f"no id {asset_id!r} in response")
    if quote_currency not in prices:
        raise PriceSourceError(
            f"no vs {quote_currency!r} for id {asset_id!r} in response"
        )

    price = prices[quote_currency]
    if not is_valid_quote(price):
        raise PriceSourceError(
            f"invalid price {price!r} for {asset_id}/{quote_currency}"
        )
    return float(price)
