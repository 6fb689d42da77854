"""Price source implementations."""
from .coingecko import CoinGeckoSource

__all__ = ["CoinGeckoSource"]
