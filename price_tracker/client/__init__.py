"""Price clients."""
from .cached_client import CachedPriceClient

__all__ = ["CachedPriceClient"]
