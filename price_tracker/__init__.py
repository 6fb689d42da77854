"""Cache-aside crypto price tracker."""
from .client import CachedPriceClient
from .models import BatchOutcome, PriceKey
from .services import PriceTracker, RateService

__all__ = [
    "BatchOutcome",
    "CachedPriceClient",
    "PriceKey",
    "PriceTracker",
    "RateService",
]
