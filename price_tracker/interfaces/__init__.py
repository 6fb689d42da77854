"""Protocol interfaces for the price tracker collaborators."""
from .cache import Cache
from .metrics import MetricsSink
from .price_source import PriceSource

__all__ = ["Cache", "MetricsSink", "PriceSource"]
