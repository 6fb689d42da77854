"""Service modules"""
from .rates import RateService
from .tracker import PriceTracker

__all__ = ["RateService", "PriceTracker"]
