"""Metrics implementations."""
from .metrics import NoopMetrics, PrometheusMetrics

__all__ = ["NoopMetrics", "PrometheusMetrics"]
