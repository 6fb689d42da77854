"""Metrics sink protocol — fire-and-forget observers."""
from typing import Protocol


class MetricsSink(Protocol):
    """Abstract interface for client metrics. Implementations must not raise."""

    def observe_backend_call(self, duration: float, success: bool) -> None: ...

    def cache_hit(self) -> None: ...

    def cache_miss(self) -> None: ...
