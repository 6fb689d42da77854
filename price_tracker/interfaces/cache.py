"""Cache protocol — best-effort key/value store with its own expiry."""
from typing import Protocol


class Cache(Protocol):
    """Abstract interface for the price cache.

    ``get`` returns ``None`` when the key is absent and raises on any other
    failure, so callers can tell a miss from an outage.
    """

    async def get(self, key: str) -> bytes | str | None: ...

    async def set(self, key: str, payload: bytes) -> None: ...
