"""In-process price cache with per-entry expiry.

Entries live in a plain dict guarded by an asyncio lock so the cache can be
shared across coroutines. Expired entries are dropped lazily on read.
"""
from __future__ import annotations

import asyncio
import time


class MemoryCache:
    """Dict-backed cache for single-process deployments and tests."""

    def __init__(self, ttl_seconds: float) -> None:
        self.ttl_seconds = ttl_seconds
        self._entries: dict[str, tuple[bytes, float]] = {}
        self._lock = asyncio.Lock()

    async def get(self, key: str) -> bytes | None:
        async with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            payload, expires_at = entry
            if time.monotonic() >= expires_at:
                del self._entries[key]
                return None
            return payload

    async def set(self, key: str, payload: bytes) -> None:
        async with self._lock:
            self._entries[key] = (payload, time.monotonic() + self.ttl_seconds)

    async def clear(self) -> None:
        async with self._lock:
            self._entries.clear()
