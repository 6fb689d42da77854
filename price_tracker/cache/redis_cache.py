"""Redis-backed price cache."""
from __future__ import annotations

import logging

from redis.asyncio import Redis
from redis.exceptions import RedisError

from ..errors import CacheError

logger = logging.getLogger(__name__)


class RedisCache:
    """Store serialized quotes in Redis with a fixed TTL."""

    def __init__(self, client: Redis, ttl_seconds: int) -> None:
        self._client = client
        self.ttl_seconds = ttl_seconds

    @classmethod
    def from_url(cls, url: str, ttl_seconds: int) -> "RedisCache":
        return cls(Redis.from_url(url), ttl_seconds)

    async def ping(self) -> bool:
        """Check connectivity once. Never raises."""
        try:
            await self._client.ping()
        except (RedisError, OSError) as e:
            logger.warning("Redis not available: %s", e)
            return False
        logger.info("Connected to Redis")
        return True

    async def get(self, key: str) -> bytes | None:
        try:
            return await self._client.get(key)
        except RedisError as e:
            logger.warning("Redis get failed for %s: %s", key, e)
            raise CacheError(f"redis get {key}: {e}") from e

    async def set(self, key: str, payload: bytes) -> None:
        try:
            await self._client.set(key, payload, ex=self.ttl_seconds)
        except RedisError as e:
            logger.warning("Redis set failed for %s: %s", key, e)
            raise CacheError(f"redis set {key}: {e}") from e

    async def close(self) -> None:
        await self._client.aclose()
