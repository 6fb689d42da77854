"""Cache backends."""
from .memory import MemoryCache
from .redis_cache import RedisCache

__all__ = ["MemoryCache", "RedisCache"]
