"""
Caching

Advisory caches for compiled rule sets, feature bundles and results.
"""

from .base import CacheBackend, CacheStats, MemoryCache
from .redis_cache import CircuitBreaker, RedisCache

__all__ = [
    "CacheBackend",
    "CacheStats",
    "MemoryCache",
    "CircuitBreaker",
    "RedisCache",
]
