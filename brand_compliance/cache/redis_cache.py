"""
Redis Cache Implementation

Shared result cache backed by Redis:
- JSON serialization (values must be JSON-compatible dicts)
- Namespace isolation
- Circuit breaker that fails open to cache misses
"""

import json
import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Optional

from redis import Redis
from redis.exceptions import RedisError

from .base import CacheStats

logger = logging.getLogger(__name__)


@dataclass
class CircuitBreakerState:
    """Circuit breaker state tracking."""
    failures: int = 0
    last_failure: float = 0.0
    is_open: bool = False
    opened_at: float = 0.0


class CircuitBreaker:
    """
    Stops calling Redis after repeated failures.

    Once open, requests fail fast until the timeout has passed; the next
    request is then let through and either closes the circuit or reopens it.
    """

    def __init__(self, threshold: int = 5, timeout: float = 60.0):
        self.threshold = threshold
        self.timeout = timeout
        self.state = CircuitBreakerState()
        self._lock = threading.Lock()

    def is_available(self) -> bool:
        with self._lock:
            if not self.state.is_open:
                return True

            if time.monotonic() - self.state.opened_at >= self.timeout:
                # Half-open: allow a trial request
                self.state.is_open = False
                self.state.failures = self.threshold - 1
                logger.info("Circuit breaker half-open, allowing a trial request")
                return True

            return False

    def record_success(self) -> None:
        with self._lock:
            self.state.failures = 0
            self.state.is_open = False

    def record_failure(self) -> None:
        with self._lock:
            self.state.failures += 1
            self.state.last_failure = time.monotonic()

            if self.state.failures >= self.threshold and not self.state.is_open:
                self.state.is_open = True
                self.state.opened_at = time.monotonic()
                logger.warning(
                    f"Circuit breaker opened after {self.state.failures} failures. "
                    f"Will retry in {self.timeout} seconds."
                )


class RedisCache:
    """
    Redis-backed CacheBackend.

    Errors never propagate: a failed get is a miss, a failed put is dropped.
    """

    def __init__(
        self,
        url: Optional[str] = None,
        namespace: str = "brand_compliance",
        client: Optional[Redis] = None,
        breaker_threshold: int = 5,
        breaker_timeout: float = 60.0,
    ):
        if client is None and not url:
            raise ValueError("RedisCache requires a url or a client")
        self._redis = client or Redis.from_url(url, socket_timeout=2.0, socket_connect_timeout=2.0)
        self.namespace = namespace
        self._breaker = CircuitBreaker(threshold=breaker_threshold, timeout=breaker_timeout)
        self.stats = CacheStats()

    def _make_key(self, key: str) -> str:
        """Create namespaced cache key."""
        return f"{self.namespace}:{key}"

    def get(self, key: str) -> Optional[Any]:
        if not self._breaker.is_available():
            self.stats.misses += 1
            return None

        try:
            data = self._redis.get(self._make_key(key))
            self._breaker.record_success()
        except RedisError as e:
            self._breaker.record_failure()
            self.stats.errors += 1
            logger.warning(f"Redis unavailable, treating {key} as a miss: {e}")
            return None

        if data is None:
            self.stats.misses += 1
            return None

        try:
            value = json.loads(data)
        except (TypeError, ValueError) as e:
            self.stats.errors += 1
            logger.error(f"Cache decode error for {key}: {e}")
            return None

        self.stats.hits += 1
        return value

    def put(self, key: str, value: Any, ttl: Optional[float] = None) -> None:
        if not self._breaker.is_available():
            return

        try:
            payload = json.dumps(value, default=str)
        except (TypeError, ValueError) as e:
            self.stats.errors += 1
            logger.error(f"Cache encode error for {key}: {e}")
            return

        try:
            if ttl:
                self._redis.setex(self._make_key(key), int(max(ttl, 1)), payload)
            else:
                self._redis.set(self._make_key(key), payload)
            self._breaker.record_success()
        except RedisError as e:
            self._breaker.record_failure()
            self.stats.errors += 1
            logger.warning(f"Redis unavailable, cache put for {key} dropped: {e}")

    def delete(self, key: str) -> None:
        try:
            self._redis.delete(self._make_key(key))
        except RedisError as e:
            self.stats.errors += 1
            logger.warning(f"Cache delete error for {key}: {e}")

    def clear(self) -> None:
        """Delete every key in this cache's namespace."""
        try:
            keys = list(self._redis.scan_iter(match=f"{self.namespace}:*", count=100))
            if keys:
                deleted = self._redis.delete(*keys)
                logger.info(f"Deleted {deleted} keys in namespace {self.namespace}")
        except RedisError as e:
            self.stats.errors += 1
            logger.warning(f"Cache clear error for {self.namespace}: {e}")
