"""Short-lived distance cache keyed by the normalized (pickup, dropoff) pair."""
import json
import logging
import re
import threading
import time
from typing import Callable, Dict, Optional, Tuple

from redis.asyncio import Redis

from limo_api.schemas.distance import DistanceResult

logger = logging.getLogger(__name__)

Clock = Callable[[], float]

_WHITESPACE = re.compile(r"\s+")


def normalize_place(value: str) -> str:
    return _WHITESPACE.sub(" ", value).strip().lower()


def route_key(pickup: str, dropoff: str) -> str:
    return f"{normalize_place(pickup)}|{normalize_place(dropoff)}"


class MemoryDistanceCache:
    """Process-local TTL map.

    ``clock`` returns seconds; tests pass a fake to move time forward.
    Expired entries are dropped on read and swept on write at most once per
    TTL period, so the map never holds more than two periods' worth of routes.
    """

    def __init__(self, ttl_seconds: int, clock: Clock = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._store: Dict[str, Tuple[DistanceResult, float]] = {}
        self._lock = threading.Lock()
        self._last_sweep = clock()

    async def get(self, key: str) -> Optional[DistanceResult]:
        with self._lock:
            entry = self._store.get(key)
            if entry is None:
                return None
            value, stored_at = entry
            if self._clock() - stored_at < self.ttl_seconds:
                return value
            del self._store[key]
        return None

    async def set(self, key: str, value: DistanceResult) -> None:
        with self._lock:
            now = self._clock()
            if now - self._last_sweep >= self.ttl_seconds:
                self._sweep(now)
            self._store[key] = (value, now)

    def _sweep(self, now: float):
        # caller holds the lock
        expired = [k for k, (_, stored_at) in self._store.items() if now - stored_at >= self.ttl_seconds]
        for k in expired:
            del self._store[k]
        self._last_sweep = now
        if expired:
            logger.debug(f"Swept {len(expired)} expired distance cache entries")

    def clear(self):
        with self._lock:
            self._store.clear()

    def __len__(self):
        with self._lock:
            return len(self._store)


class RedisDistanceCache:
    """Shares cached distances between worker processes; expiry is left to Redis."""

    def __init__(self, redis: Redis, ttl_seconds: int, prefix: str = "distance:"):
        self.redis = redis
        self.ttl_seconds = ttl_seconds
        self.prefix = prefix

    async def get(self, key: str) -> Optional[DistanceResult]:
        try:
            cached = await self.redis.get(self.prefix + key)
            if not cached:
                return None
            return DistanceResult(**json.loads(cached))
        except Exception as e:
            logger.warning(f"Cache retrieval failed for {key!r}, treating as miss: {e}")
            return None

    async def set(self, key: str, value: DistanceResult) -> None:
        try:
            await self.redis.set(
                self.prefix + key,
                value.model_dump_json(),
                ex=self.ttl_seconds
            )
        except Exception as e:
            logger.warning(f"Cache write failed: {e}")
