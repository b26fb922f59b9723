import logging
import threading
import time
from typing import Callable, Dict, Tuple

from fastapi import HTTPException, Request
from redis.asyncio import Redis

from limo_api.core.metrics import rate_limit_exceeded

logger = logging.getLogger(__name__)


class RateLimiter:
    """Fixed-window counter per client key, kept in process memory.

    Windows that have ended are swept at most once per window length, so
    the map only holds clients seen in the last two windows.
    """

    def __init__(self, bucket: str, limit: int, window: int, clock: Callable[[], float] = time.monotonic):
        self.bucket = bucket
        self.limit = limit
        self.window = window
        self._clock = clock
        self._counts: Dict[str, Tuple[float, int]] = {}
        self._lock = threading.Lock()
        self._last_sweep = clock()

    def hit(self, key: str) -> bool:
        now = self._clock()
        with self._lock:
            if now - self._last_sweep >= self.window:
                self._sweep(now)
            started, count = self._counts.get(key, (now, 0))
            if now - started >= self.window:
                started, count = now, 0
            if count >= self.limit:
                return False
            self._counts[key] = (started, count + 1)
            return True

    def _sweep(self, now: float):
        # caller holds the lock
        expired = [k for k, (started, _) in self._counts.items() if now - started >= self.window]
        for k in expired:
            del self._counts[k]
        self._last_sweep = now

    def __len__(self):
        with self._lock:
            return len(self._counts)

    async def allowed(self, key: str) -> bool:
        return self.hit(key)

    async def check(self, key: str):
        if not await self.allowed(key):
            rate_limit_exceeded.labels(bucket=self.bucket).inc()
            raise HTTPException(status_code=429, detail="Too many requests")


class RedisRateLimiter(RateLimiter):
    """Counts in Redis so every worker shares one window and keys expire on their own.

    Falls back to the in-process counter while Redis is unreachable.
    """

    def __init__(self, redis: Redis, bucket: str, limit: int, window: int, clock: Callable[[], float] = time.monotonic):
        super().__init__(bucket, limit, window, clock)
        self.redis = redis

    async def allowed(self, key: str) -> bool:
        redis_key = f"rl:{self.bucket}:{key}"
        try:
            current = await self.redis.get(redis_key)
            if current is None:
                if self.limit <= 0:
                    return False
                await self.redis.set(redis_key, "1", ex=self.window)
                return True
            if int(current) >= self.limit:
                return False
            await self.redis.incr(redis_key)
            return True
        except Exception as e:
            logger.warning(f"Rate limit check via Redis failed, counting locally: {e}")
            return self.hit(key)


def client_key(request: Request) -> str:
    if request.app.state.settings.TRUST_PROXY:
        forwarded = request.headers.get("x-forwarded-for")
        if forwarded:
            return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


def rate_limit(bucket: str):
    async def check_rate_limit(request: Request):
        await request.app.state.rate_limiters[bucket].check(client_key(request))
    return check_rate_limit
