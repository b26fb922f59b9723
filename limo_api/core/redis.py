import logging
from typing import Optional
from redis.asyncio import Redis

logger = logging.getLogger(__name__)


def create_redis(url: Optional[str]) -> Optional[Redis]:
    if not url:
        return None
    return Redis.from_url(url, decode_responses=False)


async def init_redis(redis: Redis) -> Redis:
    try:
        await redis.ping()
        logger.info("Connected to Redis")
        return redis
    except Exception as e:
        logger.error(f"Failed to connect to Redis: {e}")
        raise


async def close_redis(redis: Optional[Redis]):
    if redis:
        await redis.aclose()
