import logging
from typing import Optional
from redis.asyncio import Redis
from dispatchdesk.core.config import settings

logger = logging.getLogger(__name__)

redis: Optional[Redis] = None

async def init_redis() -> Redis:
    global redis
    try:
        redis = Redis.from_url(settings.REDIS_URL, decode_responses=False)
        await redis.ping()
        logger.info(f"Connected to Redis at {settings.REDIS_URL}")
        return redis
    except Exception as e:
        logger.error(f"Failed to connect to Redis: {e}")
        raise

async def close_redis():
    global redis
    if redis:
        await redis.aclose()
        redis = None

def set_redis(client: Optional[Redis]) -> None:
    """Swap the shared client (tests use an in-process fake)."""
    global redis
    redis = client

def redis_available() -> bool:
    return redis is not None

def get_redis() -> Redis:
    if redis is None:
        raise RuntimeError("Redis not initialized. Call init_redis() first.")
    return redis
