"""Process-wide Redis client shared by the realtime bridges."""

import redis.asyncio as redis
import structlog
from redis.exceptions import RedisError

from chat_sync.core.config import settings
from chat_sync.core.settings import RedisConfig

logger = structlog.get_logger()

redis_client: redis.Redis | None = None  # type: ignore[type-arg]


async def init_redis(config: RedisConfig | None = None) -> redis.Redis:  # type: ignore[type-arg]
    """Open the shared client for ``config`` (``settings.redis`` by default).

    The client is installed only after it answers a ping; an unreachable
    server leaves the previous state untouched.
    """
    global redis_client  # noqa: PLW0603
    config = config or settings.redis
    client = redis.from_url(config.url, decode_responses=True)
    try:
        await client.ping()
    except RedisError:
        await client.aclose()
        raise
    redis_client = client
    logger.info("Redis client connected")
    return client


async def close_redis() -> None:
    global redis_client  # noqa: PLW0603
    client, redis_client = redis_client, None
    if client is not None:
        await client.aclose()
        logger.info("Redis client closed")


def get_redis() -> redis.Redis:  # type: ignore[type-arg]
    if redis_client is None:
        raise RuntimeError("Redis client not initialized; call init_redis() first")
    return redis_client
