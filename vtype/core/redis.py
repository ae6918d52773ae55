"""
Redis client configuration.

This module builds, checks and closes the key-value store client for the
application. One client is created at startup and kept on
``app.state.redis`` for the lifetime of the process.
"""

from typing import Union
import redis.asyncio as redis

from vtype.core.config import Settings, settings as default_settings
from vtype.core.logging import logger
from vtype.core.redis_mock import MockRedis

RedisClient = Union[redis.Redis, MockRedis]


def create_redis_client(settings: Settings = default_settings) -> RedisClient:
    """
    Build the key-value store client.
    Uses MockRedis in development/testing environments.
    """
    if settings.uses_mock_store:
        logger.info(f"Using mock Redis implementation in {settings.ENVIRONMENT} environment")
        return MockRedis()
    return redis.Redis.from_url(
        settings.REDIS_URL,
        encoding="utf-8",
        decode_responses=True
    )


async def connect_redis(client: RedisClient) -> bool:
    """
    Verify the store is reachable.

    Returns False instead of raising so the service can start in degraded
    mode; token operations will then fail with StoreUnavailable per call.
    """
    try:
        await client.ping()
        logger.info("Connected to Redis successfully")
        return True
    except (redis.ConnectionError, redis.RedisError, OSError) as e:
        logger.warning(
            "Redis connection failed, continuing in degraded mode",
            extra={"error": str(e), "error_type": type(e).__name__}
        )
        return False


async def close_redis(client: RedisClient) -> None:
    try:
        await client.aclose()
        logger.info("Redis connection closed")
    except redis.RedisError as e:
        logger.warning("Error closing Redis connection", extra={"error": str(e)})

