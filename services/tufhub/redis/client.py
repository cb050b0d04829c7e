"""
Redis client management for the tufhub API server.

Redis backs the key store when ``key_storage.backend`` is ``redis``; with
any other backend no connection is opened. Follows the same lifecycle
pattern as db/session.py.
"""

import redis.asyncio as aioredis

from tufhub.config import KeyStorageBackend, settings
from tufhub.logging_config import get_logger

logger = get_logger(__name__)

# Module-level client reference, initialized in lifespan
_redis: aioredis.Redis | None = None


def redis_required() -> bool:
    return settings.key_storage.backend is KeyStorageBackend.REDIS


async def init_redis() -> None:
    """Initialize Redis connection pool if a component needs it."""
    global _redis  # noqa: PLW0603
    if not redis_required():
        logger.debug("Redis not required by configured backends, skipping")
        return

    logger.info("Initializing Redis connection")
    _redis = aioredis.from_url(
        str(settings.redis_url),
        decode_responses=True,
    )
    # Test connection
    await _redis.ping()
    logger.info("Redis connection established")


async def close_redis() -> None:
    """Close Redis connection pool."""
    global _redis  # noqa: PLW0603
    if _redis is not None:
        logger.info("Closing Redis connection pool")
        await _redis.aclose()
        _redis = None


def get_redis_client() -> aioredis.Redis:
    """Return the Redis client. Raises if not initialized."""
    if _redis is None:
        raise RuntimeError("Redis client not initialized (call init_redis() first)")
    return _redis


async def get_redis_health() -> bool | None:
    """Check Redis health for the readiness endpoint. None when Redis is not in use."""
    if not redis_required():
        return None
    try:
        if _redis is None:
            return False
        await _redis.ping()
        return True
    except Exception as e:
        logger.error("Redis health check failed", error=str(e))
        return False
