"""
Redis client with connection pooling, used for the token revocation list.
"""
from typing import Optional
import redis
from redis.connection import ConnectionPool
from app.core.config import settings
from app.core.logging import logger


class RedisCache:
    """Redis client with connection pooling. Errors are logged and treated as cache misses."""

    def __init__(self):
        self._pool: Optional[ConnectionPool] = None
        self._client: Optional[redis.Redis] = None

    def _get_client(self) -> redis.Redis:
        """Get or create Redis client with connection pooling."""
        if self._client is None:
            self._pool = redis.ConnectionPool.from_url(
                settings.REDIS_URL,
                decode_responses=True,
                max_connections=20
            )
            self._client = redis.Redis(connection_pool=self._pool)
            logger.info("Redis connection pool created")
        return self._client

    async def exists(self, key: str) -> bool:
        try:
            return self._get_client().exists(key) > 0
        except redis.RedisError as e:
            logger.error(f"Redis EXISTS error for key {key}: {e}")
            return False

    def close(self):
        """Close Redis connection pool."""
        if self._client:
            self._client.close()
            self._client = None
            logger.info("Redis connection pool closed")


# Create a single instance to be imported throughout the app
cache = RedisCache()
