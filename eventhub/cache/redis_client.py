"""
Redis client with connection pooling and JSON serialization.

Holds the token revocation list. Redis being unreachable is logged and
treated as a cache miss so requests keep working.
"""
import json
from typing import Optional, Any
import redis
from redis.connection import ConnectionPool
from eventhub.core.config import settings
from eventhub.core.logging import logger


class RedisCache:
    """Redis cache client with connection pooling."""

    def __init__(self, url: Optional[str] = None):
        self._url = url or settings.REDIS_URL
        self._pool: Optional[ConnectionPool] = None
        self._client: Optional[redis.Redis] = None

    def _get_client(self) -> redis.Redis:
        if self._client is None:
            self._pool = redis.ConnectionPool.from_url(
                self._url,
                decode_responses=True,
                max_connections=20,
                socket_connect_timeout=2,
            )
            self._client = redis.Redis(connection_pool=self._pool)
            logger.info("Redis connection pool created")
        return self._client

    async def set(self, key: str, value: Any, expire: int = 300) -> bool:
        """
        Store a JSON-serialized value with a TTL in seconds.

        Returns:
            True if successful, False otherwise
        """
        try:
            self._get_client().setex(key, expire, json.dumps(value, default=str))
            return True
        except redis.RedisError as e:
            logger.error(f"Redis SET error for key {key}: {e}")
            return False

    async def exists(self, key: str) -> bool:
        try:
            return self._get_client().exists(key) > 0
        except redis.RedisError as e:
            logger.error(f"Redis EXISTS error for key {key}: {e}")
            return False

    def close(self):
        if self._client:
            self._client.close()
            logger.info("Redis connection pool closed")


cache = RedisCache()
