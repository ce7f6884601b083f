"""Redis client used as a key-value backend."""

import logging
from typing import Any, Optional

import redis.asyncio as redis

from aimrank.config import settings

logger = logging.getLogger(__name__)


class RedisClient:
    """Async Redis client wrapper; reports unavailability instead of raising."""

    def __init__(
        self,
        host: Optional[str] = None,
        port: Optional[int] = None,
        db: Optional[int] = None,
        password: Optional[str] = None,
    ):
        self.host = host or settings.redis_host
        self.port = port or settings.redis_port
        self.db = settings.redis_db if db is None else db
        self.password = settings.redis_password if password is None else password
        self._client: Optional[Any] = None
        self._available = False

    async def connect(self):
        """Connect to the Redis server."""
        try:
            self._client = redis.Redis(
                host=self.host,
                port=self.port,
                db=self.db,
                password=self.password or None,
                decode_responses=True,
                socket_connect_timeout=5,
                socket_timeout=5,
            )
            # Test connection
            await self._client.ping()
            self._available = True
            logger.info(f"Connected to Redis at {self.host}:{self.port}")
        except Exception as e:
            logger.warning(f"Failed to connect to Redis: {e}. Using in-memory fallback")
            self._client = None
            self._available = False

    async def close(self):
        """Close the Redis connection."""
        if self._client:
            await self._client.aclose()
            logger.info("Redis connection closed")
        self._client = None
        self._available = False

    @property
    def is_available(self) -> bool:
        """Check if Redis is available."""
        return self._available

    async def get(self, key: str) -> Optional[str]:
        """Get value by key."""
        if not self._available:
            return None
        try:
            return await self._client.get(key)
        except Exception as e:
            logger.error(f"Redis GET error: {e}")
            return None

    async def set(self, key: str, value: str) -> bool:
        """
        Set key-value pair.

        Args:
            key: Key name
            value: Value to store

        Returns:
            True if successful
        """
        if not self._available:
            return False
        try:
            await self._client.set(key, value)
            return True
        except Exception as e:
            logger.error(f"Redis SET error: {e}")
            return False

    async def delete(self, key: str) -> bool:
        """Delete key."""
        if not self._available:
            return False
        try:
            await self._client.delete(key)
            return True
        except Exception as e:
            logger.error(f"Redis DELETE error: {e}")
            return False


# Global Redis client instance
redis_client = RedisClient()
