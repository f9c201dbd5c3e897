"""
Redis-based key-value database implementation.

This module provides a Redis-backed implementation of the Database
interface so that several service instances can share session records.
Values are stored as JSON strings under the caller's key unchanged.
"""

import json
from datetime import date, datetime
from typing import Any, Optional

from kvdb.database import Database


def _json_default(value: Any) -> Any:
    """Serialize values the json module does not handle natively."""
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


class RedisDatabase(Database):
    """
    Redis-backed database implementation.

    No TTL is set on stored keys; expiration of session records is
    handled by the session layer.

    Attributes:
        redis_url: Redis connection URL (e.g., "redis://localhost:6379")
        client: Redis async client instance (initialized via connect())
    """

    def __init__(self, redis_url: str):
        """
        Initialize the Redis database.

        Args:
            redis_url: Redis connection URL (e.g., "redis://localhost:6379/0")
        """
        self.redis_url = redis_url
        self.client = None

    async def connect(self) -> None:
        """
        Establish connection to Redis.

        This method must be called before using any other methods.

        Raises:
            ConnectionError: If unable to connect to Redis.
        """
        import redis.asyncio as redis
        self.client = redis.from_url(self.redis_url, decode_responses=True)

    async def close(self) -> None:
        """
        Close the Redis connection.

        Should be called during application shutdown to cleanly
        release resources.
        """
        if self.client:
            await self.client.aclose()
            self.client = None

    def _require_client(self):
        if not self.client:
            raise RuntimeError("Redis client not connected. Call connect() first.")
        return self.client

    async def get(self, key: str) -> Optional[Any]:
        """
        Retrieve and decode the value stored under a key.

        Raises:
            RuntimeError: If the Redis client is not connected.
        """
        client = self._require_client()
        data = await client.get(key)

        if data is None:
            return None

        return json.loads(data)

    async def set(self, key: str, value: Any) -> None:
        """
        Encode and store a value under a key.

        Raises:
            RuntimeError: If the Redis client is not connected.
            TypeError: If the value is not JSON serializable.
        """
        client = self._require_client()
        await client.set(key, json.dumps(value, default=_json_default))

    async def remove(self, key: str) -> None:
        client = self._require_client()
        await client.delete(key)

    async def health_check(self) -> bool:
        """
        Check connectivity of the Redis server.

        Returns:
            True if Redis answers PING, False otherwise.
        """
        if not self.client:
            return False

        try:
            result = await self.client.ping()
            return result is True
        except Exception:
            return False
