"""
Factory for the configured key-value database.
"""

import logging
from typing import Any

from kvdb.database import Database
from kvdb.memory import MemoryDatabase
from kvdb.redis_database import RedisDatabase

logger = logging.getLogger(__name__)


def create_database(settings: Any) -> Database:
    """
    Create the database selected by settings.kv_store_type.

    Args:
        settings: Application settings with kv_store_type and redis_url.

    Returns:
        An unconnected Database instance. Call connect() before use.

    Raises:
        ValueError: If the store type is unknown or Redis has no URL.
    """
    store_type = settings.kv_store_type
    if store_type == "memory":
        logger.info("Using in-memory key-value database")
        return MemoryDatabase()
    if store_type == "redis":
        if not settings.redis_url:
            raise ValueError("redis_url is required when kv_store_type is 'redis'")
        logger.info("Using Redis key-value database")
        return RedisDatabase(settings.redis_url)
    raise ValueError(f"Unknown kv_store_type: {store_type!r}")
