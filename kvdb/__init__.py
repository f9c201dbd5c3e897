"""
Key-value database module.

This module provides the narrow async key-value interface that the session
layer persists records through, along with an in-process implementation
for development and tests and a Redis-backed implementation for shared
deployments.
"""

from kvdb.database import Database
from kvdb.memory import MemoryDatabase
from kvdb.redis_database import RedisDatabase
from kvdb.factory import create_database

__all__ = ["Database", "MemoryDatabase", "RedisDatabase", "create_database"]
