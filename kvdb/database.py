"""
Key-value database abstraction.

This module defines the abstract interface for the key-value databases that
back the session store. Keys are opaque strings and values are
JSON-compatible structures; the database owns all durable state.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional


class Database(ABC):
    """
    Abstract base class for key-value database implementations.

    All data methods are async to support non-blocking I/O with external
    storage systems. Implementations must not interpret the values they
    store and must not apply their own expiration.
    """

    @abstractmethod
    async def get(self, key: str) -> Optional[Any]:
        """
        Retrieve the value stored under a key.

        Args:
            key: The key to look up.

        Returns:
            The stored value, or None if the key does not exist.
        """
        pass

    @abstractmethod
    async def set(self, key: str, value: Any) -> None:
        """
        Store a value under a key, replacing any previous value.

        Args:
            key: The key to write.
            value: A JSON-compatible value.
        """
        pass

    @abstractmethod
    async def remove(self, key: str) -> None:
        """
        Remove a key.

        This operation is idempotent - removing a missing key is not an error.

        Args:
            key: The key to remove.
        """
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """
        Check connectivity of the database.

        Returns:
            True if the database is reachable, False otherwise.

        Note:
            This method should not raise exceptions.
        """
        pass

    async def connect(self) -> None:
        """Open any underlying connection. The default does nothing."""

    async def close(self) -> None:
        """Release any underlying connection. The default does nothing."""
