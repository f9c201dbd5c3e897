"""
Session store abstraction consumed by session middleware.

This module defines the capability interface that server-side session
middleware relies on: fetching, writing, destroying and touching session
records identified by an opaque session ID.
"""

from abc import ABC, abstractmethod
from typing import Optional, Any


class SessionStore(ABC):
    """
    Abstract base class for session storage implementations.

    A session record is a dictionary owned by the calling framework. It
    contains at minimum a "cookie" sub-dictionary whose optional "expires"
    value determines when the session stops being valid.

    All methods are async to support non-blocking I/O operations with
    external storage systems.
    """

    @abstractmethod
    async def get(self, session_id: str) -> Optional[dict[str, Any]]:
        """
        Retrieve a session record by session ID.

        Args:
            session_id: Unique identifier for the session.

        Returns:
            The session record if found and not expired, None otherwise.
        """
        pass

    @abstractmethod
    async def set(self, session_id: str, record: dict[str, Any]) -> None:
        """
        Store a session record unconditionally.

        Args:
            session_id: Unique identifier for the session.
            record: The session record to persist.
        """
        pass

    @abstractmethod
    async def destroy(self, session_id: str) -> None:
        """
        Delete a session record by session ID.

        This operation should be idempotent - destroying a non-existent
        session should not raise an error.

        Args:
            session_id: Unique identifier for the session to delete.
        """
        pass

    @abstractmethod
    async def touch(self, session_id: str, record: dict[str, Any]) -> None:
        """
        Refresh a session's expiration without requiring a full rewrite.

        Used by rolling-expiration middleware on requests that did not
        change the session data. Implementations may skip the write.

        Args:
            session_id: Unique identifier for the session.
            record: The session record carrying the new expiration.
        """
        pass
