"""
Session store with proactive expiration cleanup.

This module provides SessionExpiryStore, which persists session records in
a key-value database and keeps an in-process index of per-session timers so
that expired records are purged without a background sweep.

The index is best-effort: it is not persisted, and losing it on restart
only means previously scheduled sessions are cleaned up the next time they
are read or written.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Optional

from kvdb.database import Database
from session.expiration import now_ms, record_expires_ms
from session.store import SessionStore

logger = logging.getLogger(__name__)

# Namespace for session records in the shared key-value database
KEY_PREFIX = "sessionstorage:"


@dataclass
class ExpirationEntry:
    """
    Scheduled cleanup for a single session.

    Attributes:
        expires_at_ms: Expiration time last seen for the session, in
            milliseconds since the epoch.
        timer: Handle of the pending timer that re-validates the session.
    """
    expires_at_ms: int
    timer: asyncio.TimerHandle


class SessionExpiryStore(SessionStore):
    """
    Key-value backed session store that schedules expiration cleanup.

    Every record read or written with a future cookie.expires gets a timer.
    When the timer fires the record is read again through get() rather than
    deleted outright, so that a lifetime extended by another instance
    sharing the same database is honored.

    touch() only writes when the new expiration is at least refresh_ms past
    the expiration last persisted by this instance, which bounds the write
    rate caused by rolling sessions to one write per refresh interval.

    Example:
        store = SessionExpiryStore(MemoryDatabase(), refresh_ms=86_400_000)
        await store.set("abc", {"cookie": {"expires": "2030-01-01T00:00:00Z"}})
        record = await store.get("abc")
    """

    def __init__(self, database: Database, refresh_ms: Optional[int] = None):
        """
        Initialize the store.

        Args:
            database: Key-value database holding the session records.
            refresh_ms: Minimum gap in milliseconds between the persisted
                expiration and a touched expiration before touch() writes.
                None makes touch() a no-op.

        Raises:
            ValueError: If refresh_ms is negative.
        """
        if refresh_ms is not None and refresh_ms < 0:
            raise ValueError("refresh_ms must be non-negative or None")
        self._database = database
        self._refresh_ms = refresh_ms
        self._expirations: dict[str, ExpirationEntry] = {}
        self._revalidations: set[asyncio.Task] = set()
        self._closed = False

    @property
    def refresh_ms(self) -> Optional[int]:
        return self._refresh_ms

    def scheduled_expiration(self, session_id: str) -> Optional[int]:
        """Return the scheduled expiration for a session, if any."""
        entry = self._expirations.get(session_id)
        return entry.expires_at_ms if entry else None

    def shutdown(self) -> None:
        """
        Cancel every scheduled cleanup timer and in-flight re-validation.

        Call during graceful shutdown so that no timer fires against a
        database that is being closed. Once shut down, the store no longer
        schedules cleanup; get/set/destroy/touch still reach the database.
        """
        self._closed = True
        for entry in self._expirations.values():
            entry.timer.cancel()
        for task in self._revalidations:
            task.cancel()
        logger.debug(
            "Cancelled %d session expiration timers and %d re-validations",
            len(self._expirations),
            len(self._revalidations),
        )
        self._expirations.clear()
        self._revalidations.clear()

    @staticmethod
    def _key(session_id: str) -> str:
        return f"{KEY_PREFIX}{session_id}"

    def _cancel_cleanup(self, session_id: str) -> None:
        entry = self._expirations.pop(session_id, None)
        if entry is not None:
            entry.timer.cancel()

    def _schedule_cleanup(self, session_id: str, record: dict[str, Any]) -> None:
        self._cancel_cleanup(session_id)
        expires = record_expires_ms(record)
        if expires is None or self._closed:
            return
        delay = max(expires - now_ms(), 0) / 1000
        timer = asyncio.get_running_loop().call_later(
            delay, self._expiration_fired, session_id
        )
        self._expirations[session_id] = ExpirationEntry(expires, timer)

    def _expiration_fired(self, session_id: str) -> None:
        if self._closed:
            return
        task = asyncio.get_running_loop().create_task(self.get(session_id))
        self._revalidations.add(task)
        task.add_done_callback(self._revalidation_done)

    def _revalidation_done(self, task: asyncio.Task) -> None:
        """Log failures from timer-triggered re-validation."""
        self._revalidations.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Session expiration cleanup failed: %s", exc, exc_info=exc)

    async def get(self, session_id: str) -> Optional[dict[str, Any]]:
        """
        Retrieve a session record, purging it if it has expired.

        Args:
            session_id: Unique identifier for the session.

        Returns:
            The stored record, or None if it is missing or expired.
        """
        logger.debug("GET %s", session_id)
        record = await self._database.get(self._key(session_id))
        if record is None:
            self._cancel_cleanup(session_id)
            return None

        expires = record_expires_ms(record)
        if expires is not None and now_ms() >= expires:
            logger.debug("Session %s expired, removing", session_id)
            await self.destroy(session_id)
            return None

        self._schedule_cleanup(session_id, record)
        return record

    async def _write(self, session_id: str, record: dict[str, Any]) -> None:
        self._schedule_cleanup(session_id, record)
        try:
            await self._database.set(self._key(session_id), record)
        except Exception:
            # The index must only hold expirations that were persisted
            self._cancel_cleanup(session_id)
            raise

    async def set(self, session_id: str, record: dict[str, Any]) -> None:
        logger.debug("SET %s", session_id)
        await self._write(session_id, record)

    async def destroy(self, session_id: str) -> None:
        logger.debug("DESTROY %s", session_id)
        self._cancel_cleanup(session_id)
        await self._database.remove(self._key(session_id))

    async def touch(self, session_id: str, record: dict[str, Any]) -> None:
        """
        Extend a session's lifetime, skipping writes inside the refresh window.

        Args:
            session_id: Unique identifier for the session.
            record: The session record carrying the new cookie.expires.
        """
        logger.debug("TOUCH %s", session_id)
        expires = record_expires_ms(record)
        if expires is None or self._refresh_ms is None:
            return
        entry = self._expirations.get(session_id)
        if entry is not None and expires < entry.expires_at_ms + self._refresh_ms:
            logger.debug("Session %s touch within refresh window, not written", session_id)
            return
        await self._write(session_id, record)
