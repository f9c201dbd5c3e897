"""
Factory for the configured session store.
"""

import logging
from typing import Any

from kvdb.database import Database
from session.expiry_store import SessionExpiryStore

logger = logging.getLogger(__name__)


def create_session_store(settings: Any, database: Database) -> SessionExpiryStore:
    """
    Create the session store used by the session middleware.

    Args:
        settings: Application settings providing session_refresh_ms.
        database: The key-value database holding session records.

    Returns:
        A SessionExpiryStore bound to the database.
    """
    refresh_ms = settings.session_refresh_ms
    logger.info(
        "Session store configured",
        extra={"extra_data": {"refresh_ms": refresh_ms}},
    )
    return SessionExpiryStore(database, refresh_ms=refresh_ms)
