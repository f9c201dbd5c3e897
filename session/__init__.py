"""
Session management module.

This module provides the session store capability interface consumed by
session middleware, and SessionExpiryStore, which keeps session records in
a key-value database and purges them when they expire.
"""

from session.store import SessionStore
from session.expiry_store import SessionExpiryStore, ExpirationEntry, KEY_PREFIX
from session.callbacks import CallbackSessionStore
from session.expiration import parse_expires, record_expires_ms, now_ms, format_expires
from session.factory import create_session_store

__all__ = [
    "SessionStore",
    "SessionExpiryStore",
    "ExpirationEntry",
    "KEY_PREFIX",
    "CallbackSessionStore",
    "parse_expires",
    "record_expires_ms",
    "now_ms",
    "format_expires",
    "create_session_store",
]
