"""
Helpers for reading session expiration times.

Expiration values arrive in whatever form the host framework or the
database round-trip produced: datetime objects, ISO-8601 strings or epoch
milliseconds. Everything is normalized to integer epoch milliseconds.
A value that cannot be interpreted means the session does not expire.
"""

import time
from datetime import datetime, timezone
from typing import Any, Optional


def now_ms() -> int:
    """Current wall-clock time in milliseconds since the epoch."""
    return int(time.time() * 1000)


def parse_expires(value: Any) -> Optional[int]:
    """
    Normalize an expiration value to epoch milliseconds.

    Args:
        value: A datetime (naive values are taken as UTC), an ISO-8601
            string (a trailing "Z" is accepted), or a number of
            milliseconds since the epoch.

    Returns:
        The expiration in epoch milliseconds, or None if the value is
        missing or malformed.
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return int(value.timestamp() * 1000)

    if isinstance(value, (int, float)):
        if value != value or value in (float("inf"), float("-inf")):
            return None
        return int(value)

    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
        return parse_expires(parsed)

    return None


def record_expires_ms(record: Any) -> Optional[int]:
    """
    Read cookie.expires from a session record.

    Records without a cookie, or with a cookie that is not a dictionary,
    are treated as non-expiring.
    """
    if not isinstance(record, dict):
        return None
    cookie = record.get("cookie")
    if not isinstance(cookie, dict):
        return None
    return parse_expires(cookie.get("expires"))


def format_expires(expires_ms: int) -> str:
    """Format epoch milliseconds as an ISO-8601 UTC string ending in "Z"."""
    moment = datetime.fromtimestamp(expires_ms / 1000, tz=timezone.utc)
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")
