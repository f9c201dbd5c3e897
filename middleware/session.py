"""
Server-side session middleware.

This middleware resolves the session cookie to a record held by a
SessionStore, exposes it to endpoints as request.state.session, and after
the endpoint has run persists it again:

- an invalidated session is destroyed and its cookie expired
- a new or changed session is written with set()
- an unchanged session is refreshed with touch() when rolling is enabled

Records use the express-session layout: session data at the top level and
cookie attributes, including the expiration, under the "cookie" key.
"""

import copy
import logging
import secrets
from typing import Any, Callable, Optional

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from errors.exceptions import session_store_unavailable
from errors.handlers import handle_app_exception
from session.expiration import format_expires, now_ms
from session.store import SessionStore

logger = logging.getLogger(__name__)

# Key holding cookie attributes inside a stored session record
COOKIE_KEY = "cookie"


def generate_session_id() -> str:
    """Generate an unguessable session identifier."""
    return secrets.token_urlsafe(32)


class Session(dict):
    """
    Session data for a single request.

    Behaves as a plain dictionary of session values. The "cookie" key is
    reserved for the stored cookie attributes and is never exposed here.

    Attributes:
        id: The session identifier sent in the cookie.
        is_new: True if the session was created during this request.
        invalidated: True once invalidate() has been called.
    """

    def __init__(self, session_id: str, data: Optional[dict[str, Any]] = None, *, is_new: bool = False):
        super().__init__(data or {})
        self.id = session_id
        self.is_new = is_new
        self.invalidated = False

    def invalidate(self) -> None:
        """Clear the session and remove it from the store after the request."""
        self.clear()
        self.invalidated = True


class SessionMiddleware(BaseHTTPMiddleware):
    """
    Middleware that loads and saves server-side sessions.

    Uninitialized sessions (new and still empty after the endpoint) are
    neither stored nor sent to the client.
    """

    def __init__(
        self,
        app: ASGIApp,
        store: SessionStore,
        cookie_name: str = "sessionid",
        max_age_ms: Optional[int] = None,
        rolling: bool = True,
        secure: bool = False,
        same_site: str = "lax",
        path: str = "/",
    ):
        """
        Initialize the middleware.

        Args:
            app: The ASGI application to wrap
            store: Session store holding the session records
            cookie_name: Name of the session cookie
            max_age_ms: Cookie lifetime in milliseconds. None issues a
                browser-session cookie and stores a non-expiring record.
            rolling: Refresh the expiration on every request
            secure: Mark the cookie Secure
            same_site: SameSite attribute of the cookie
            path: Cookie path
        """
        super().__init__(app)
        self.store = store
        self.cookie_name = cookie_name
        self.max_age_ms = max_age_ms
        self.rolling = rolling
        self.secure = secure
        self.same_site = same_site
        self.path = path

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Response]
    ) -> Response:
        """
        Load the session, run the endpoint, then persist the session.

        Returns:
            The endpoint response with the session cookie applied, or a
            503 error response if the session store failed.
        """
        try:
            session = await self._load(request)
        except Exception as exc:
            return await self._store_failure(request, "load", exc)

        snapshot = copy.deepcopy(dict(session))
        request.state.session = session

        response = await call_next(request)

        try:
            await self._save(session, snapshot, response)
        except Exception as exc:
            return await self._store_failure(request, "save", exc)

        return response

    async def _load(self, request: Request) -> Session:
        session_id = request.cookies.get(self.cookie_name)
        if session_id:
            record = await self.store.get(session_id)
            if record is not None:
                data = {k: v for k, v in record.items() if k != COOKIE_KEY}
                return Session(session_id, data)
            logger.debug("Unknown or expired session cookie, starting a new session")
        # Never adopt a client-chosen identifier
        return Session(generate_session_id(), is_new=True)

    async def _save(self, session: Session, snapshot: dict[str, Any], response: Response) -> None:
        if session.invalidated:
            await self.store.destroy(session.id)
            if not session.is_new:
                response.delete_cookie(self.cookie_name, path=self.path)
            return

        if session.is_new and not session:
            return

        modified = session.is_new or dict(session) != snapshot
        if not modified and not self.rolling:
            return

        record = self._build_record(session)
        if modified:
            await self.store.set(session.id, record)
        else:
            await self.store.touch(session.id, record)
        self._set_cookie(response, session.id)

    def _build_record(self, session: Session) -> dict[str, Any]:
        cookie: dict[str, Any] = {
            "originalMaxAge": self.max_age_ms,
            "expires": None,
            "path": self.path,
            "httpOnly": True,
            "secure": self.secure,
            "sameSite": self.same_site,
        }
        if self.max_age_ms is not None:
            cookie["expires"] = format_expires(now_ms() + self.max_age_ms)
        data = {k: v for k, v in session.items() if k != COOKIE_KEY}
        return {COOKIE_KEY: cookie, **data}

    def _set_cookie(self, response: Response, session_id: str) -> None:
        max_age = None
        if self.max_age_ms is not None:
            max_age = self.max_age_ms // 1000
        response.set_cookie(
            self.cookie_name,
            session_id,
            max_age=max_age,
            path=self.path,
            secure=self.secure,
            httponly=True,
            samesite=self.same_site,
        )

    async def _store_failure(self, request: Request, operation: str, exc: Exception) -> Response:
        logger.error(
            "Session store operation failed",
            extra={
                "extra_data": {
                    "operation": operation,
                    "exception_type": type(exc).__name__,
                    "path": request.url.path,
                }
            },
            exc_info=exc,
        )
        return await handle_app_exception(
            request, session_store_unavailable(details={"operation": operation})
        )
