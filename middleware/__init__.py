"""
Middleware components for the session service.

This module contains FastAPI middleware for request correlation and
server-side sessions.
"""

from middleware.request_id import RequestIDMiddleware, request_id_var, get_request_id
from middleware.session import SessionMiddleware, Session, generate_session_id

__all__ = [
    "RequestIDMiddleware",
    "request_id_var",
    "get_request_id",
    "SessionMiddleware",
    "Session",
    "generate_session_id",
]
