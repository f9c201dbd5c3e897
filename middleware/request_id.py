"""
Request ID middleware for request correlation.

Every request gets an identifier that is stored in a context variable so
that log lines written by the session store and the error handlers during
that request can be correlated.
"""

import re
import uuid
from contextvars import ContextVar
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

# Request ID of the request being handled in the current async context
request_id_var: ContextVar[str] = ContextVar("request_id", default="")

REQUEST_ID_HEADER = "X-Request-ID"

# Inbound IDs are echoed into logs and headers, so only plain tokens are accepted
_VALID_REQUEST_ID = re.compile(r"^[A-Za-z0-9._:-]{1,128}$")


def is_valid_request_id(value: str) -> bool:
    return bool(_VALID_REQUEST_ID.match(value))


class RequestIDMiddleware(BaseHTTPMiddleware):
    """
    Middleware that assigns a request ID to each request.
    
    A well-formed X-Request-ID header from the client is reused; otherwise
    a new UUID is generated. The ID is stored in request.state (for error
    handlers) and in request_id_var (for logging), and is echoed in the
    response headers.
    """
    
    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Response]
    ) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER, "")
        if not is_valid_request_id(request_id):
            request_id = str(uuid.uuid4())
        
        request.state.request_id = request_id
        token = request_id_var.set(request_id)
        
        try:
            response = await call_next(request)
            response.headers[REQUEST_ID_HEADER] = request_id
            return response
        finally:
            # Reset the context variable to avoid leaking between requests
            request_id_var.reset(token)


def get_request_id() -> str:
    """
    Get the current request ID from the context variable.
    
    Returns:
        The current request ID, or empty string if not in a request context
    """
    return request_id_var.get()
