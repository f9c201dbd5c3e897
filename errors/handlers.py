"""
Exception handlers for the session service.

This module provides FastAPI exception handlers that convert exceptions
to structured JSON error responses with consistent format. Unexpected
exceptions are logged with their stack trace and answered with a generic
message that exposes no internal details.
"""

import logging
import uuid
from typing import Any, Optional

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from errors.codes import ErrorCode
from errors.exceptions import AppException, internal_error, validation_error

logger = logging.getLogger(__name__)


class ErrorResponse(BaseModel):
    """
    Structured error response model.
    
    All error responses from the API follow this format for consistency
    and to enable programmatic error handling by clients.
    """
    error_code: str
    message: str
    details: Optional[dict[str, Any]] = None
    request_id: str


def get_request_id(request: Request) -> str:
    """
    Get the request ID from the request state or generate a new one.
    
    RequestIDMiddleware sets this value; a fresh UUID is used when the
    handler runs outside that middleware.
    """
    if hasattr(request.state, "request_id"):
        return request.state.request_id
    return str(uuid.uuid4())


async def handle_app_exception(request: Request, exc: AppException) -> JSONResponse:
    """
    Handle known application exceptions and convert to structured response.
    
    Args:
        request: The FastAPI request object
        exc: The AppException that was raised
        
    Returns:
        JSONResponse with structured error format
    """
    request_id = get_request_id(request)
    
    logger.warning(
        "Application error occurred",
        extra={
            "extra_data": {
                "error_code": exc.error_code.value,
                "error_message": exc.message,
                "status_code": exc.status_code,
                "details": exc.details,
                "path": request.url.path,
                "method": request.method,
            }
        }
    )
    
    error_response = ErrorResponse(
        error_code=exc.error_code.value,
        message=exc.message,
        details=exc.details,
        request_id=request_id,
    )
    
    return JSONResponse(
        status_code=exc.status_code,
        content=error_response.model_dump(exclude_none=True),
    )


async def handle_request_validation_error(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """
    Convert FastAPI request validation failures to VALIDATION_ERROR responses.
    
    Only the location, message and type of each error are returned; the
    rejected input is not echoed back.
    """
    errors = [
        {"loc": list(error["loc"]), "message": error["msg"], "type": error["type"]}
        for error in exc.errors()
    ]
    return await handle_app_exception(
        request,
        validation_error("Request validation failed", details={"validation_errors": errors}),
    )


async def handle_unexpected_exception(request: Request, exc: Exception) -> JSONResponse:
    """
    Handle unexpected exceptions safely without exposing internal details.
    
    Args:
        request: The FastAPI request object
        exc: The unexpected exception that was raised
        
    Returns:
        JSONResponse with generic error message (no internal details exposed)
    """
    request_id = get_request_id(request)
    
    logger.error(
        "Unexpected error occurred",
        extra={
            "extra_data": {
                "error_code": ErrorCode.INTERNAL_ERROR.value,
                "path": request.url.path,
                "method": request.method,
                "exception_type": type(exc).__name__,
                "exception_message": str(exc),
            }
        },
        exc_info=exc,
    )
    
    # Never expose internal details
    app_exc = internal_error("An unexpected error occurred. Please try again later.")
    error_response = ErrorResponse(
        error_code=app_exc.error_code.value,
        message=app_exc.message,
        request_id=request_id,
    )

    return JSONResponse(
        status_code=app_exc.status_code,
        content=error_response.model_dump(exclude_none=True),
    )


def register_exception_handlers(app) -> None:
    """
    Register all exception handlers with the FastAPI application.
    
    Args:
        app: The FastAPI application instance
    """
    app.add_exception_handler(AppException, handle_app_exception)
    app.add_exception_handler(RequestValidationError, handle_request_validation_error)
    app.add_exception_handler(Exception, handle_unexpected_exception)
    
    logger.info("Exception handlers registered successfully")
