from contextlib import asynccontextmanager
from typing import Any, Optional
import logging
import os

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from config.settings import Settings, get_settings, validate_startup
from errors.handlers import register_exception_handlers
from errors.exceptions import invalid_request, resource_not_found
from health.service import HealthCheckService
from kvdb.factory import create_database
from middleware.request_id import RequestIDMiddleware
from middleware.session import COOKIE_KEY, SessionMiddleware
from session.factory import create_session_store
from telemetry.service import initialize_telemetry

logger = logging.getLogger(__name__)

SERVICE_VERSION = "1.0.0"


class SessionValue(BaseModel):
    value: Any


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Build the FastAPI application.

    The key-value database and the session store are created here and
    attached to app.state. The lifespan connects the database on startup
    and, on shutdown, cancels pending session expiration timers before
    closing the database.

    Args:
        settings: Settings to use. Defaults to get_settings().

    Returns:
        The configured FastAPI application.
    """
    settings = settings or get_settings()
    validate_startup(settings)

    database = create_database(settings)
    session_store = create_session_store(settings, database)
    health_check_service = HealthCheckService(database=database, check_timeout=5.0)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Lifespan context manager for startup and shutdown events."""
        logger.info("Starting session service", extra={
            "extra_data": {"kv_store_type": settings.kv_store_type}
        })
        await database.connect()

        yield  # Application runs here

        logger.info("Shutting down session service")
        session_store.shutdown()
        await database.close()

    app = FastAPI(title="Session Service", version=SERVICE_VERSION, lifespan=lifespan)
    app.state.settings = settings
    app.state.database = database
    app.state.session_store = session_store

    register_exception_handlers(app)

    app.add_middleware(
        SessionMiddleware,
        store=session_store,
        cookie_name=settings.session_cookie_name,
        max_age_ms=settings.session_lifetime_ms,
        rolling=settings.session_rolling,
        secure=settings.session_cookie_secure,
        same_site=settings.session_cookie_same_site,
    )
    # Added last so it wraps the session middleware and its log lines
    app.add_middleware(RequestIDMiddleware)

    # =========================================================================
    # Session endpoints
    # =========================================================================

    @app.get("/session")
    async def read_session(request: Request):
        """Return the current session's identifier and data."""
        session = request.state.session
        return {"session_id": session.id, "data": dict(session)}

    @app.put("/session/{key}")
    async def write_session_value(key: str, body: SessionValue, request: Request):
        """Store a value in the current session."""
        if key == COOKIE_KEY:
            raise invalid_request(
                f"Session key '{COOKIE_KEY}' is reserved",
                details={"key": key},
            )
        session = request.state.session
        session[key] = body.value
        return {"session_id": session.id, "data": dict(session)}

    @app.delete("/session/{key}")
    async def delete_session_value(key: str, request: Request):
        """Remove a value from the current session."""
        session = request.state.session
        if key not in session:
            raise resource_not_found(
                "Session key not found",
                details={"key": key},
            )
        del session[key]
        return {"session_id": session.id, "data": dict(session)}

    @app.delete("/session")
    async def end_session(request: Request):
        """Invalidate the current session."""
        request.state.session.invalidate()
        return {"status": "ended"}

    # =========================================================================
    # Health Check Endpoints
    # =========================================================================

    @app.get("/health")
    async def health_live():
        """Returns 200 OK if the process is running, regardless of dependencies."""
        result = await health_check_service.check_liveness()
        return {
            "status": result["status"],
            "service": settings.service_name,
            "version": SERVICE_VERSION,
            "timestamp": result["timestamp"],
        }

    @app.get("/health/ready")
    async def health_ready():
        """
        Readiness check endpoint with dependency verification.

        Returns:
            JSONResponse: Health status with dependency details
            - 200 OK: The key-value database is reachable
            - 503 Service Unavailable: The key-value database is unavailable
        """
        health_status = await health_check_service.check_readiness()
        response_data = {
            "service": settings.service_name,
            "version": SERVICE_VERSION,
            **health_status.to_dict(),
        }

        if health_status.status == "unhealthy":
            response_data["failure_reasons"] = [
                {"dependency": dep.name, "error": dep.error}
                for dep in health_status.dependencies
                if not dep.healthy
            ]
            return JSONResponse(status_code=503, content=response_data)

        return response_data

    return app


# Load settings from centralized configuration
settings = get_settings()

# Structured JSON logging for the whole process
telemetry_service = initialize_telemetry(settings)

app = create_app(settings)


if __name__ == "__main__":
    import uvicorn
    port = int(os.environ.get("PORT", 8080))
    uvicorn.run(app, host="0.0.0.0", port=port, log_level=settings.log_level.lower())
