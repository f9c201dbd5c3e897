"""
Telemetry module for structured logging.

This module provides:
- JSONFormatter for structured JSON log output
- TelemetryService for centralized logging configuration
"""

from telemetry.service import (
    JSONFormatter,
    TelemetryService,
    initialize_telemetry,
    set_request_id,
    get_request_id,
)

__all__ = [
    "JSONFormatter",
    "TelemetryService",
    "initialize_telemetry",
    "set_request_id",
    "get_request_id",
]
