"""
Telemetry service for structured logging.

This module provides structured JSON logging with request correlation so
that session store activity (GET/SET/DESTROY/TOUCH, expiration cleanup)
can be traced back to the request that caused it.
"""

import logging
import json
import sys
from datetime import datetime, timezone
from typing import Any, Optional, Dict

from middleware.request_id import request_id_var


class JSONFormatter(logging.Formatter):
    """
    Custom log formatter that outputs logs in JSON format.
    
    Each log entry contains:
    - timestamp: ISO 8601 formatted UTC timestamp
    - level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    - message: The log message
    - logger: Name of the logger that produced the entry
    - request_id: Correlation ID for request tracing
    
    Additional fields can be included via the 'extra_data' attribute
    on the log record.
    """
    
    def format(self, record: logging.LogRecord) -> str:
        """
        Format a log record as a JSON string.
        
        Args:
            record: The log record to format
            
        Returns:
            JSON-formatted string containing the log entry
        """
        timestamp = datetime.fromtimestamp(record.created, tz=timezone.utc)
        log_data: Dict[str, Any] = {
            "timestamp": timestamp.isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "message": record.getMessage(),
            "logger": record.name,
            "request_id": request_id_var.get(""),
        }
        
        if record.module:
            log_data["module"] = record.module
        if record.funcName and record.funcName != "<module>":
            log_data["function"] = record.funcName
        if record.lineno:
            log_data["line"] = record.lineno
        
        # Include any extra data attached to the record
        if hasattr(record, "extra_data") and record.extra_data:
            log_data.update(record.extra_data)
        
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)
        
        if record.stack_info:
            log_data["stack_trace"] = record.stack_info
        
        return json.dumps(log_data, default=str)


class TelemetryService:
    """
    Centralized logging setup for the service.
    
    Configures the root logger with the JSON formatter at the level given
    by settings.log_level.
    """
    
    def __init__(self, settings: Optional[Any] = None):
        """
        Initialize the telemetry service.
        
        Args:
            settings: Application settings containing log_level and
                     service_name configuration
        """
        self.settings = settings
        self._setup_logging()
    
    def _setup_logging(self) -> None:
        """
        Configure structured JSON logging.
        
        Sets up the root logger with JSONFormatter and configures
        the log level based on settings.
        """
        log_level_str = "INFO"
        if self.settings and hasattr(self.settings, "log_level"):
            log_level_str = self.settings.log_level
        
        log_level = getattr(logging, log_level_str.upper(), logging.INFO)
        
        root_logger = logging.getLogger()
        root_logger.setLevel(log_level)
        
        # Remove existing handlers to avoid duplicate logs
        for handler in root_logger.handlers[:]:
            root_logger.removeHandler(handler)
        
        stdout_handler = logging.StreamHandler(sys.stdout)
        stdout_handler.setLevel(log_level)
        stdout_handler.setFormatter(JSONFormatter())
        root_logger.addHandler(stdout_handler)
        
        logger = logging.getLogger("telemetry")
        logger.info("Telemetry service initialized", extra={
            "extra_data": {
                "log_level": log_level_str,
                "service_name": getattr(self.settings, "service_name", None),
            }
        })


def initialize_telemetry(settings: Optional[Any] = None) -> TelemetryService:
    """
    Configure structured JSON logging for the process.
    
    Args:
        settings: Application settings for configuration
        
    Returns:
        The initialized telemetry service
    """
    return TelemetryService(settings)


def set_request_id(request_id: str) -> None:
    """
    Set the request ID for the current context.
    
    This function is provided for convenience when the middleware
    is not being used (e.g., in background tasks).
    """
    request_id_var.set(request_id)


def get_request_id() -> str:
    """
    Get the current request ID from context.
    
    Returns:
        The current request ID, or empty string if not set
    """
    return request_id_var.get("")
