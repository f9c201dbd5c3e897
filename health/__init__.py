"""
Health check module for the session service.

This module provides health check services reporting the status of the
key-value database that holds session records.
"""

from health.service import (
    HealthCheckService,
    HealthStatus,
    DependencyHealth,
)

__all__ = [
    "HealthCheckService",
    "HealthStatus",
    "DependencyHealth",
]
