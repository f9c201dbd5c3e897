"""
Health check service for the session service.

This module provides the HealthCheckService class that reports whether the
key-value database holding session records is reachable, with response
time metrics for the check.
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional, Any

from kvdb.database import Database

logger = logging.getLogger(__name__)


def _utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


@dataclass
class DependencyHealth:
    """
    Health status of a single dependency.
    
    Attributes:
        name: The name of the dependency (e.g., "key_value_database")
        healthy: Whether the dependency is healthy and responding
        response_time_ms: The time taken to check the dependency in milliseconds
        error: Optional error message if the dependency check failed
    """
    name: str
    healthy: bool
    response_time_ms: float
    error: Optional[str] = None
    
    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        result = {
            "name": self.name,
            "healthy": self.healthy,
            "response_time_ms": round(self.response_time_ms, 2),
        }
        if self.error is not None:
            result["error"] = self.error
        return result


@dataclass
class HealthStatus:
    """
    Overall health status of the service.
    
    Attributes:
        status: Overall status - "healthy" or "unhealthy"
        timestamp: When the health check was performed (ISO 8601 UTC)
        dependencies: List of individual dependency health statuses
    """
    status: str
    timestamp: str
    dependencies: list[DependencyHealth] = field(default_factory=list)
    
    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "status": self.status,
            "timestamp": self.timestamp,
            "dependencies": [dep.to_dict() for dep in self.dependencies],
        }


class HealthCheckService:
    """
    Service for checking the health of the key-value database.
    
    Attributes:
        database: The key-value database holding session records
        check_timeout: Timeout in seconds for the dependency check (default: 5.0)
    """
    
    def __init__(self, database: Database, check_timeout: float = 5.0):
        self.database = database
        self.check_timeout = check_timeout
    
    async def check_readiness(self) -> HealthStatus:
        """
        Check the key-value database for readiness.
        
        Returns:
            HealthStatus: "healthy" if the database answered in time,
            "unhealthy" otherwise.
        """
        database_health = await self._check_database()
        status = "healthy" if database_health.healthy else "unhealthy"
        return HealthStatus(
            status=status,
            timestamp=_utc_timestamp(),
            dependencies=[database_health],
        )
    
    async def check_liveness(self) -> dict[str, Any]:
        """
        Simple liveness check - process is running.
        
        Does not check external dependencies.
        """
        return {
            "status": "alive",
            "timestamp": _utc_timestamp(),
        }
    
    async def _check_database(self) -> DependencyHealth:
        """
        Check key-value database connectivity with timeout.
        
        Returns:
            DependencyHealth: The health status of the database
        """
        start_time = time.perf_counter()
        
        try:
            result = await asyncio.wait_for(
                self.database.health_check(),
                timeout=self.check_timeout
            )
            
            elapsed_ms = (time.perf_counter() - start_time) * 1000
            
            if result:
                logger.debug(f"Key-value database health check passed in {elapsed_ms:.2f}ms")
                return DependencyHealth(
                    name="key_value_database",
                    healthy=True,
                    response_time_ms=elapsed_ms
                )
            logger.warning(f"Key-value database health check returned False after {elapsed_ms:.2f}ms")
            return DependencyHealth(
                name="key_value_database",
                healthy=False,
                response_time_ms=elapsed_ms,
                error="Key-value database health check returned False"
            )
                
        except asyncio.TimeoutError:
            elapsed_ms = (time.perf_counter() - start_time) * 1000
            error_msg = f"Key-value database health check timed out after {self.check_timeout} seconds"
            logger.warning(error_msg)
            return DependencyHealth(
                name="key_value_database",
                healthy=False,
                response_time_ms=elapsed_ms,
                error=error_msg
            )
            
        except Exception as e:
            elapsed_ms = (time.perf_counter() - start_time) * 1000
            error_msg = f"Key-value database health check failed: {str(e)}"
            logger.error(error_msg)
            return DependencyHealth(
                name="key_value_database",
                healthy=False,
                response_time_ms=elapsed_ms,
                error=error_msg
            )
