"""
Health check service for the session persistence service.

This module provides the HealthCheckService class that reports the health
of the Redis session store. Persistence is an optimization, so a failing
store degrades the service instead of making it unhealthy.
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional

logger = logging.getLogger(__name__)

SESSION_STORE_DEPENDENCY = "session_store"


def _timestamp(value: datetime) -> str:
    return value.isoformat().replace("+00:00", "Z")


@dataclass
class DependencyHealth:
    """
    Health status of a single dependency.

    Attributes:
        name: The name of the dependency (e.g., "session_store")
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
        status: Overall status - "healthy" or "degraded"
        timestamp: When the health check was performed
        dependencies: List of individual dependency health statuses
    """
    status: str
    timestamp: datetime
    dependencies: list[DependencyHealth] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "status": self.status,
            "timestamp": _timestamp(self.timestamp),
            "dependencies": [dep.to_dict() for dep in self.dependencies],
        }


class HealthCheckService:
    """
    Service for checking the health of the session store.

    Attributes:
        connector: The Redis connector, or None when persistence is not wired
        persistence_enabled: Whether persistence is switched on in settings;
            the store is only reported when it is
        check_timeout: Timeout in seconds for dependency checks (default: 5.0)
    """

    def __init__(
        self,
        connector: Optional[Any] = None,
        persistence_enabled: bool = False,
        check_timeout: float = 5.0
    ):
        self.connector = connector
        self.persistence_enabled = persistence_enabled
        self.check_timeout = check_timeout

    async def check_readiness(self) -> HealthStatus:
        """
        Check the session store for readiness.

        Returns:
            HealthStatus: "healthy" when the store answers or persistence is
            switched off, "degraded" when persistence is on but the store
            does not answer.
        """
        dependencies: list[DependencyHealth] = []
        if self.persistence_enabled:
            dependencies.append(await self._check_session_store())

        return HealthStatus(
            status=self._determine_overall_status(dependencies),
            timestamp=datetime.now(timezone.utc),
            dependencies=dependencies
        )

    async def check_liveness(self) -> dict[str, Any]:
        """
        Simple liveness check - process is running.

        Returns:
            dict: A simple status response with "alive" status and timestamp
        """
        return {
            "status": "alive",
            "timestamp": _timestamp(datetime.now(timezone.utc))
        }

    async def check_health(self) -> dict[str, Any]:
        """
        Basic health check - service is accepting requests.

        Returns:
            dict: A simple status response indicating the service is up
        """
        return {
            "status": "ok",
            "timestamp": _timestamp(datetime.now(timezone.utc))
        }

    async def _check_session_store(self) -> DependencyHealth:
        """
        Check session store connectivity with timeout.

        Returns:
            DependencyHealth: The health status of the session store
        """
        start_time = time.perf_counter()

        try:
            result = await asyncio.wait_for(
                self._ping_session_store(),
                timeout=self.check_timeout
            )

            elapsed_ms = (time.perf_counter() - start_time) * 1000

            if result:
                logger.debug(f"Session store health check passed in {elapsed_ms:.2f}ms")
                return DependencyHealth(
                    name=SESSION_STORE_DEPENDENCY,
                    healthy=True,
                    response_time_ms=elapsed_ms
                )
            else:
                logger.warning(f"Session store health check returned False after {elapsed_ms:.2f}ms")
                return DependencyHealth(
                    name=SESSION_STORE_DEPENDENCY,
                    healthy=False,
                    response_time_ms=elapsed_ms,
                    error="Session store health check returned False"
                )

        except asyncio.TimeoutError:
            elapsed_ms = (time.perf_counter() - start_time) * 1000
            error_msg = f"Session store health check timed out after {self.check_timeout} seconds"
            logger.warning(error_msg)
            return DependencyHealth(
                name=SESSION_STORE_DEPENDENCY,
                healthy=False,
                response_time_ms=elapsed_ms,
                error=error_msg
            )

        except Exception as e:
            elapsed_ms = (time.perf_counter() - start_time) * 1000
            error_msg = f"Session store health check failed: {str(e)}"
            logger.error(error_msg)
            return DependencyHealth(
                name=SESSION_STORE_DEPENDENCY,
                healthy=False,
                response_time_ms=elapsed_ms,
                error=error_msg
            )

    async def _ping_session_store(self) -> bool:
        """
        Ping the session store to check connectivity.

        Returns:
            bool: True if the session store is reachable, False otherwise
        """
        if self.connector is None:
            return False
        return await self.connector.health_check()

    def _determine_overall_status(self, dependencies: list[DependencyHealth]) -> str:
        """
        Determine the overall health status based on dependency health.

        The session store is never critical: sessions keep working without
        it, they just start without restored state.
        """
        if all(dep.healthy for dep in dependencies):
            return "healthy"
        return "degraded"
