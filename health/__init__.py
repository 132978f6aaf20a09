"""
Health check module for the session persistence service.

This module provides health check services for monitoring the
Redis session store.
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
