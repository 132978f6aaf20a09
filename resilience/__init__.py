"""
Resilience patterns for the session store connection.

This package provides retry logic with capped exponential backoff used
to connect and reconnect to Redis.
"""

from resilience.retry import (
    RetryConfig,
    RetryExhaustedException,
    calculate_delay,
    retry_async,
)

__all__ = [
    "RetryConfig",
    "RetryExhaustedException",
    "calculate_delay",
    "retry_async",
]
