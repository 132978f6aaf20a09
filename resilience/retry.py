"""
Retry logic with exponential backoff for the session store connection.

This module implements retry functionality with exponential backoff
used when connecting and reconnecting to Redis. Delays grow with the
attempt number and are capped at a fixed ceiling; once the attempts are
exhausted the failure is logged with full context and raised as a
RetryExhaustedException.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Optional, Tuple, Type, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class RetryConfig:
    """
    Configuration for retry behavior.

    Attributes:
        max_attempts: Maximum number of attempts. Default is 10.
        initial_delay: Delay after the first failed attempt in seconds.
            Default is 0.1.
        exponential_base: Base for exponential backoff calculation.
            Default is 2.0 (delays: 0.1s, 0.2s, 0.4s, ...).
        max_delay: Maximum delay between attempts in seconds.
            Default is 3.0.
        retryable_exceptions: Tuple of exception types that should
            trigger a retry. Default is (Exception,) to retry all.
    """
    max_attempts: int = 10
    initial_delay: float = 0.1
    exponential_base: float = 2.0
    max_delay: Optional[float] = 3.0
    retryable_exceptions: Tuple[Type[Exception], ...] = field(
        default_factory=lambda: (Exception,)
    )


class RetryExhaustedException(Exception):
    """
    Exception raised when all retry attempts have been exhausted.

    This exception wraps the last exception that caused the retry
    to fail, providing context about the retry attempts.
    """

    def __init__(
        self,
        message: str,
        attempts: int,
        last_exception: Exception,
        operation_name: Optional[str] = None
    ):
        """
        Initialize a RetryExhaustedException.

        Args:
            message: Human-readable error message
            attempts: Number of attempts made
            last_exception: The last exception that caused failure
            operation_name: Optional name of the operation that failed
        """
        self.attempts = attempts
        self.last_exception = last_exception
        self.operation_name = operation_name
        super().__init__(message)


def calculate_delay(
    attempt: int,
    initial_delay: float,
    exponential_base: float,
    max_delay: Optional[float] = None
) -> float:
    """
    Calculate the delay for a given retry attempt using exponential backoff.

    The delay is calculated as: initial_delay * (exponential_base ^ attempt)

    For default values (initial_delay=0.1, exponential_base=2.0, max_delay=3.0):
    - Attempt 0: 0.1 seconds
    - Attempt 1: 0.2 seconds
    - Attempt 4: 1.6 seconds
    - Attempt 5 and later: capped at 3.0 seconds

    Args:
        attempt: The current attempt number (0-indexed)
        initial_delay: The initial delay in seconds
        exponential_base: The base for exponential calculation
        max_delay: Optional maximum delay cap

    Returns:
        The calculated delay in seconds
    """
    delay = initial_delay * (exponential_base ** attempt)

    if max_delay is not None:
        delay = min(delay, max_delay)

    return delay


async def retry_async(
    func: Callable[..., T],
    *args: Any,
    config: Optional[RetryConfig] = None,
    operation_name: Optional[str] = None,
    **kwargs: Any
) -> T:
    """
    Execute an async function with retry logic.

    Example usage:
        await retry_async(
            client.ping,
            config=RetryConfig(max_attempts=5),
            operation_name="redis.connect"
        )

    Args:
        func: The async function to execute
        *args: Positional arguments to pass to the function
        config: Optional RetryConfig object with retry settings
        operation_name: Optional name for logging purposes
        **kwargs: Keyword arguments to pass to the function

    Returns:
        The result of the function call

    Raises:
        RetryExhaustedException: When all retry attempts are exhausted
    """
    effective_config = config or RetryConfig()
    op_name = operation_name or getattr(func, "__name__", "operation")
    last_exception: Optional[Exception] = None

    for attempt in range(effective_config.max_attempts):
        try:
            return await func(*args, **kwargs)
        except effective_config.retryable_exceptions as e:
            last_exception = e

            if attempt == effective_config.max_attempts - 1:
                logger.error(
                    "Retry exhausted for operation '%s' after %d attempts. "
                    "Last error: %s",
                    op_name,
                    effective_config.max_attempts,
                    str(e),
                    extra={
                        "extra_data": {
                            "operation": op_name,
                            "attempts": effective_config.max_attempts,
                            "last_error": str(e),
                            "error_type": type(e).__name__
                        }
                    }
                )
                raise RetryExhaustedException(
                    f"Operation '{op_name}' failed after {effective_config.max_attempts} attempts",
                    attempts=effective_config.max_attempts,
                    last_exception=e,
                    operation_name=op_name
                ) from e

            delay = calculate_delay(
                attempt,
                effective_config.initial_delay,
                effective_config.exponential_base,
                effective_config.max_delay
            )

            logger.warning(
                "Retry attempt %d/%d for operation '%s' failed with %s: %s. "
                "Retrying in %.2f seconds...",
                attempt + 1,
                effective_config.max_attempts,
                op_name,
                type(e).__name__,
                str(e),
                delay,
                extra={
                    "extra_data": {
                        "operation": op_name,
                        "attempt": attempt + 1,
                        "max_attempts": effective_config.max_attempts,
                        "delay_seconds": delay,
                        "error_type": type(e).__name__,
                        "error_message": str(e)
                    }
                }
            )

            await asyncio.sleep(delay)

    # Only reachable with max_attempts < 1
    raise RetryExhaustedException(
        f"Operation '{op_name}' failed after {effective_config.max_attempts} attempts",
        attempts=effective_config.max_attempts,
        last_exception=last_exception or Exception("No attempts made"),
        operation_name=op_name
    )
