"""
Exception classes for the session persistence subsystem.

This module provides the PersistenceError base class and the three
failure kinds the persistence layer recovers from locally:
ConnectionFailure, TransientStoreError and MalformedRecord.
"""

from typing import Any, Optional

from errors.codes import ErrorCode


class PersistenceError(Exception):
    """
    Base exception class for all persistence errors.

    This exception provides structured error information including:
    - error_code: A standardized error code from the ErrorCode enum
    - message: A human-readable error message
    - details: Optional additional context (e.g., the user id involved)

    Example:
        raise PersistenceError(
            error_code=ErrorCode.SESSION_STORE_ERROR,
            message="SETEX failed",
            details={"user_id": "user-123"}
        )
    """

    default_error_code: ErrorCode = ErrorCode.SESSION_STORE_ERROR

    def __init__(
        self,
        message: str,
        error_code: Optional[ErrorCode] = None,
        details: Optional[dict[str, Any]] = None
    ):
        """
        Initialize a PersistenceError.

        Args:
            message: A human-readable error message
            error_code: The error code (defaults to the class default)
            details: Optional dictionary with additional error context
        """
        self.error_code = error_code or self.default_error_code
        self.message = message
        self.details = details
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """
        Convert the exception to a dictionary for structured logging.

        Returns:
            Dictionary containing error_code, error (the message), and details
        """
        result = {
            "error_code": self.error_code.value,
            "error": self.message,
        }
        if self.details is not None:
            result["details"] = self.details
        return result

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(error_code={self.error_code.value!r}, "
            f"message={self.message!r}, details={self.details!r})"
        )


class ConnectionFailure(PersistenceError):
    """
    Raised when the initial connection to the store cannot be established.

    The connector recovers from this by disabling persistence for the
    lifetime of the process.
    """

    default_error_code = ErrorCode.SESSION_STORE_UNAVAILABLE


class TransientStoreError(PersistenceError):
    """
    Raised when a store round trip fails after a successful connect.

    Attributes:
        transport: True when the underlying failure was a lost or timed out
            connection rather than a command error.
    """

    default_error_code = ErrorCode.SESSION_STORE_ERROR

    def __init__(
        self,
        message: str,
        error_code: Optional[ErrorCode] = None,
        details: Optional[dict[str, Any]] = None,
        transport: bool = False
    ):
        super().__init__(message, error_code=error_code, details=details)
        self.transport = transport


class MalformedRecord(PersistenceError):
    """Raised when a stored value cannot be decoded into a session record."""

    default_error_code = ErrorCode.MALFORMED_RECORD
