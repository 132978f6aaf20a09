"""
Error handling module for the session persistence subsystem.

This module provides structured error handling with:
- ErrorCode enum for standardized error codes
- PersistenceError and its subclasses for locally recovered failures
"""

from errors.codes import ErrorCode
from errors.exceptions import (
    ConnectionFailure,
    MalformedRecord,
    PersistenceError,
    TransientStoreError,
)

__all__ = [
    "ErrorCode",
    "PersistenceError",
    "ConnectionFailure",
    "TransientStoreError",
    "MalformedRecord",
]
