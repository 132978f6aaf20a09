"""
Error code catalog for the session persistence subsystem.

Every failure the persistence layer can observe is tagged with one of
these codes before it is logged. None of them is ever surfaced to callers
of the persistence service.
"""

from enum import Enum


class ErrorCode(str, Enum):
    """
    Enumeration of all error codes used by the persistence layer.

    - Connection errors: the store could not be reached at startup
    - Store errors: a round trip failed after a successful connect
    - Data errors: a stored value could not be decoded
    """

    # Connection errors
    SESSION_STORE_UNAVAILABLE = "SESSION_STORE_UNAVAILABLE"
    """Initial connection to Redis could not be established"""

    # Store errors
    SESSION_STORE_ERROR = "SESSION_STORE_ERROR"
    """A Redis command failed after the connection was established"""

    # Data errors
    MALFORMED_RECORD = "MALFORMED_RECORD"
    """A stored session record is not valid JSON or does not match the schema"""
