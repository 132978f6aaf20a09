"""
Session store abstraction for persisted browser session state.

This module defines the contract shared by the two states the
persistence layer can be in: backed by a live Redis connection, or
disabled. Every operation is total. Implementations swallow and log
their own failures and answer with the "no persistence" result
(None, False, an empty list, or nothing) instead of raising.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Mapping, Optional, Union

from session.models import PersistedSessionRecord, SessionData

logger = logging.getLogger(__name__)

SessionDataInput = Union[SessionData, Mapping[str, Any]]


class SessionStore(ABC):
    """
    Abstract base class for session store implementations.

    All methods are async to support non-blocking I/O against the
    backing store.
    """

    @abstractmethod
    async def save(
        self,
        user_id: str,
        session_data: SessionDataInput,
        fingerprint: Optional[dict[str, Any]] = None,
        user_agent: Optional[str] = None
    ) -> None:
        """
        Persist the session state for a user, replacing any previous record.

        The original creation time of an existing record is carried forward.
        """

    @abstractmethod
    async def get(self, user_id: str) -> Optional[PersistedSessionRecord]:
        """
        Retrieve the record for a user and refresh its time-to-live.

        Returns:
            The record with last_accessed updated, or None when absent,
            expired, unreadable or the store is unavailable.
        """

    @abstractmethod
    async def delete(self, user_id: str) -> None:
        """
        Remove the record for a user.

        Idempotent: deleting a missing record is not an error.
        """

    @abstractmethod
    async def exists(self, user_id: str) -> bool:
        """Return True if a record is stored for the user."""

    @abstractmethod
    async def list_user_ids(self) -> list[str]:
        """Return the ids of all users with a stored record, in no particular order."""


class DisabledSessionStore(SessionStore):
    """
    Store used while persistence is unavailable.

    Every operation is a no-op that returns the "no persistence" result.
    """

    async def save(
        self,
        user_id: str,
        session_data: SessionDataInput,
        fingerprint: Optional[dict[str, Any]] = None,
        user_agent: Optional[str] = None
    ) -> None:
        logger.debug("Session persistence is disabled, skipping save")

    async def get(self, user_id: str) -> Optional[PersistedSessionRecord]:
        logger.debug("Session persistence is disabled, skipping get")
        return None

    async def delete(self, user_id: str) -> None:
        logger.debug("Session persistence is disabled, skipping delete")

    async def exists(self, user_id: str) -> bool:
        return False

    async def list_user_ids(self) -> list[str]:
        return []
