"""
Public entry point for sticky session persistence.

SessionPersistenceService is what the browser session lifecycle talks to.
It picks the active store on every call (Redis while the connector is
ready, the disabled store otherwise), so callers never have to check
whether persistence is available before using it.
"""

from datetime import datetime, timedelta
from typing import Any, Callable, Optional

from session.connector import RedisConnector
from session.models import PersistedSessionRecord
from session.redis_store import DEFAULT_SESSION_TTL, RedisSessionStore
from session.store import DisabledSessionStore, SessionDataInput, SessionStore


class SessionPersistenceService:
    """
    Save, restore and manage persisted browser session state per user.

    Every method is safe to call regardless of Redis health and never
    raises; failures are logged and the call answers as if nothing had
    been persisted.

    Example:
        connector = RedisConnector()
        await connector.initialize(settings)
        persistence = SessionPersistenceService(connector)

        await persistence.save("user-1", {"cookies": [...]})
        record = await persistence.get("user-1")
    """

    def __init__(
        self,
        connector: RedisConnector,
        ttl: timedelta = DEFAULT_SESSION_TTL,
        clock: Optional[Callable[[], datetime]] = None
    ):
        """
        Initialize the service.

        Args:
            connector: Shared Redis connector; its readiness decides which
                store handles each call.
            ttl: Sliding time-to-live for records. Defaults to 30 days.
            clock: Source of the current time; defaults to UTC now.
        """
        self.connector = connector
        self._redis_store = RedisSessionStore(connector, ttl=ttl, clock=clock)
        self._disabled_store = DisabledSessionStore()

    def is_enabled(self) -> bool:
        """Return True if the connector currently reports a live connection."""
        return self.connector.is_ready()

    def _active_store(self) -> SessionStore:
        if self.is_enabled():
            return self._redis_store
        return self._disabled_store

    async def save(
        self,
        user_id: str,
        session_data: SessionDataInput,
        fingerprint: Optional[dict[str, Any]] = None,
        user_agent: Optional[str] = None
    ) -> None:
        """
        Persist session state for a user.

        Args:
            user_id: Identifier of the logical user.
            session_data: SessionData or a mapping in the wire shape
                ({"cookies": [...], "localStorage": {...}, "sessionStorage": {...}}).
            fingerprint: Optional browser fingerprint attributes.
            user_agent: Optional user agent string.
        """
        await self._active_store().save(user_id, session_data, fingerprint, user_agent)

    async def get(self, user_id: str) -> Optional[PersistedSessionRecord]:
        """Return the user's record with its TTL refreshed, or None."""
        return await self._active_store().get(user_id)

    async def delete(self, user_id: str) -> None:
        """Remove the user's record if present."""
        await self._active_store().delete(user_id)

    async def exists(self, user_id: str) -> bool:
        """Return True if a record is stored for the user."""
        return await self._active_store().exists(user_id)

    async def list_user_ids(self) -> list[str]:
        """Return the ids of all users with a stored record."""
        return await self._active_store().list_user_ids()
