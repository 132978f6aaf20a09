"""
Redis-based session store implementation.

Records are stored as JSON strings under "sticky:session:<user_id>" with
a sliding time-to-live of 30 days. Every write uses SETEX so the value
and its expiry are set in one command, and every successful read
rewrites the record with a fresh last_accessed time and a full TTL.
"""

import logging
from datetime import datetime, timedelta
from typing import Any, Awaitable, Callable, Optional, TypeVar

from pydantic import ValidationError
from redis.exceptions import (
    ConnectionError as RedisConnectionError,
    RedisError,
    TimeoutError as RedisTimeoutError,
)

from errors.exceptions import MalformedRecord, PersistenceError, TransientStoreError
from session.codec import decode_record, encode_record
from session.connector import RedisConnector
from session.models import PersistedSessionRecord, SessionData, utc_now
from session.store import SessionDataInput, SessionStore

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Records expire 30 days after their last read or write
DEFAULT_SESSION_TTL = timedelta(days=30)

# Keys are "<namespace>:<user_id>"; listing scans the same prefix
SESSION_KEY_NAMESPACE = "sticky:session"
SESSION_KEY_PREFIX = f"{SESSION_KEY_NAMESPACE}:"

# SCAN count hint
SCAN_BATCH_SIZE = 500


def session_key(user_id: str) -> str:
    """Return the Redis key holding the record for user_id."""
    return f"{SESSION_KEY_PREFIX}{user_id}"


def user_id_from_key(key: str) -> Optional[str]:
    """Return the user id encoded in a session key, or None for foreign keys."""
    if not key.startswith(SESSION_KEY_PREFIX):
        return None
    return key[len(SESSION_KEY_PREFIX):]


class RedisSessionStore(SessionStore):
    """
    Redis-backed session store implementation.

    The store does not own the connection; it borrows the client from the
    shared RedisConnector on every call and reports transport failures
    back to it so readiness is updated promptly.

    Attributes:
        connector: The connector providing the Redis client.
        ttl: Sliding time-to-live applied on every read and write.
    """

    def __init__(
        self,
        connector: RedisConnector,
        ttl: timedelta = DEFAULT_SESSION_TTL,
        clock: Optional[Callable[[], datetime]] = None
    ):
        """
        Initialize the Redis session store.

        Args:
            connector: Shared connector owning the Redis client.
            ttl: Time-to-live for records. Defaults to 30 days.
            clock: Source of the current time; defaults to UTC now.
        """
        self.connector = connector
        self.ttl = ttl
        self._clock = clock or utc_now

    @property
    def ttl_seconds(self) -> int:
        return int(self.ttl.total_seconds())

    def _require_client(self) -> Any:
        client = self.connector.client
        if client is None:
            raise TransientStoreError("Redis client not connected", transport=True)
        return client

    async def _execute(
        self,
        operation: str,
        user_id: Optional[str],
        command: Callable[..., Awaitable[T]],
        *args: Any,
        **kwargs: Any
    ) -> T:
        """
        Run one Redis round trip, translating client errors.

        Raises:
            TransientStoreError: If the command fails. Connection and timeout
                errors also mark the connector as disconnected.
        """
        details = {"operation": operation, "user_id": user_id}
        try:
            return await command(*args, **kwargs)
        except (RedisConnectionError, RedisTimeoutError, OSError) as e:
            self.connector.mark_disconnected(e)
            raise TransientStoreError(
                f"Redis {operation} failed: {e}",
                details=details,
                transport=True
            ) from e
        except RedisError as e:
            raise TransientStoreError(f"Redis {operation} failed: {e}", details=details) from e

    async def _read(self, user_id: str) -> Optional[PersistedSessionRecord]:
        """
        Fetch and decode the record without touching its TTL.

        Raises:
            MalformedRecord: If the value cannot be decoded or belongs to
                another user.
        """
        client = self._require_client()
        raw = await self._execute("get", user_id, client.get, session_key(user_id))
        if raw is None:
            return None
        record = decode_record(raw)
        if record.user_id != user_id:
            raise MalformedRecord(
                "Stored session record belongs to a different user",
                details={"stored_user_id": record.user_id}
            )
        return record

    async def _write(self, user_id: str, record: PersistedSessionRecord) -> None:
        client = self._require_client()
        await self._execute(
            "setex",
            user_id,
            client.setex,
            session_key(user_id),
            self.ttl_seconds,
            encode_record(record)
        )

    def _log_failure(self, message: str, user_id: Optional[str], error: Exception) -> None:
        extra_data: dict[str, Any] = {"user_id": user_id}
        if isinstance(error, PersistenceError):
            extra_data.update(error.to_dict())
        else:
            extra_data.update({"error": str(error), "error_type": type(error).__name__})
        logger.error(message, extra={"extra_data": extra_data})

    async def save(
        self,
        user_id: str,
        session_data: SessionDataInput,
        fingerprint: Optional[dict[str, Any]] = None,
        user_agent: Optional[str] = None
    ) -> None:
        try:
            if not isinstance(session_data, SessionData):
                session_data = SessionData.model_validate(session_data)

            # Existence check only; a save refreshes the TTL through its own write
            try:
                existing = await self._read(user_id)
            except MalformedRecord as e:
                logger.warning(
                    "Existing session record is malformed, overwriting",
                    extra={"extra_data": {"user_id": user_id, **e.to_dict()}}
                )
                existing = None

            now = self._clock()
            record = PersistedSessionRecord(
                user_id=user_id,
                session_data=session_data,
                fingerprint=fingerprint,
                user_agent=user_agent,
                last_accessed=now,
                created_at=existing.created_at if existing else now,
            )
            await self._write(user_id, record)
        except (PersistenceError, ValidationError) as e:
            self._log_failure("Failed to save session data", user_id, e)
            return
        except Exception as e:
            self._log_failure("Unexpected error saving session data", user_id, e)
            return

        logger.info("Session data saved to Redis", extra={"extra_data": {"user_id": user_id}})

    async def get(self, user_id: str) -> Optional[PersistedSessionRecord]:
        try:
            record = await self._read(user_id)
            if record is None:
                logger.info("No persisted session found", extra={"extra_data": {"user_id": user_id}})
                return None

            refreshed = record.model_copy(update={"last_accessed": self._clock()})
            await self._write(user_id, refreshed)
        except MalformedRecord as e:
            logger.warning(
                "Persisted session record is malformed, treating as absent",
                extra={"extra_data": {"user_id": user_id, **e.to_dict()}}
            )
            return None
        except PersistenceError as e:
            self._log_failure("Failed to retrieve session data", user_id, e)
            return None
        except Exception as e:
            self._log_failure("Unexpected error retrieving session data", user_id, e)
            return None

        logger.info("Session data retrieved from Redis", extra={"extra_data": {"user_id": user_id}})
        return refreshed

    async def delete(self, user_id: str) -> None:
        try:
            client = self._require_client()
            await self._execute("delete", user_id, client.delete, session_key(user_id))
        except Exception as e:
            self._log_failure("Failed to delete session data", user_id, e)
            return

        logger.info("Session data deleted from Redis", extra={"extra_data": {"user_id": user_id}})

    async def exists(self, user_id: str) -> bool:
        try:
            client = self._require_client()
            count = await self._execute("exists", user_id, client.exists, session_key(user_id))
        except Exception as e:
            self._log_failure("Failed to check session existence", user_id, e)
            return False
        return count == 1

    async def list_user_ids(self) -> list[str]:
        try:
            client = self._require_client()
            keys = await self._execute("scan", None, self._scan_keys, client)
        except Exception as e:
            self._log_failure("Failed to list sessions", None, e)
            return []

        user_ids = (user_id_from_key(key) for key in keys)
        # SCAN may return a key more than once
        return list(dict.fromkeys(uid for uid in user_ids if uid is not None))

    async def _scan_keys(self, client: Any) -> list[str]:
        return [
            key
            async for key in client.scan_iter(match=f"{SESSION_KEY_PREFIX}*", count=SCAN_BATCH_SIZE)
        ]
