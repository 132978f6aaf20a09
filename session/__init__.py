"""
Session persistence module for sticky browser sessions.

This module persists per-user browser state (cookies, storage,
fingerprint, user agent) in Redis so that a later browser session for
the same user can resume with identical client-visible state.
"""

from session.connector import RedisConnector
from session.lifecycle import SessionSeed, persist_session, restore_session
from session.models import PersistedSessionRecord, SessionData
from session.persistence import SessionPersistenceService
from session.redis_store import DEFAULT_SESSION_TTL, SESSION_KEY_PREFIX, RedisSessionStore
from session.store import DisabledSessionStore, SessionStore

__all__ = [
    "RedisConnector",
    "SessionPersistenceService",
    "SessionStore",
    "RedisSessionStore",
    "DisabledSessionStore",
    "SessionData",
    "PersistedSessionRecord",
    "SessionSeed",
    "restore_session",
    "persist_session",
    "DEFAULT_SESSION_TTL",
    "SESSION_KEY_PREFIX",
]
