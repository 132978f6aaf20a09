"""
Hooks for the browser session lifecycle.

A live browser session that carries a user id is seeded from the
persisted record when it is created and saved back when it is released.
"""

from dataclasses import dataclass
from typing import Any, Optional

from session.models import SessionData
from session.persistence import SessionPersistenceService
from session.store import SessionDataInput


@dataclass
class SessionSeed:
    """State used to initialize a new live session for a returning user."""
    session_data: SessionData
    fingerprint: Optional[dict[str, Any]] = None
    user_agent: Optional[str] = None


async def restore_session(
    persistence: SessionPersistenceService,
    user_id: Optional[str]
) -> Optional[SessionSeed]:
    """
    Look up persisted state for a session being created.

    Returns:
        A SessionSeed when a record exists for user_id, None when no user
        id was supplied or nothing is persisted.
    """
    if not user_id:
        return None

    record = await persistence.get(user_id)
    if record is None:
        return None

    return SessionSeed(
        session_data=record.session_data,
        fingerprint=record.fingerprint,
        user_agent=record.user_agent,
    )


async def persist_session(
    persistence: SessionPersistenceService,
    user_id: Optional[str],
    session_data: SessionDataInput,
    fingerprint: Optional[dict[str, Any]] = None,
    user_agent: Optional[str] = None
) -> None:
    """Save the state of a session being released; no-op without a user id."""
    if not user_id:
        return
    await persistence.save(user_id, session_data, fingerprint, user_agent)
