"""
Data models for persisted browser session state.

Field names follow Python conventions; the camelCase aliases are the
wire names stored in Redis and exchanged with the browser engine.
"""

from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


def utc_now() -> datetime:
    """Return the current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


class SessionData(BaseModel):
    """
    Client-visible browser state captured at a save point.

    Attributes:
        cookies: Ordered list of cookie objects as produced by the browser.
        local_storage: Origin -> (key -> value) mapping of localStorage.
        session_storage: Origin -> (key -> value) mapping of sessionStorage.

    Unknown fields are kept as-is so that newer browser engines can add
    state without it being dropped on the way through Redis.
    """

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    cookies: list[dict[str, Any]] = Field(default_factory=list)
    local_storage: dict[str, dict[str, Any]] = Field(
        default_factory=dict,
        alias="localStorage"
    )
    session_storage: dict[str, dict[str, Any]] = Field(
        default_factory=dict,
        alias="sessionStorage"
    )


class PersistedSessionRecord(BaseModel):
    """
    The record stored under one user id.

    Attributes:
        user_id: Opaque identifier of the logical user; unique key of the record.
        session_data: Cookies and storage captured at the last save.
        fingerprint: Optional browser fingerprint attributes.
        user_agent: Optional user agent string.
        last_accessed: Time of the most recent successful read or write.
        created_at: Time of the first write for this user id.
    """

    model_config = ConfigDict(populate_by_name=True)

    user_id: str = Field(alias="userId")
    session_data: SessionData = Field(alias="sessionData")
    fingerprint: Optional[dict[str, Any]] = None
    user_agent: Optional[str] = Field(default=None, alias="userAgent")
    last_accessed: datetime = Field(alias="lastAccessed")
    created_at: datetime = Field(alias="createdAt")

    @field_validator("last_accessed", "created_at")
    @classmethod
    def ensure_utc(cls, v: datetime) -> datetime:
        """Treat naive timestamps as UTC and normalize aware ones to UTC."""
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v.astimezone(timezone.utc)
