"""
Integration tests against a real Redis instance.

Skipped unless TEST_REDIS_URL points at a disposable server.
"""
import json

import pytest

from session.persistence import SessionPersistenceService
from session.redis_store import session_key

pytestmark = pytest.mark.integration

THIRTY_DAYS_SECONDS = 30 * 24 * 60 * 60


@pytest.mark.asyncio
async def test_save_get_delete_round_trip(live_connector, sample_session_data):
    service = SessionPersistenceService(live_connector)

    await service.save("it-user-1", sample_session_data, user_agent="UA/it")
    record = await service.get("it-user-1")

    assert record is not None
    assert record.user_agent == "UA/it"
    assert await service.exists("it-user-1") is True
    assert "it-user-1" in await service.list_user_ids()

    await service.delete("it-user-1")

    assert await service.get("it-user-1") is None
    assert await service.exists("it-user-1") is False


@pytest.mark.asyncio
async def test_ttl_and_wire_shape(live_connector, sample_session_data):
    service = SessionPersistenceService(live_connector)
    client = live_connector.client

    await service.save("it-user-2", sample_session_data)
    await client.expire(session_key("it-user-2"), 60)
    await service.get("it-user-2")

    ttl = await client.ttl(session_key("it-user-2"))
    stored = json.loads(await client.get(session_key("it-user-2")))

    assert THIRTY_DAYS_SECONDS - 10 <= ttl <= THIRTY_DAYS_SECONDS
    assert stored["userId"] == "it-user-2"
    assert stored["sessionData"] == sample_session_data
