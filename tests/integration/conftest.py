"""
Integration test configuration and fixtures.

API tests run against the in-memory Redis double from the shared
conftest. Tests that need a real server are skipped unless one is
configured.

Environment Variables:
- TEST_REDIS_URL: Redis URL of a disposable test instance, including the
  logical database (e.g. redis://localhost:6379/15). Session keys in that
  database are deleted after each test.
"""
import os
from dataclasses import dataclass, field
from typing import AsyncGenerator

import pytest
import pytest_asyncio

from config.settings import Settings
from session.connector import RedisConnector
from session.redis_store import SESSION_KEY_PREFIX


@dataclass
class RedisTestConfig:
    """Connection parameters for the optional real Redis instance."""
    url: str = field(default_factory=lambda: os.getenv("TEST_REDIS_URL", ""))

    @property
    def is_configured(self) -> bool:
        return bool(self.url)

    def to_settings(self) -> Settings:
        return Settings(
            _env_file=None,
            enable_session_persistence=True,
            redis_url=self.url,
            redis_max_reconnect_attempts=3,
        )


@pytest.fixture(scope="session")
def redis_test_config() -> RedisTestConfig:
    return RedisTestConfig()


@pytest_asyncio.fixture
async def live_connector(redis_test_config) -> AsyncGenerator[RedisConnector, None]:
    """Connector against a real Redis; session keys are removed afterwards."""
    if not redis_test_config.is_configured:
        pytest.skip("TEST_REDIS_URL not set")

    connector = RedisConnector()
    await connector.initialize(redis_test_config.to_settings())
    if not connector.is_ready():
        await connector.shutdown()
        pytest.skip("Test Redis instance is not reachable")

    yield connector

    keys = [key async for key in connector.client.scan_iter(match=f"{SESSION_KEY_PREFIX}*")]
    if keys:
        await connector.client.delete(*keys)
    await connector.shutdown()
