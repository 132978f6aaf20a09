"""
Shared pytest fixtures and configuration for all tests.
"""
import fnmatch
import os
from datetime import datetime, timedelta, timezone
from typing import AsyncGenerator, Optional
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio

# Hypothesis configuration for property-based testing
from hypothesis import settings, Verbosity, Phase

from config.settings import Settings
from session.connector import RedisConnector

# Default profile: balanced for local development
settings.register_profile(
    "default",
    max_examples=100,
    verbosity=Verbosity.normal,
    deadline=None,  # Disable deadline for async tests
    print_blob=True,  # Print failing examples for debugging
)

# CI profile: more thorough testing for continuous integration
settings.register_profile(
    "ci",
    max_examples=200,
    verbosity=Verbosity.verbose,
    deadline=None,
    print_blob=True,
    derandomize=True,  # Reproducible results in CI
)

# Debug profile: minimal examples for quick debugging
settings.register_profile(
    "debug",
    max_examples=10,
    verbosity=Verbosity.verbose,
    deadline=None,
    print_blob=True,
    phases=[Phase.explicit, Phase.reuse, Phase.generate],  # Skip shrinking for speed
)

# Fast profile: quick smoke tests
settings.register_profile(
    "fast",
    max_examples=20,
    verbosity=Verbosity.normal,
    deadline=None,
)

settings.load_profile(os.getenv("HYPOTHESIS_PROFILE", "default"))


class FakeRedis:
    """
    In-memory stand-in for the redis.asyncio client.

    Implements the handful of commands the persistence layer issues and
    records the TTL passed to each SETEX.
    """

    def __init__(self):
        self.data: dict[str, str] = {}
        self.ttls: dict[str, int] = {}
        self.ping = AsyncMock(return_value=True)
        self.aclose = AsyncMock(return_value=None)

    async def get(self, key: str) -> Optional[str]:
        return self.data.get(key)

    async def setex(self, key: str, seconds: int, value: str) -> bool:
        self.data[key] = value
        self.ttls[key] = int(seconds)
        return True

    async def delete(self, *keys: str) -> int:
        removed = 0
        for key in keys:
            if key in self.data:
                del self.data[key]
                self.ttls.pop(key, None)
                removed += 1
        return removed

    async def exists(self, *keys: str) -> int:
        return sum(1 for key in keys if key in self.data)

    async def scan_iter(self, match: Optional[str] = None, count: Optional[int] = None):
        for key in list(self.data):
            if match is None or fnmatch.fnmatchcase(key, match):
                yield key


class FakeClock:
    """Controllable UTC clock."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


def make_settings(**overrides) -> Settings:
    """Build Settings without reading .env files, with fast retry timings."""
    values = {
        "enable_session_persistence": True,
        "redis_max_reconnect_attempts": 2,
        "redis_reconnect_max_delay_seconds": 0.01,
        "redis_health_check_interval_seconds": 60.0,
        "redis_shutdown_timeout_seconds": 0.5,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture
def fake_redis() -> FakeRedis:
    """Create an in-memory Redis double."""
    return FakeRedis()


@pytest.fixture
def mock_redis() -> MagicMock:
    """Create a mock Redis client for unit tests."""
    mock = MagicMock()
    mock.get = AsyncMock(return_value=None)
    mock.setex = AsyncMock(return_value=True)
    mock.delete = AsyncMock(return_value=1)
    mock.exists = AsyncMock(return_value=0)
    mock.ping = AsyncMock(return_value=True)
    mock.aclose = AsyncMock(return_value=None)
    return mock


@pytest.fixture
def clock() -> FakeClock:
    """A clock frozen at a fixed instant until advanced."""
    return FakeClock(datetime(2024, 1, 15, 10, 30, tzinfo=timezone.utc))


@pytest.fixture
def persistence_settings() -> Settings:
    """Settings with persistence enabled and fast reconnect timings."""
    return make_settings()


@pytest_asyncio.fixture
async def connector(fake_redis, persistence_settings) -> AsyncGenerator[RedisConnector, None]:
    """A connector initialized against the in-memory Redis double."""
    connector = RedisConnector(client_factory=lambda url, **kwargs: fake_redis)
    await connector.initialize(persistence_settings)
    yield connector
    await connector.shutdown()


@pytest_asyncio.fixture
async def disabled_connector() -> AsyncGenerator[RedisConnector, None]:
    """A connector whose master flag is off."""
    connector = RedisConnector(client_factory=MagicMock())
    await connector.initialize(make_settings(enable_session_persistence=False))
    yield connector
    await connector.shutdown()


@pytest.fixture
def sample_session_data() -> dict:
    """Sample browser state in wire shape."""
    return {
        "cookies": [
            {"name": "sid", "value": "abc123", "domain": ".example.com", "path": "/"},
            {"name": "theme", "value": "dark", "domain": "example.com", "path": "/"},
        ],
        "localStorage": {
            "https://example.com": {"cart": "[1,2,3]", "lang": "en"},
        },
        "sessionStorage": {
            "https://example.com": {"step": "2"},
        },
    }


@pytest.fixture
def sample_fingerprint() -> dict:
    """Sample fingerprint attributes."""
    return {
        "screen": {"width": 1920, "height": 1080},
        "timezone": "Europe/Berlin",
        "webgl": {"vendor": "Google Inc.", "renderer": "ANGLE"},
    }


@pytest.fixture
def settings_factory():
    """Factory for Settings with overrides, bypassing .env files."""
    return make_settings


@pytest.fixture
def fake_redis_factory():
    """The in-memory Redis double class, for tests that need fresh instances."""
    return FakeRedis
