"""
Unit tests for the health check service.

Persistence is optional, so the session store can only ever degrade
the reported status; it never makes the service unhealthy.
"""

import asyncio
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest

from health.service import DependencyHealth, HealthCheckService, HealthStatus


def make_connector(**health_check_kwargs) -> MagicMock:
    connector = MagicMock()
    connector.health_check = AsyncMock(**health_check_kwargs)
    return connector


class TestCheckReadiness:
    """Tests for HealthCheckService.check_readiness."""

    @pytest.mark.asyncio
    async def test_disabled_persistence_is_healthy_without_dependencies(self):
        """Test that the store is not reported when persistence is off."""
        connector = make_connector(return_value=False)
        service = HealthCheckService(connector=connector, persistence_enabled=False)

        status = await service.check_readiness()

        assert status.status == "healthy"
        assert status.dependencies == []
        connector.health_check.assert_not_called()

    @pytest.mark.asyncio
    async def test_reachable_store_is_healthy(self):
        service = HealthCheckService(connector=make_connector(return_value=True), persistence_enabled=True)

        status = await service.check_readiness()

        assert status.status == "healthy"
        assert [dep.name for dep in status.dependencies] == ["session_store"]
        assert status.dependencies[0].healthy is True
        assert status.dependencies[0].error is None

    @pytest.mark.asyncio
    async def test_unreachable_store_is_degraded(self):
        service = HealthCheckService(connector=make_connector(return_value=False), persistence_enabled=True)

        status = await service.check_readiness()

        assert status.status == "degraded"
        assert status.dependencies[0].healthy is False
        assert "returned False" in status.dependencies[0].error

    @pytest.mark.asyncio
    async def test_failing_check_is_degraded(self):
        connector = make_connector(side_effect=RuntimeError("boom"))
        service = HealthCheckService(connector=connector, persistence_enabled=True)

        status = await service.check_readiness()

        assert status.status == "degraded"
        assert "boom" in status.dependencies[0].error

    @pytest.mark.asyncio
    async def test_slow_check_times_out_as_degraded(self):
        async def slow():
            await asyncio.sleep(1)
            return True

        connector = make_connector(side_effect=slow)
        service = HealthCheckService(connector=connector, persistence_enabled=True, check_timeout=0.01)

        status = await service.check_readiness()

        assert status.status == "degraded"
        assert "timed out" in status.dependencies[0].error

    @pytest.mark.asyncio
    async def test_missing_connector_is_degraded(self):
        service = HealthCheckService(connector=None, persistence_enabled=True)

        status = await service.check_readiness()

        assert status.status == "degraded"

    @pytest.mark.asyncio
    async def test_against_live_connector(self, connector):
        service = HealthCheckService(connector=connector, persistence_enabled=True)

        status = await service.check_readiness()

        assert status.status == "healthy"


class TestSimpleChecks:
    """Tests for liveness and basic health."""

    @pytest.mark.asyncio
    async def test_liveness(self):
        result = await HealthCheckService().check_liveness()

        assert result["status"] == "alive"
        assert result["timestamp"].endswith("Z")

    @pytest.mark.asyncio
    async def test_basic_health(self):
        result = await HealthCheckService().check_health()

        assert result["status"] == "ok"


class TestSerialization:
    """Tests for the to_dict helpers."""

    def test_health_status_to_dict(self):
        status = HealthStatus(
            status="degraded",
            timestamp=datetime(2024, 1, 15, 10, 30, tzinfo=timezone.utc),
            dependencies=[DependencyHealth("session_store", False, 12.3456, error="down")],
        )

        assert status.to_dict() == {
            "status": "degraded",
            "timestamp": "2024-01-15T10:30:00Z",
            "dependencies": [
                {"name": "session_store", "healthy": False, "response_time_ms": 12.35, "error": "down"}
            ],
        }
