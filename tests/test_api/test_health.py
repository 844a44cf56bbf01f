"""Tests for the health endpoint."""

from unittest.mock import AsyncMock

import pytest

from feedback_sync import __version__


def _component(healthy: bool | Exception):
    component = AsyncMock()
    if isinstance(healthy, Exception):
        component.health_check = AsyncMock(side_effect=healthy)
    else:
        component.health_check = AsyncMock(return_value=healthy)
    return component


class TestHealthEndpoint:
    """Status reflects the database and Redis checks."""

    def test_in_memory_is_up(self, client):
        resp = client.get("/health")

        assert resp.status_code == 200
        data = resp.json()
        assert data["status"] == "UP"
        assert data["service"] == "feedback-sync"
        assert data["version"] == __version__
        assert data["components"] == {}

    def test_all_healthy(self, client, container):
        container.database = _component(True)
        container.alert_queue = _component(True)

        data = client.get("/health").json()

        assert data["status"] == "UP"
        assert data["components"]["database"]["status"] == "healthy"
        assert data["components"]["redis"]["status"] == "healthy"
        assert data["components"]["redis"]["latency_ms"] >= 0

    def test_redis_down_is_degraded(self, client, container):
        container.database = _component(True)
        container.alert_queue = _component(False)

        resp = client.get("/health")

        assert resp.status_code == 200
        assert resp.json()["status"] == "DEGRADED"

    @pytest.mark.parametrize("db_state", [False, ConnectionError("Connection refused")])
    def test_database_down(self, client, container, db_state):
        container.database = _component(db_state)
        container.alert_queue = _component(True)

        data = client.get("/health").json()

        assert data["status"] == "DOWN"
        assert data["components"]["database"]["status"] == "unhealthy"

    def test_error_details_reported(self, client, container):
        container.database = _component(ConnectionError("Connection refused"))

        data = client.get("/health").json()
        assert data["components"]["database"]["details"] == {"error": "Connection refused"}

    def test_root(self, client):
        data = client.get("/").json()
        assert data["service"] == "feedback-sync"
        assert data["docs"] == "/docs"
