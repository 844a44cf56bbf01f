"""Tests for application startup against real connection settings."""

import pytest
from fastapi.testclient import TestClient

from feedback_sync.api.app import create_app
from feedback_sync.config.settings import get_settings


@pytest.fixture
def unreachable_redis(monkeypatch, tmp_path):
    """In-memory feedback store with nothing listening on the Redis port."""
    monkeypatch.setenv("FEEDBACK_STORE", "memory")
    monkeypatch.setenv("REDIS_URL", "redis://127.0.0.1:1/0")
    monkeypatch.setenv("REPORTS_STORAGE_DIR", str(tmp_path))
    monkeypatch.setenv("TRACING_ENABLED", "false")
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


class TestStartupWithoutRedis:
    """Redis being down at boot only disables alerts."""

    def test_submissions_accepted_and_health_degraded(self, unreachable_redis):
        with TestClient(create_app()) as client:
            resp = client.post("/avaliacao", json={"descricao": "Ótimo", "nota": 9})
            assert resp.status_code == 201

            # Critical: the alert cannot be queued, the submission still succeeds
            resp = client.post(
                "/avaliacao",
                json={"descricao": "Cobrança em dobro", "nota": 1, "urgencia": "HIGH"},
            )
            assert resp.status_code == 201
            assert resp.json()["status"] == "received"

            health = client.get("/health").json()
            assert health["status"] == "DEGRADED"
            assert health["components"]["redis"]["status"] == "unhealthy"
