"""Shared fixtures for API tests."""

from datetime import datetime, timezone
from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from feedback_sync.alerts.publisher import AlertPublisher
from feedback_sync.api.app import create_app
from feedback_sync.api.dependencies import ServiceContainer
from feedback_sync.feedback.service import SubmitFeedback
from feedback_sync.feedback.store import InMemoryFeedbackStore
from feedback_sync.reports.service import GenerateWeeklyReport
from feedback_sync.reports.store import FileReportStore

# Monday; the report window is 2024-01-08 .. 2024-01-14
API_NOW = datetime(2024, 1, 15, 6, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def feedback_store():
    return InMemoryFeedbackStore()


@pytest.fixture
def mock_publisher():
    publisher = AsyncMock(spec=AlertPublisher)
    publisher.publish_critical = AsyncMock()
    return publisher


@pytest.fixture
def report_store(tmp_path):
    return FileReportStore(storage_dir=tmp_path, public_base_url="https://reports.example.com")


@pytest.fixture
def container(feedback_store, mock_publisher, report_store):
    """Services wired over in-memory stores, without PostgreSQL or Redis."""
    return ServiceContainer(
        feedback_store=feedback_store,
        publisher=mock_publisher,
        report_store=report_store,
        submit_feedback=SubmitFeedback(feedback_store, mock_publisher, clock=lambda: API_NOW),
        generate_weekly_report=GenerateWeeklyReport(
            feedback_store,
            report_store,
            clock=lambda: API_NOW,
            tz=timezone.utc,
        ),
    )


@pytest.fixture
def client(container):
    """FastAPI TestClient over the injected container."""
    app = create_app(container=container)
    with TestClient(app) as c:
        yield c
