"""
Service wiring and dependency injection for FastAPI endpoints.

``build_container`` is the composition root: it constructs every adapter and
pipeline once, at application startup, and the lifespan handler stores the
result on ``app.state.container``. Endpoint dependencies only read from it.
"""

import logging
from dataclasses import dataclass

import redis.asyncio as redis
from fastapi import Request

from feedback_sync.alerts.config import AlertConfig
from feedback_sync.alerts.publisher import AlertPublisher, QueueAlertPublisher
from feedback_sync.alerts.queue import CriticalFeedbackQueue
from feedback_sync.config.settings import Settings, get_settings
from feedback_sync.feedback.repository import FeedbackRepository
from feedback_sync.feedback.service import SubmitFeedback
from feedback_sync.feedback.store import FeedbackStore, InMemoryFeedbackStore
from feedback_sync.reports.config import ReportConfig
from feedback_sync.reports.service import GenerateWeeklyReport
from feedback_sync.reports.store import FileReportStore, ReportStore
from feedback_sync.storage.database import Database

logger = logging.getLogger(__name__)


@dataclass
class ServiceContainer:
    """Everything the HTTP layer needs, built once per process."""

    feedback_store: FeedbackStore
    publisher: AlertPublisher
    report_store: ReportStore
    submit_feedback: SubmitFeedback
    generate_weekly_report: GenerateWeeklyReport
    database: Database | None = None
    alert_queue: CriticalFeedbackQueue | None = None


async def build_container(
    settings: Settings | None = None,
    alert_config: AlertConfig | None = None,
    report_config: ReportConfig | None = None,
) -> ServiceContainer:
    """Connect infrastructure and wire the pipelines."""
    settings = settings or get_settings()
    report_config = report_config or ReportConfig()

    database: Database | None = None
    if settings.feedback_store == "postgres":
        database = Database(str(settings.database_url))
        await database.connect()
        feedback_store: FeedbackStore = FeedbackRepository(database)
    else:
        logger.warning("Using in-memory feedback store, data will not survive restarts")
        feedback_store = InMemoryFeedbackStore()

    alert_queue = CriticalFeedbackQueue(
        config=alert_config,
        redis_url=str(settings.redis_url),
    )
    try:
        await alert_queue.connect()
    except redis.RedisError as e:
        # Client stays configured; publishes fail until Redis is reachable
        logger.warning(f"Redis unavailable at startup, critical alerts will not be queued: {e}")
    except Exception:
        if database is not None:
            await database.close()
        raise
    publisher = QueueAlertPublisher(alert_queue)

    report_store = FileReportStore(config=report_config)

    return ServiceContainer(
        feedback_store=feedback_store,
        publisher=publisher,
        report_store=report_store,
        submit_feedback=SubmitFeedback(feedback_store, publisher),
        generate_weekly_report=GenerateWeeklyReport(
            feedback_store,
            report_store,
            tz=report_config.tzinfo,
        ),
        database=database,
        alert_queue=alert_queue,
    )


async def close_container(container: ServiceContainer) -> None:
    """Release connections opened by build_container."""
    if container.alert_queue is not None:
        await container.alert_queue.close()
    if container.database is not None:
        await container.database.close()


def get_container(request: Request) -> ServiceContainer:
    """The container built at startup."""
    return request.app.state.container


def get_submit_feedback(request: Request) -> SubmitFeedback:
    return get_container(request).submit_feedback


def get_generate_weekly_report(request: Request) -> GenerateWeeklyReport:
    return get_container(request).generate_weekly_report
