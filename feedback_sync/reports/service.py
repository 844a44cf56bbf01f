"""Weekly feedback report generation.

Runs independently of ingestion, either from cron via
``feedback-sync weekly-report`` or on demand via ``POST /relatorio``:

    compute window -> query store -> aggregate -> store document (if any)

Nothing is retried; a failed query or write fails the run.
"""

import logging
from dataclasses import replace
from datetime import tzinfo

from feedback_sync.errors import PersistenceError
from feedback_sync.feedback.schemas import Clock, local_now
from feedback_sync.feedback.store import FeedbackStore
from feedback_sync.observability.metrics import get_metrics
from feedback_sync.reports.aggregation import (
    average_score,
    count_by_day,
    count_by_urgency,
    previous_week_window,
)
from feedback_sync.reports.schemas import WeeklyReport
from feedback_sync.reports.store import ReportStore

logger = logging.getLogger(__name__)


class GenerateWeeklyReport:
    """Aggregate last week's feedback into a stored report."""

    def __init__(
        self,
        feedback_store: FeedbackStore,
        report_store: ReportStore,
        clock: Clock = local_now,
        tz: tzinfo | None = None,
    ) -> None:
        self._feedback_store = feedback_store
        self._report_store = report_store
        self._clock = clock
        self._tz = tz

    async def execute(self) -> WeeklyReport:
        """
        Build the report for the previous ISO week.

        Returns:
            WeeklyReport. For an empty week the counts are zero, the maps are
            empty, and nothing is written to the report store.

        Raises:
            PersistenceError: If the feedback query or the report write failed
        """
        metrics = get_metrics()
        now = self._clock().astimezone(self._tz)
        period_start, period_end = previous_week_window(now.date(), self._tz)
        logger.info("Generating weekly report for %s .. %s", period_start, period_end)

        try:
            feedbacks = await self._feedback_store.find_by_period(period_start, period_end)
        except Exception as e:
            metrics.record_report("failed")
            if isinstance(e, PersistenceError):
                raise
            raise PersistenceError(f"Failed to query feedback: {e}") from e

        if not feedbacks:
            logger.warning("No feedback found between %s and %s", period_start, period_end)
            metrics.record_report("empty")
            return WeeklyReport(
                period_start=period_start,
                period_end=period_end,
                total_count=0,
                average_score=0.0,
                generated_at=now,
            )

        report = WeeklyReport(
            period_start=period_start,
            period_end=period_end,
            total_count=len(feedbacks),
            average_score=average_score(feedbacks),
            counts_by_day=count_by_day(feedbacks, self._tz),
            counts_by_urgency=count_by_urgency(feedbacks),
            generated_at=now,
        )

        try:
            key = await self._report_store.save_weekly_report(report.to_document(feedbacks))
            url = self._report_store.get_location_url(key)
        except Exception as e:
            metrics.record_report("failed")
            if isinstance(e, PersistenceError):
                raise
            raise PersistenceError(f"Failed to store weekly report: {e}") from e

        metrics.record_report("stored", feedback_count=report.total_count)
        logger.info(
            "Weekly report stored at %s (%d feedback, average %.2f)",
            url,
            report.total_count,
            report.average_score,
        )
        return replace(report, storage_location=url)
