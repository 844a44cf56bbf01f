"""
Prometheus metrics for monitoring the feedback pipeline.

Defines and exposes metrics for:
- Feedback submissions and critical alerts
- Admin notification delivery
- Weekly report generation
- Queue depth, reclaim, and dead letter counts

Metrics are exposed via HTTP endpoint for Prometheus scraping.
"""

import logging

from prometheus_client import (
    REGISTRY,
    Counter,
    Gauge,
    Histogram,
    start_http_server,
)

from feedback_sync.config.settings import get_settings

logger = logging.getLogger(__name__)

# Buckets for latency histograms (in seconds)
LATENCY_BUCKETS = (0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0)


class MetricsCollector:
    """
    Prometheus metrics collector for the feedback-sync pipeline.

    Usage:
        metrics = get_metrics()
        metrics.start_server()

        metrics.record_submission(urgency="HIGH", critical=True)
        metrics.record_notification(status="sent", latency=0.2)
    """

    def __init__(self):
        """Initialize Prometheus metrics."""

        # Ingestion
        self.feedback_submitted = Counter(
            "feedback_sync_feedback_submitted_total",
            "Total number of feedback records persisted",
            ["urgency"],
        )

        self.feedback_critical = Counter(
            "feedback_sync_feedback_critical_total",
            "Total number of critical feedback records",
        )

        self.alert_publish_failures = Counter(
            "feedback_sync_alert_publish_failures_total",
            "Critical alerts that could not be published",
        )

        self.submission_latency = Histogram(
            "feedback_sync_submission_latency_seconds",
            "Time to validate, persist, and publish a submission",
            buckets=LATENCY_BUCKETS,
        )

        # Admin notifications
        self.notifications = Counter(
            "feedback_sync_admin_notifications_total",
            "Admin notification attempts",
            ["status"],  # sent, failed
        )

        self.notification_latency = Histogram(
            "feedback_sync_admin_notification_latency_seconds",
            "Time to deliver an admin notification",
            buckets=LATENCY_BUCKETS,
        )

        # Weekly reports
        self.reports_generated = Counter(
            "feedback_sync_reports_generated_total",
            "Weekly report runs",
            ["outcome"],  # stored, empty, failed
        )

        self.report_feedback_count = Gauge(
            "feedback_sync_report_feedback_count",
            "Number of feedback records in the last generated report",
        )

        # Queue metrics
        self.queue_depth = Gauge(
            "feedback_sync_queue_depth",
            "Number of pending (unacknowledged) messages",
            ["stream"],
        )

        self.pending_reclaimed = Counter(
            "feedback_sync_queue_pending_reclaimed_total",
            "Total messages reclaimed from pending state",
            ["queue"],
        )

        self.dlq_max_retries = Counter(
            "feedback_sync_queue_dlq_max_retries_total",
            "Total messages moved to DLQ after max delivery attempts",
            ["queue"],
        )

        logger.info("Prometheus metrics initialized")

    def start_server(self, port: int | None = None) -> None:
        """
        Start Prometheus metrics HTTP server.

        Args:
            port: Port to expose metrics on (default from settings)
        """
        settings = get_settings()
        port = port or settings.metrics_port

        start_http_server(port, registry=REGISTRY)
        logger.info(f"Prometheus metrics server started on port {port}")

    # Convenience methods

    def record_submission(
        self,
        urgency: str,
        critical: bool,
        latency: float | None = None,
    ) -> None:
        """
        Record a persisted feedback submission.

        Args:
            urgency: Urgency label (LOW, MEDIUM, HIGH)
            critical: Whether the score fell in the critical range
            latency: Optional end-to-end latency in seconds
        """
        self.feedback_submitted.labels(urgency=urgency).inc()
        if critical:
            self.feedback_critical.inc()
        if latency is not None:
            self.submission_latency.observe(latency)

    def record_publish_failure(self) -> None:
        """Record a critical alert that was not published."""
        self.alert_publish_failures.inc()

    def record_notification(self, status: str, latency: float | None = None) -> None:
        """
        Record an admin notification attempt.

        Args:
            status: Delivery status (sent, failed)
            latency: Optional delivery latency in seconds
        """
        self.notifications.labels(status=status).inc()
        if latency is not None:
            self.notification_latency.observe(latency)

    def record_report(self, outcome: str, feedback_count: int = 0) -> None:
        """
        Record a weekly report run.

        Args:
            outcome: Run outcome (stored, empty, failed)
            feedback_count: Number of feedback records aggregated
        """
        self.reports_generated.labels(outcome=outcome).inc()
        if outcome != "failed":
            self.report_feedback_count.set(feedback_count)

    def set_queue_depth(self, stream: str, depth: int) -> None:
        """
        Set queue depth metric.

        Args:
            stream: Stream name
            depth: Number of messages
        """
        self.queue_depth.labels(stream=stream).set(depth)


# Global metrics instance
_metrics: MetricsCollector | None = None


def get_metrics() -> MetricsCollector:
    """Get global metrics collector instance."""
    global _metrics
    if _metrics is None:
        _metrics = MetricsCollector()
    return _metrics
