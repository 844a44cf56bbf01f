"""Tests for the Prometheus metrics collector."""

from prometheus_client import REGISTRY

from feedback_sync.observability.metrics import get_metrics


def _sample(name: str, labels: dict | None = None) -> float:
    return REGISTRY.get_sample_value(name, labels or {}) or 0.0


class TestMetricsCollector:
    """Convenience methods update the underlying metrics."""

    def test_singleton(self):
        assert get_metrics() is get_metrics()

    def test_record_submission(self):
        before = _sample("feedback_sync_feedback_submitted_total", {"urgency": "HIGH"})
        before_critical = _sample("feedback_sync_feedback_critical_total")

        get_metrics().record_submission(urgency="HIGH", critical=True, latency=0.02)

        assert _sample("feedback_sync_feedback_submitted_total", {"urgency": "HIGH"}) == before + 1
        assert _sample("feedback_sync_feedback_critical_total") == before_critical + 1

    def test_non_critical_submission(self):
        before_critical = _sample("feedback_sync_feedback_critical_total")
        get_metrics().record_submission(urgency="LOW", critical=False)
        assert _sample("feedback_sync_feedback_critical_total") == before_critical

    def test_record_notification(self):
        before = _sample("feedback_sync_admin_notifications_total", {"status": "failed"})
        get_metrics().record_notification("failed")
        assert _sample("feedback_sync_admin_notifications_total", {"status": "failed"}) == before + 1

    def test_record_report(self):
        metrics = get_metrics()
        metrics.record_report("stored", feedback_count=12)
        assert _sample("feedback_sync_report_feedback_count") == 12

        # A failed run leaves the last count alone
        metrics.record_report("failed")
        assert _sample("feedback_sync_report_feedback_count") == 12

    def test_queue_depth(self):
        get_metrics().set_queue_depth("critical_feedbacks", 4)
        assert _sample("feedback_sync_queue_depth", {"stream": "critical_feedbacks"}) == 4
