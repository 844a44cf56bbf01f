"""Logging, metrics, and tracing for feedback-sync."""

from feedback_sync.observability.logging import setup_logging
from feedback_sync.observability.metrics import MetricsCollector, get_metrics

__all__ = ["MetricsCollector", "get_metrics", "setup_logging"]
