"""Critical-feedback alerting.

Components:
- AlertConfig / NotifierConfig: Pydantic settings for the queue and channels
- CriticalFeedbackQueue: Redis Stream carrying critical feedback
- AlertPublisher / QueueAlertPublisher: Producer-side port and adapter
- AdminNotifier / SendGridNotifier / WebhookNotifier / LogNotifier: Delivery channels
- NotifyAdmin: Formats and delivers one alert
- NotifyAdminWorker: Drives NotifyAdmin from the queue
"""

from feedback_sync.alerts.config import AlertConfig, NotifierConfig
from feedback_sync.alerts.notifiers import (
    AdminNotifier,
    LogNotifier,
    SendGridNotifier,
    WebhookNotifier,
    build_notifier,
)
from feedback_sync.alerts.publisher import AlertPublisher, QueueAlertPublisher
from feedback_sync.alerts.queue import CriticalFeedbackJob, CriticalFeedbackQueue
from feedback_sync.alerts.service import NotifyAdmin, build_admin_message
from feedback_sync.alerts.worker import NotifyAdminWorker

__all__ = [
    "AdminNotifier",
    "AlertConfig",
    "AlertPublisher",
    "CriticalFeedbackJob",
    "CriticalFeedbackQueue",
    "LogNotifier",
    "NotifierConfig",
    "NotifyAdmin",
    "NotifyAdminWorker",
    "QueueAlertPublisher",
    "SendGridNotifier",
    "WebhookNotifier",
    "build_admin_message",
    "build_notifier",
]
