"""Alert publishing port used by the ingestion pipeline."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

import redis.asyncio as redis

from feedback_sync.errors import NotificationError

if TYPE_CHECKING:
    from feedback_sync.alerts.queue import CriticalFeedbackQueue
    from feedback_sync.feedback.schemas import Feedback

logger = logging.getLogger(__name__)


class AlertPublisher(ABC):
    """Hands critical feedback to the alert consumer without waiting for it."""

    @abstractmethod
    async def publish_critical(self, feedback: Feedback) -> None:
        """Enqueue a critical feedback for admin notification.

        Raises:
            NotificationError: If the alert could not be enqueued.
        """


class QueueAlertPublisher(AlertPublisher):
    """Publishes critical feedback to the Redis critical-feedback stream."""

    def __init__(self, queue: CriticalFeedbackQueue) -> None:
        self._queue = queue

    async def publish_critical(self, feedback: Feedback) -> None:
        try:
            message_id = await self._queue.publish(feedback)
        except (redis.RedisError, RuntimeError) as e:
            raise NotificationError(f"Failed to enqueue critical feedback: {e}") from e
        logger.info("Queued critical feedback %s (message %s)", feedback.id, message_id)
