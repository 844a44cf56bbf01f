"""
Redis Streams queue for critical feedback.

The API publishes one message per critical submission; notify workers
consume them through a shared consumer group. Messages carry the full
feedback payload so the worker never has to read the database.
"""

import json
import logging
import time
from dataclasses import dataclass, field

from feedback_sync.alerts.config import AlertConfig
from feedback_sync.config.settings import get_settings
from feedback_sync.feedback.schemas import Feedback
from feedback_sync.observability.tracing import TRACE_FIELDS, inject_trace_context
from feedback_sync.queues import BaseRedisQueue, QueueConfig, StreamConfig

logger = logging.getLogger(__name__)


@dataclass
class CriticalFeedbackJob:
    """Critical feedback read from the queue."""

    feedback: Feedback
    message_id: str
    published_at: float | None = None
    retry_count: int = 0
    trace_fields: dict[str, str] = field(default_factory=dict)


class CriticalFeedbackQueue(BaseRedisQueue[CriticalFeedbackJob]):
    """
    Redis Streams wrapper for critical feedback alerts.

    Usage:
        queue = CriticalFeedbackQueue()
        await queue.connect()

        await queue.publish(feedback)

        async for job in queue.consume():
            await notify(job.feedback)
            await queue.ack(job.message_id)
    """

    def __init__(
        self,
        config: AlertConfig | None = None,
        redis_url: str | None = None,
    ):
        self._config = config or AlertConfig()

        super().__init__(
            redis_url=redis_url or str(get_settings().redis_url),
            queue_config=QueueConfig(
                idle_timeout_ms=self._config.idle_timeout_ms,
                max_delivery_attempts=self._config.max_delivery_attempts,
            ),
        )

    def _get_stream_config(self) -> StreamConfig:
        return StreamConfig(
            stream_name=self._config.stream_name,
            consumer_group=self._config.consumer_group,
            dlq_stream_name=self._config.dlq_stream_name,
            max_stream_length=self._config.max_stream_length,
        )

    def _get_consumer_prefix(self) -> str:
        return "notify_worker"

    def _parse_job(self, message_id: str, fields: dict[str, str]) -> CriticalFeedbackJob:
        published_at = fields.get("published_at")
        trace_fields = {k: fields[k] for k in TRACE_FIELDS if k in fields}
        return CriticalFeedbackJob(
            feedback=Feedback.from_dict(json.loads(fields["feedback"])),
            message_id=message_id,
            published_at=float(published_at) if published_at else None,
            trace_fields=trace_fields,
        )

    def _set_job_retry_count(self, job: CriticalFeedbackJob, retry_count: int) -> None:
        job.retry_count = retry_count

    async def publish(self, feedback: Feedback) -> str:
        """
        Publish a critical feedback to the stream.

        Args:
            feedback: Persisted feedback (id and created_at set)

        Returns:
            Redis message ID
        """
        fields = {
            "feedback": json.dumps(feedback.to_dict()),
            "published_at": str(time.time()),
            **inject_trace_context(),
        }
        message_id = await self.redis.xadd(
            name=self.stream_config.stream_name,
            fields=fields,
            maxlen=self.stream_config.max_stream_length,
            approximate=True,
        )

        logger.debug(f"Published critical feedback {feedback.id} as {message_id}")
        return str(message_id)
