"""
Notify worker - delivers admin alerts for critical feedback.

Runs as a standalone service that:
1. Consumes critical feedback from the Redis stream
2. Formats and sends the admin alert via NotifyAdmin
3. Acknowledges delivered alerts

A failed delivery is left unacknowledged. The queue redelivers it once it
has been idle for ``ALERTS_IDLE_TIMEOUT_MS`` and moves it to the dead letter
stream after ``ALERTS_MAX_DELIVERY_ATTEMPTS`` deliveries.
"""

import asyncio
import time
from typing import Any

import structlog

from feedback_sync.alerts.config import AlertConfig
from feedback_sync.alerts.queue import CriticalFeedbackJob, CriticalFeedbackQueue
from feedback_sync.alerts.service import NotifyAdmin
from feedback_sync.errors import NotificationError
from feedback_sync.observability.logging import bind_context, clear_context
from feedback_sync.observability.metrics import get_metrics
from feedback_sync.observability.tracing import extract_trace_context, get_tracer, traced

logger = structlog.get_logger(__name__)


class NotifyAdminWorker:
    """
    Worker that turns queued critical feedback into admin notifications.

    Usage:
        worker = NotifyAdminWorker(queue, NotifyAdmin(build_notifier()))
        await worker.start()  # Runs until stopped
    """

    def __init__(
        self,
        queue: CriticalFeedbackQueue,
        notify_admin: NotifyAdmin,
        config: AlertConfig | None = None,
    ):
        self._config = config or AlertConfig()
        self._queue = queue
        self._notify_admin = notify_admin
        self._tracer = get_tracer("feedback_sync.alerts")
        self._running = False
        self._busy = False
        self._loop_task: asyncio.Task | None = None
        self._delivered = 0
        self._failed = 0

    async def start(self) -> None:
        """Connect to the queue and process alerts until stop() is called."""
        self._running = True
        logger.info("Starting notify worker", stream=self._config.stream_name)

        await self._queue.connect()
        try:
            self._loop_task = asyncio.create_task(self._process_loop())
            await self._loop_task
        except asyncio.CancelledError:
            logger.info("Notify worker cancelled")
        except Exception as e:
            logger.error("Notify worker error", error=str(e))
            raise
        finally:
            await self._cleanup()

    async def stop(self) -> None:
        """Stop after the current alert, or right away when waiting for one."""
        logger.info("Stopping notify worker", busy=self._busy)
        self._running = False
        if self._loop_task is not None and not self._busy:
            self._loop_task.cancel()

    async def _cleanup(self) -> None:
        await self._queue.close()
        self._running = False
        self._loop_task = None
        logger.info(
            "Notify worker cleaned up",
            delivered=self._delivered,
            failed=self._failed,
        )

    async def _process_loop(self) -> None:
        metrics = get_metrics()

        async for job in self._queue.consume(
            count=self._config.worker_batch_size,
            block_ms=self._config.worker_block_ms,
        ):
            self._busy = True
            try:
                await self.process_job(job)
            finally:
                self._busy = False

            try:
                pending = await self._queue.get_pending_count()
                metrics.set_queue_depth(self._config.stream_name, pending)
            except Exception:
                pass  # Don't fail on metrics

            if not self._running:
                break

    async def process_job(self, job: CriticalFeedbackJob) -> bool:
        """
        Deliver one alert.

        Returns:
            True if the alert was delivered and acknowledged, False if it was
            left pending for redelivery.
        """
        metrics = get_metrics()
        start = time.perf_counter()
        bind_context(feedback_id=job.feedback.id, message_id=job.message_id)

        try:
            with traced(
                self._tracer,
                "notify_admin",
                {
                    "feedback.id": job.feedback.id or "",
                    "feedback.score": job.feedback.score.value,
                    "queue.retry_count": job.retry_count,
                },
                parent_context=extract_trace_context(job.trace_fields),
            ):
                await self._notify_admin.execute(job.feedback)
        except NotificationError as e:
            self._failed += 1
            metrics.record_notification("failed")
            logger.warning(
                "Admin notification failed, leaving alert pending for retry",
                error=str(e),
                retry_count=job.retry_count,
                max_delivery_attempts=self._config.max_delivery_attempts,
            )
            return False
        finally:
            clear_context()

        await self._queue.ack(job.message_id)
        self._delivered += 1
        metrics.record_notification("sent", latency=time.perf_counter() - start)
        return True

    @property
    def is_running(self) -> bool:
        """Check if worker is running."""
        return self._running

    async def health_check(self) -> dict[str, Any]:
        """Report worker and queue health."""
        return {
            "running": self._running,
            "queue_healthy": await self._queue.health_check(),
            "delivered": self._delivered,
            "failed": self._failed,
        }
