"""Feedback ingestion.

``SubmitFeedback`` validates a submission, persists it, and hands critical
ones to the alert publisher. Persistence is the only step that can fail the
submission; alert publishing is best effort.
"""

import logging
import time
from dataclasses import dataclass
from datetime import datetime

from feedback_sync.alerts.publisher import AlertPublisher
from feedback_sync.errors import PersistenceError, ValidationError
from feedback_sync.feedback.schemas import Clock, Feedback, Score, Urgency, local_now
from feedback_sync.feedback.store import FeedbackStore
from feedback_sync.observability.metrics import get_metrics
from feedback_sync.observability.tracing import get_tracer, traced

logger = logging.getLogger(__name__)

STATUS_RECEIVED = "received"


@dataclass(frozen=True)
class SubmissionResult:
    """Outcome of an accepted submission."""

    id: str
    score: int
    description: str
    created_at: datetime
    status: str = STATUS_RECEIVED


class SubmitFeedback:
    """Validate, persist, and (when critical) publish one feedback."""

    def __init__(
        self,
        store: FeedbackStore,
        publisher: AlertPublisher,
        clock: Clock = local_now,
    ) -> None:
        self._store = store
        self._publisher = publisher
        self._clock = clock
        self._tracer = get_tracer("feedback_sync.feedback")

    async def execute(
        self,
        description: str | None,
        score: int | None,
        urgency: str | None = None,
    ) -> SubmissionResult:
        """
        Accept one submission.

        Args:
            description: Free-text comment (required, non-blank)
            score: Rating in [0, 10] (required)
            urgency: LOW, MEDIUM or HIGH, any case; LOW when omitted

        Returns:
            SubmissionResult with the server-assigned id and timestamp

        Raises:
            ValidationError: Bad input; nothing was stored
            PersistenceError: The store failed; nothing was published
        """
        start = time.perf_counter()

        if description is None or not str(description).strip():
            raise ValidationError("Description is required")
        if score is None:
            raise ValidationError("Score is required")

        feedback = Feedback.create(
            description=description,
            score=Score(score),
            urgency=Urgency.parse(urgency),
            clock=self._clock,
        )

        with traced(
            self._tracer,
            "submit_feedback",
            {
                "feedback.id": feedback.id,
                "feedback.score": feedback.score.value,
                "feedback.critical": feedback.is_critical,
            },
        ):
            await self._persist(feedback)
            if feedback.is_critical:
                await self._publish(feedback)

        get_metrics().record_submission(
            urgency=feedback.urgency.value,
            critical=feedback.is_critical,
            latency=time.perf_counter() - start,
        )
        logger.info(
            "Feedback %s received (score=%s, urgency=%s)",
            feedback.id,
            feedback.score.value,
            feedback.urgency.value,
        )

        return SubmissionResult(
            id=feedback.id,
            score=feedback.score.value,
            description=feedback.description,
            created_at=feedback.created_at,
        )

    async def _persist(self, feedback: Feedback) -> None:
        try:
            await self._store.save(feedback)
        except PersistenceError:
            raise
        except Exception as e:
            logger.error("Failed to persist feedback %s: %s", feedback.id, e, exc_info=True)
            raise PersistenceError(f"Failed to persist feedback: {e}") from e

    async def _publish(self, feedback: Feedback) -> None:
        try:
            await self._publisher.publish_critical(feedback)
        except Exception as e:
            get_metrics().record_publish_failure()
            logger.error(
                "Failed to publish critical alert for feedback %s: %s",
                feedback.id,
                e,
            )
