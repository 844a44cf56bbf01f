"""Admin notification for critical feedback.

``NotifyAdmin`` is the consumer side of the critical-alert flow. It is
stateless, so any number of workers may run it, and a duplicate delivery
only produces a duplicate message.
"""

import logging
from datetime import datetime, tzinfo

from feedback_sync.alerts.notifiers import AdminNotifier
from feedback_sync.errors import NotificationError
from feedback_sync.feedback.schemas import MAX_SCORE, Clock, Feedback, local_now

logger = logging.getLogger(__name__)

ALERT_HEADER = "ALERT: Critical feedback received"

_TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%S"


def build_admin_message(
    feedback: Feedback,
    now: datetime,
    tz: tzinfo | None = None,
) -> str:
    """Render the plain-text alert for a critical feedback.

    The timestamp is the feedback's creation time, or ``now`` when the
    feedback has none, shown as a local date-time in ``tz`` (system local
    zone by default).
    """
    sent_at = feedback.created_at or now
    lines = [
        ALERT_HEADER,
        "",
        f"ID: {feedback.id}",
        f"Description: {feedback.description}",
        f"Score: {feedback.score.value}/{MAX_SCORE}",
        f"Urgency: {feedback.urgency.value}",
        f"Sent at: {sent_at.astimezone(tz).strftime(_TIMESTAMP_FORMAT)}",
    ]
    return "\n".join(lines) + "\n"


class NotifyAdmin:
    """Formats a critical feedback and delivers it through an AdminNotifier."""

    def __init__(
        self,
        notifier: AdminNotifier,
        clock: Clock = local_now,
        tz: tzinfo | None = None,
    ) -> None:
        self._notifier = notifier
        self._clock = clock
        self._tz = tz

    async def execute(self, feedback: Feedback) -> None:
        """
        Send the admin alert for one critical feedback.

        Raises:
            NotificationError: If the notifier failed, whatever the cause.
        """
        logger.info(
            "Notifying admin about feedback %s (score=%s, urgency=%s)",
            feedback.id,
            feedback.score.value,
            feedback.urgency.value,
        )
        message = build_admin_message(feedback, self._clock(), self._tz)

        try:
            await self._notifier.send(message)
        except NotificationError as e:
            logger.error("Admin notification for %s failed: %s", feedback.id, e)
            raise
        except Exception as e:
            logger.error(
                "Unexpected error notifying admin about %s: %s",
                feedback.id,
                e,
                exc_info=True,
            )
            raise NotificationError(f"Failed to notify admin: {e}") from e

        logger.info("Admin notified about feedback %s via %s", feedback.id, self._notifier.name)
