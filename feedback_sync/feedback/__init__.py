"""Survey feedback domain and ingestion.

Components:
- Score / Urgency: Validated value objects
- Feedback: Entity persisted by the store and carried on the alert queue
- FeedbackStore / InMemoryFeedbackStore: Persistence port and reference store
- FeedbackRepository: PostgreSQL store
- SubmitFeedback: Validate, persist, and publish critical feedback
"""

from feedback_sync.feedback.repository import FeedbackRepository
from feedback_sync.feedback.schemas import (
    CRITICAL_SCORE_THRESHOLD,
    Feedback,
    Score,
    Urgency,
)
from feedback_sync.feedback.service import SubmissionResult, SubmitFeedback
from feedback_sync.feedback.store import FeedbackStore, InMemoryFeedbackStore

__all__ = [
    "CRITICAL_SCORE_THRESHOLD",
    "Feedback",
    "FeedbackRepository",
    "FeedbackStore",
    "InMemoryFeedbackStore",
    "Score",
    "SubmissionResult",
    "SubmitFeedback",
    "Urgency",
]
