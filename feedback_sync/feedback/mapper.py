"""Row mapping between ``Feedback`` and the ``feedbacks`` table."""

from collections.abc import Mapping
from typing import Any

from feedback_sync.feedback.schemas import Feedback


def feedback_to_record(feedback: Feedback) -> dict[str, Any]:
    """Flatten a Feedback into column values."""
    return {
        "id": feedback.id,
        "description": feedback.description,
        "score": feedback.score.value,
        "urgency": feedback.urgency.value,
        "created_at": feedback.created_at,
    }


def record_to_feedback(row: Mapping[str, Any]) -> Feedback:
    """Rebuild a Feedback from a row (asyncpg Record or dict)."""
    return Feedback.rehydrate(
        id=row["id"],
        description=row["description"],
        score=row["score"],
        urgency=row["urgency"],
        created_at=row["created_at"],
    )
