"""Feedback persistence port.

``FeedbackStore`` is what the ingestion and report pipelines depend on.
``FeedbackRepository`` (PostgreSQL) is the production adapter;
``InMemoryFeedbackStore`` backs tests and local runs without a database.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any

from feedback_sync.feedback.mapper import feedback_to_record, record_to_feedback
from feedback_sync.feedback.schemas import Feedback, as_aware

logger = logging.getLogger(__name__)


class FeedbackStore(ABC):
    """Durable storage for feedback records."""

    @abstractmethod
    async def save(self, feedback: Feedback) -> None:
        """Upsert a feedback by id, back-filling id/created_at if unset.

        Raises:
            PersistenceError: If the record could not be written.
        """

    @abstractmethod
    async def find_by_period(self, start: datetime, end: datetime) -> list[Feedback]:
        """Return feedback with ``start <= created_at <= end``, newest first.

        Raises:
            PersistenceError: If the store could not be queried.
        """


class InMemoryFeedbackStore(FeedbackStore):
    """Feedback store kept in a dict, keyed by id.

    Records are kept in their row form (see ``mapper``) so reads
    go through the same mapping as the database adapter.
    """

    def __init__(self) -> None:
        self._records: dict[str, dict[str, Any]] = {}
        self._lock = asyncio.Lock()

    async def save(self, feedback: Feedback) -> None:
        feedback.backfill_identity()
        async with self._lock:
            self._records[feedback.id] = feedback_to_record(feedback)
        logger.debug("Stored feedback %s in memory", feedback.id)

    async def find_by_period(self, start: datetime, end: datetime) -> list[Feedback]:
        start, end = as_aware(start), as_aware(end)
        async with self._lock:
            matches = [
                record_to_feedback(r)
                for r in self._records.values()
                if start <= r["created_at"] <= end
            ]
        matches.sort(key=lambda f: f.created_at, reverse=True)
        return matches

    def __len__(self) -> int:
        return len(self._records)
