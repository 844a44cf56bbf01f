"""PostgreSQL feedback store.

Writes are upserts keyed by id, so a retried save never creates a second
row. Reads for the weekly report filter on ``created_at`` inclusively on
both ends.
"""

import logging
from datetime import datetime

import asyncpg

from feedback_sync.errors import PersistenceError, ValidationError
from feedback_sync.feedback.mapper import feedback_to_record, record_to_feedback
from feedback_sync.feedback.schemas import Feedback, as_aware
from feedback_sync.feedback.store import FeedbackStore
from feedback_sync.storage.database import Database

logger = logging.getLogger(__name__)

# Driver and connection failures
_DB_ERRORS = (asyncpg.PostgresError, asyncpg.InterfaceError, OSError, RuntimeError)

CREATE_TABLES_SQL = """
CREATE TABLE IF NOT EXISTS feedbacks (
    id          TEXT PRIMARY KEY,
    description TEXT NOT NULL,
    score       SMALLINT NOT NULL CHECK (score BETWEEN 0 AND 10),
    urgency     TEXT NOT NULL CHECK (urgency IN ('LOW', 'MEDIUM', 'HIGH')),
    created_at  TIMESTAMPTZ NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_feedbacks_created_at ON feedbacks (created_at);
"""


class FeedbackRepository(FeedbackStore):
    """Feedback store backed by the ``feedbacks`` table."""

    def __init__(self, database: Database) -> None:
        self._db = database

    async def create_tables(self) -> None:
        """Create the feedbacks table and its index if missing."""
        await self._db.execute(CREATE_TABLES_SQL)
        logger.info("Feedback tables created")

    async def save(self, feedback: Feedback) -> None:
        feedback.backfill_identity()
        record = feedback_to_record(feedback)
        sql = """
            INSERT INTO feedbacks (id, description, score, urgency, created_at)
            VALUES ($1, $2, $3, $4, $5)
            ON CONFLICT (id) DO UPDATE SET
                description = EXCLUDED.description,
                score = EXCLUDED.score,
                urgency = EXCLUDED.urgency,
                created_at = EXCLUDED.created_at
        """
        try:
            await self._db.execute(
                sql,
                record["id"],
                record["description"],
                record["score"],
                record["urgency"],
                record["created_at"],
            )
        except _DB_ERRORS as e:
            logger.error("Failed to save feedback %s: %s", feedback.id, e)
            raise PersistenceError(f"Failed to save feedback: {e}") from e

        logger.debug("Saved feedback %s", feedback.id)

    async def find_by_period(self, start: datetime, end: datetime) -> list[Feedback]:
        sql = """
            SELECT id, description, score, urgency, created_at
            FROM feedbacks
            WHERE created_at BETWEEN $1 AND $2
            ORDER BY created_at DESC
        """
        try:
            rows = await self._db.fetch(sql, as_aware(start), as_aware(end))
        except _DB_ERRORS as e:
            logger.error("Failed to query feedback between %s and %s: %s", start, end, e)
            raise PersistenceError(f"Failed to query feedback: {e}") from e

        try:
            return [record_to_feedback(row) for row in rows]
        except ValidationError as e:
            raise PersistenceError(f"Stored feedback is invalid: {e}") from e
