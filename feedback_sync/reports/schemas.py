"""Weekly report result and its wire shapes.

Keys of the stored document and of the HTTP response keep the Portuguese
names used by existing report consumers (``periodo_inicio``,
``total_avaliacoes``, ...).
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from feedback_sync.feedback.schemas import Feedback


@dataclass(frozen=True)
class WeeklyReport:
    """Aggregated feedback for one weekly window.

    Attributes:
        period_start: First instant of the window (inclusive).
        period_end: Last instant of the window (inclusive).
        total_count: Number of feedback records in the window.
        average_score: Mean score, 2 decimals, rounded half-up. 0.0 when empty.
        counts_by_day: ISO date (reference zone) -> count.
        counts_by_urgency: Urgency label -> count, observed labels only.
        generated_at: When the report was computed.
        storage_location: URL of the stored document, None when nothing was stored.
    """

    period_start: datetime
    period_end: datetime
    total_count: int
    average_score: float
    generated_at: datetime
    counts_by_day: dict[str, int] = field(default_factory=dict)
    counts_by_urgency: dict[str, int] = field(default_factory=dict)
    storage_location: str | None = None

    @property
    def is_empty(self) -> bool:
        return self.total_count == 0

    def to_document(self, feedbacks: list[Feedback]) -> dict[str, Any]:
        """Build the JSON document persisted by the report store."""
        return {
            "periodo_inicio": self.period_start.isoformat(),
            "periodo_fim": self.period_end.isoformat(),
            "total_avaliacoes": self.total_count,
            "media_avaliacoes": self.average_score,
            "avaliacoes_por_dia": dict(self.counts_by_day),
            "avaliacoes_por_urgencia": dict(self.counts_by_urgency),
            "data_geracao": self.generated_at.isoformat(),
            "feedbacks": [
                {
                    "descricao": f.description,
                    "nota": f.score.value,
                    "urgencia": f.urgency.value,
                    "data_envio": f.created_at.isoformat() if f.created_at else None,
                }
                for f in feedbacks
            ],
        }

    def to_response(self) -> dict[str, Any]:
        """Summary returned to HTTP and CLI callers."""
        return {
            "periodo_inicio": self.period_start.isoformat(),
            "periodo_fim": self.period_end.isoformat(),
            "total_avaliacoes": self.total_count,
            "media_avaliacoes": self.average_score,
            "avaliacoes_por_dia": dict(self.counts_by_day),
            "avaliacoes_por_urgencia": dict(self.counts_by_urgency),
            "report_url": self.storage_location,
        }
