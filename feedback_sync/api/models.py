"""
Request and response models for the feedback-sync API.

Request fields accept both English and Portuguese names
(``description``/``descricao``, ``score``/``nota``, ``urgency``/``urgencia``).
"""

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class FeedbackRequest(BaseModel):
    """Request model for submitting feedback.

    Fields are optional here so that missing values reach the domain
    validation and produce its error messages.
    """

    model_config = ConfigDict(populate_by_name=True)

    description: str | None = Field(
        default=None,
        validation_alias=AliasChoices("description", "descricao"),
        description="Free-text comment (required, non-blank)",
    )
    score: int | None = Field(
        default=None,
        strict=True,
        validation_alias=AliasChoices("score", "nota"),
        description="Rating from 0 to 10; 3 or less raises an admin alert",
    )
    urgency: str | None = Field(
        default=None,
        validation_alias=AliasChoices("urgency", "urgencia"),
        description="LOW, MEDIUM or HIGH (case-insensitive, default LOW)",
    )


class FeedbackCreatedResponse(BaseModel):
    """Response model for an accepted submission."""

    id: str = Field(..., description="Server-assigned feedback id")
    status: str = Field(default="received", description="Submission status")


class WeeklyReportResponse(BaseModel):
    """Response model for an on-demand weekly report."""

    periodo_inicio: str = Field(..., description="Window start (inclusive, ISO-8601)")
    periodo_fim: str = Field(..., description="Window end (inclusive, ISO-8601)")
    total_avaliacoes: int = Field(..., description="Number of feedback records")
    media_avaliacoes: float = Field(..., description="Average score, 2 decimals")
    avaliacoes_por_dia: dict[str, int] = Field(
        default_factory=dict,
        description="Feedback count per ISO date",
    )
    avaliacoes_por_urgencia: dict[str, int] = Field(
        default_factory=dict,
        description="Feedback count per observed urgency",
    )
    report_url: str | None = Field(
        default=None,
        description="Where the stored report can be fetched; null for an empty week",
    )


class ComponentHealth(BaseModel):
    """Health status for a single infrastructure component."""

    status: str = Field(..., description="healthy or unhealthy")
    latency_ms: float | None = Field(default=None, description="Check latency")
    details: dict | None = Field(default=None, description="Error details")


class HealthResponse(BaseModel):
    """Response model for health check."""

    status: str = Field(..., description="UP, DEGRADED, or DOWN")
    service: str = Field(default="feedback-sync")
    version: str = Field(...)
    components: dict[str, ComponentHealth] = Field(default_factory=dict)


class ErrorResponse(BaseModel):
    """Response model for errors."""

    detail: str = Field(..., description="Error message")
    error_type: str = Field(default="error", description="Error type")
