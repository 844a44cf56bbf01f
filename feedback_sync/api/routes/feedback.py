"""Feedback submission endpoint."""

import time

import structlog
from fastapi import APIRouter, Depends, status

from feedback_sync.api.dependencies import get_submit_feedback
from feedback_sync.api.models import (
    ErrorResponse,
    FeedbackCreatedResponse,
    FeedbackRequest,
)
from feedback_sync.feedback.service import SubmitFeedback

logger = structlog.get_logger(__name__)
router = APIRouter()


@router.post(
    "/avaliacao",
    response_model=FeedbackCreatedResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid feedback"},
        503: {"model": ErrorResponse, "description": "Feedback could not be stored"},
    },
    summary="Submit feedback",
    description=(
        "Store a survey answer. Scores of 3 or less also queue an admin "
        "alert; a failure to queue the alert does not fail the submission."
    ),
)
async def submit_feedback(
    request: FeedbackRequest,
    submit: SubmitFeedback = Depends(get_submit_feedback),
) -> FeedbackCreatedResponse:
    start_time = time.perf_counter()

    result = await submit.execute(
        description=request.description,
        score=request.score,
        urgency=request.urgency,
    )

    logger.info(
        "Feedback submitted",
        feedback_id=result.id,
        score=result.score,
        latency_ms=round((time.perf_counter() - start_time) * 1000, 2),
    )
    return FeedbackCreatedResponse(id=result.id, status=result.status)
