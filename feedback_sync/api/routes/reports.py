"""On-demand weekly report endpoint."""

import structlog
from fastapi import APIRouter, Depends

from feedback_sync.api.dependencies import get_generate_weekly_report
from feedback_sync.api.models import ErrorResponse, WeeklyReportResponse
from feedback_sync.reports.service import GenerateWeeklyReport

logger = structlog.get_logger(__name__)
router = APIRouter()


@router.post(
    "/relatorio",
    response_model=WeeklyReportResponse,
    responses={
        503: {"model": ErrorResponse, "description": "Feedback or report storage failed"},
    },
    summary="Generate weekly report",
    description=(
        "Aggregate the previous week's feedback and store the report. "
        "The same run is normally scheduled with `feedback-sync weekly-report`."
    ),
)
async def generate_weekly_report(
    generate: GenerateWeeklyReport = Depends(get_generate_weekly_report),
) -> WeeklyReportResponse:
    report = await generate.execute()

    logger.info(
        "Weekly report generated",
        total=report.total_count,
        average=report.average_score,
        report_url=report.storage_location,
    )
    return WeeklyReportResponse(**report.to_response())
