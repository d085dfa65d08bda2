from typing import Optional
from fastapi import APIRouter, Request, status
from pydantic import BaseModel

from models.reports import UserReportIn


router = APIRouter(prefix="/reports", tags=["reports"])


class ReportResponse(BaseModel):
    report_id: int
    status: str
    outcome: str
    degraded: bool
    moderation_id: Optional[int] = None
    queue_entry_id: Optional[int] = None


@router.post("", response_model=ReportResponse, status_code=status.HTTP_201_CREATED)
async def submit_report(report: UserReportIn, http_request: Request) -> ReportResponse:
    services = http_request.app.state.services
    result = await services.reports.submit_report(report)

    outcome = result.value
    if outcome.assessment is None:
        outcome_name = "escalated"
        moderation_id = outcome.queue_entry.moderation_id if outcome.queue_entry else None
    else:
        outcome_name = outcome.assessment.outcome.value
        moderation_id = outcome.assessment.record.id if outcome.assessment.record else None

    return ReportResponse(
        report_id=outcome.report.id,
        status=outcome.report.status.value,
        outcome=outcome_name,
        degraded=result.degraded,
        moderation_id=moderation_id,
        queue_entry_id=outcome.queue_entry.id if outcome.queue_entry else None,
    )
