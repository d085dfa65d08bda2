from fastapi import APIRouter, HTTPException, Request, status
from pydantic import BaseModel

from models.appeals import ModerationAppealIn
from models.results import Err, ErrorKind


router = APIRouter(prefix="/appeals", tags=["appeals"])


class AppealResponse(BaseModel):
    appeal_id: int
    status: str
    moderation_id: int
    queue_entry_id: int


@router.post("", response_model=AppealResponse, status_code=status.HTTP_201_CREATED)
async def submit_appeal(appeal: ModerationAppealIn, http_request: Request) -> AppealResponse:
    services = http_request.app.state.services
    result = await services.appeals.submit_appeal(appeal)
    if isinstance(result, Err):
        if result.kind is ErrorKind.MODERATION_NOT_FOUND:
            raise HTTPException(status_code=404, detail=result.message)
        raise HTTPException(status_code=422, detail=result.message)

    outcome = result.value
    return AppealResponse(
        appeal_id=outcome.appeal.id,
        status=outcome.appeal.status.value,
        moderation_id=outcome.appeal.moderation_id,
        queue_entry_id=outcome.queue_entry.id,
    )
