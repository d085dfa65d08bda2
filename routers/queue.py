from fastapi import APIRouter, HTTPException, Request, Response, status
from pydantic import BaseModel

from models.queue import QueueEntryModel
from models.results import Err, ErrorKind
from services.review import ReviewResolution


router = APIRouter(prefix="/queue", tags=["queue"])

_ERROR_STATUS = {
    ErrorKind.QUEUE_ENTRY_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.QUEUE_ENTRY_NOT_IN_REVIEW: status.HTTP_409_CONFLICT,
    ErrorKind.INVALID_INPUT: status.HTTP_422_UNPROCESSABLE_ENTITY,
}


class QueueStatsResponse(BaseModel):
    pending: int


@router.get("/stats", response_model=QueueStatsResponse)
async def queue_stats(http_request: Request) -> QueueStatsResponse:
    services = http_request.app.state.services
    return QueueStatsResponse(pending=await services.review.pending_count())


@router.post(
    "/dequeue",
    response_model=QueueEntryModel,
    responses={204: {"description": "Queue is empty"}},
    summary="Claim the most urgent pending entry",
)
async def dequeue(http_request: Request):
    services = http_request.app.state.services
    entry = await services.review.dequeue()
    if entry is None:
        return Response(status_code=status.HTTP_204_NO_CONTENT)
    return entry


@router.post("/{entry_id}/resolve", response_model=QueueEntryModel)
async def resolve(entry_id: int, resolution: ReviewResolution, http_request: Request) -> QueueEntryModel:
    services = http_request.app.state.services
    result = await services.review.resolve(entry_id, resolution)
    if isinstance(result, Err):
        raise HTTPException(status_code=_ERROR_STATUS.get(result.kind, 400), detail=result.message)
    return result.value
