from typing import Optional
from fastapi import APIRouter, HTTPException, Request, status
from pydantic import BaseModel

from models.content import ContentCreatedEvent
from models.results import Err


router = APIRouter(prefix="/ingest", tags=["ingestion"])


class IngestResponse(BaseModel):
    status: str
    outcome: str
    degraded: bool
    moderation_id: Optional[int] = None
    queue_entry_id: Optional[int] = None


class AsyncIngestResponse(BaseModel):
    status: str
    message: str


@router.post("", response_model=IngestResponse, summary="Moderate newly created content")
async def ingest(event: ContentCreatedEvent, http_request: Request) -> IngestResponse:
    services = http_request.app.state.services
    result = await services.moderation.handle_content_created(event)
    if isinstance(result, Err):
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=result.message)

    ingestion = result.value
    return IngestResponse(
        status="accepted",
        outcome=ingestion.outcome.value,
        degraded=result.degraded,
        moderation_id=ingestion.record.id if ingestion.record else None,
        queue_entry_id=ingestion.queue_entry.id if ingestion.queue_entry else None,
    )


@router.post(
    "/async",
    response_model=AsyncIngestResponse,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Publish a content-created event for the moderation worker",
)
async def ingest_async(event: ContentCreatedEvent, http_request: Request) -> AsyncIngestResponse:
    kafka_client = getattr(http_request.app.state, "kafka_client", None)
    if kafka_client is None:
        raise HTTPException(status_code=503, detail="Kafka is unavailable")

    try:
        await kafka_client.send_content_created(event)
    except Exception as exc:
        raise HTTPException(status_code=500, detail="Failed to enqueue content event") from exc

    return AsyncIngestResponse(status="queued", message="Content event accepted")
