from fastapi import APIRouter, HTTPException, Request

from models.moderation import ModerationRecordModel


router = APIRouter(prefix="/moderation", tags=["moderation"])


@router.get("/{content_kind}/{content_id}", response_model=ModerationRecordModel)
async def get_moderation_record(content_kind: str, content_id: str, http_request: Request) -> ModerationRecordModel:
    services = http_request.app.state.services
    record = await services.ledger.find_active_record(content_id, content_kind)
    if record is None:
        raise HTTPException(status_code=404, detail="Moderation record not found")
    return record
