from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from models.moderation import Severity


class AppealStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    DENIED = "denied"


class ModerationAppealIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    user_id: str = Field(..., alias="userId", min_length=1)
    moderation_id: int = Field(..., alias="moderationId")
    reason: str = Field(..., min_length=1)
    evidence: Optional[str] = None
    statement: Optional[str] = None


class ModerationAppealModel(BaseModel):
    id: int
    user_id: str
    moderation_id: int
    reason: str
    evidence: Optional[str] = None
    statement: Optional[str] = None
    status: AppealStatus
    created_at: datetime


class UserModerationHistoryModel(BaseModel):
    id: int
    user_id: str
    moderation_id: int
    strike_count: int = 0
    strike_severity: Optional[Severity] = None
    strike_expires_at: Optional[datetime] = None
    is_shadow_banned: bool = False
    shadow_ban_expires_at: Optional[datetime] = None
    is_restricted: bool = False
    restriction_expires_at: Optional[datetime] = None
    appeal_submitted: bool = False
    appeal_status: Optional[AppealStatus] = None
    created_at: datetime
