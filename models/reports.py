from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class ReportStatus(str, Enum):
    PENDING = "pending"
    REVIEWED = "reviewed"
    DISMISSED = "dismissed"


class UserReportIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    reporter_id: str = Field(..., alias="reporterId", min_length=1)
    reported_content_id: str = Field(..., alias="reportedContentId", min_length=1)
    reported_content_kind: str = Field(..., alias="reportedContentType", min_length=1)
    reported_user_id: str = Field(..., alias="reportedUserId", min_length=1)
    category: str = Field(..., min_length=1)
    reason: Optional[str] = None
    context: Optional[str] = None


class UserReportModel(BaseModel):
    id: int
    reporter_id: str
    reported_content_id: str
    reported_content_kind: str
    reported_user_id: str
    category: str
    reason: Optional[str] = None
    context: Optional[str] = None
    status: ReportStatus
    created_at: datetime
