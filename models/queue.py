from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel

REPORT_PRIORITY = 9
SYSTEM_ERROR_PRIORITY = 8
APPEAL_PRIORITY = 7
REVIEW_HIGH_SEVERITY_PRIORITY = 8
REVIEW_DEFAULT_PRIORITY = 5


class QueueType(str, Enum):
    ESCALATED = "escalated"
    APPEAL = "appeal"
    STANDARD = "standard"


class QueueStatus(str, Enum):
    PENDING = "pending"
    IN_REVIEW = "in_review"
    RESOLVED = "resolved"


class QueueEntryModel(BaseModel):
    id: int
    moderation_id: int
    priority: int
    queue_type: QueueType
    escalation_reason: Optional[str] = None
    status: QueueStatus
    created_at: datetime
    picked_at: Optional[datetime] = None
    resolved_at: Optional[datetime] = None
