from datetime import datetime
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator, model_validator


class Severity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ActionTaken(str, Enum):
    NONE = "none"
    WARNING = "warning"
    CONTENT_REMOVED = "content_removed"
    SHADOW_BAN = "shadow_ban"
    MANUAL_REVIEW = "manual_review"


ENFORCEABLE_ACTIONS = frozenset({ActionTaken.CONTENT_REMOVED, ActionTaken.SHADOW_BAN})


class Verdict(BaseModel):
    action_taken: ActionTaken
    severity: Severity
    confidence: float = Field(..., ge=0.0, le=1.0)
    flags: list[str] = Field(default_factory=list)
    categories: list[str] = Field(default_factory=list)
    is_appropriate: Optional[bool] = None

    @field_validator("action_taken", mode="before")
    @classmethod
    def _approved_means_none(cls, value: Any) -> Any:
        if value == "approved":
            return ActionTaken.NONE
        return value

    @model_validator(mode="after")
    def _default_appropriateness(self) -> "Verdict":
        if self.is_appropriate is None:
            self.is_appropriate = self.action_taken is ActionTaken.NONE
        return self

    @property
    def requires_review(self) -> bool:
        return self.action_taken is ActionTaken.MANUAL_REVIEW


class ModerationRecordModel(BaseModel):
    id: int
    content_id: str
    content_kind: str
    author_id: str
    is_appropriate: bool
    severity: Severity
    confidence: float
    flags: list[str] = Field(default_factory=list)
    categories: list[str] = Field(default_factory=list)
    action_taken: ActionTaken
    auto_actioned: bool
    original_content: str
    media_refs: list[str] = Field(default_factory=list)
    is_active: bool = True
    enforced_at: Optional[datetime] = None
    created_at: datetime

    @property
    def needs_enforcement(self) -> bool:
        return self.action_taken in ENFORCEABLE_ACTIONS and self.enforced_at is None
