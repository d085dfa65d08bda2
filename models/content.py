from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ContentItem(BaseModel):
    model_config = ConfigDict(frozen=True)

    content_id: str
    content_kind: str
    author_id: str
    text: str = ""
    media_refs: list[str] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.text.strip() and not self.media_refs


class ContentCreatedEvent(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    kind: str = Field("insert", description="Storage event kind")
    content_kind: str = Field(..., alias="contentKind", min_length=1)
    record: dict[str, Any]
