import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping, Optional

from errors import InvalidContentEventError
from models.content import ContentCreatedEvent, ContentItem

logger = logging.getLogger(__name__)

INSERT_EVENT = "insert"


@dataclass(frozen=True)
class ContentKindRule:
    """How to read one content kind out of its storage record."""

    kind: str
    table: str
    text_fields: tuple[str, ...]
    author_field: str
    media_field: Optional[str] = None
    # "is_deleted" is a boolean flag, anything else is a timestamp column
    deletion_marker: str = "deleted_at"

    def extract_text(self, record: Mapping[str, Any]) -> str:
        parts = [str(record.get(name) or "") for name in self.text_fields]
        return " ".join(parts).strip()

    def extract_media(self, record: Mapping[str, Any]) -> list[str]:
        if self.media_field is None:
            return []
        media = record.get(self.media_field) or []
        if isinstance(media, str):
            media = [media]
        return [str(url) for url in media if url]

    @property
    def deletion_marker_is_flag(self) -> bool:
        return self.deletion_marker.startswith("is_")


DEFAULT_RULES = (
    ContentKindRule(
        kind="post",
        table="community_posts",
        text_fields=("title", "content"),
        author_field="author_id",
        media_field="media_urls",
        deletion_marker="is_deleted",
    ),
    ContentKindRule(
        kind="message",
        table="community_messages",
        text_fields=("content",),
        author_field="user_id",
    ),
    ContentKindRule(
        kind="comment",
        table="post_comments",
        text_fields=("content",),
        author_field="user_id",
    ),
)


@dataclass
class ContentKindRegistry:
    rules: dict[str, ContentKindRule] = field(default_factory=dict)

    @classmethod
    def default(cls) -> "ContentKindRegistry":
        return cls.from_rules(DEFAULT_RULES)

    @classmethod
    def from_rules(cls, rules: Iterable[ContentKindRule]) -> "ContentKindRegistry":
        registry = cls()
        for rule in rules:
            registry.register(rule)
        return registry

    def register(self, rule: ContentKindRule) -> None:
        self.rules[rule.kind] = rule

    def get(self, kind: str) -> Optional[ContentKindRule]:
        return self.rules.get(kind)

    @property
    def kinds(self) -> list[str]:
        return sorted(self.rules)


@dataclass(frozen=True)
class ContentNormalizer:
    registry: ContentKindRegistry = field(default_factory=ContentKindRegistry.default)

    def normalize(self, event: ContentCreatedEvent) -> Optional[ContentItem]:
        if event.kind.lower() != INSERT_EVENT:
            logger.info("normalize_skipped reason=not_insert event_kind=%s", event.kind)
            return None
        return self.normalize_record(event.content_kind, event.record)

    def normalize_record(self, content_kind: str, record: Mapping[str, Any]) -> Optional[ContentItem]:
        rule = self.registry.get(content_kind)
        if rule is None:
            logger.warning("normalize_skipped reason=unsupported_kind content_kind=%s", content_kind)
            return None

        content_id = record.get("id")
        author_id = record.get(rule.author_field)
        if content_id in (None, "") or author_id in (None, ""):
            raise InvalidContentEventError(
                f"{content_kind} record needs 'id' and '{rule.author_field}'"
            )

        return ContentItem(
            content_id=str(content_id),
            content_kind=rule.kind,
            author_id=str(author_id),
            text=rule.extract_text(record),
            media_refs=rule.extract_media(record),
        )
