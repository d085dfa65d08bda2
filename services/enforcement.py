import logging
from dataclasses import dataclass, field

from errors import EnforcementError
from models.moderation import ActionTaken, ModerationRecordModel
from repositories.content import ContentRepository
from services.normalizer import ContentKindRegistry

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EnforcementEngine:
    content_repo: ContentRepository = ContentRepository()
    registry: ContentKindRegistry = field(default_factory=ContentKindRegistry.default)

    async def apply(self, record: ModerationRecordModel) -> bool:
        """Apply the record's action to its content. Returns True if anything changed."""
        if record.action_taken not in (ActionTaken.CONTENT_REMOVED, ActionTaken.SHADOW_BAN):
            return False

        rule = self.registry.get(record.content_kind)
        if rule is None:
            raise EnforcementError(f"No content rule for kind {record.content_kind!r}")

        if record.action_taken is ActionTaken.CONTENT_REMOVED:
            changed = await self.content_repo.soft_delete(rule, record.content_id)
        else:
            changed = await self.content_repo.shadow_ban(rule, record.content_id)

        logger.info(
            "enforcement_applied moderation_id=%s content_id=%s content_kind=%s action=%s changed=%s",
            record.id,
            record.content_id,
            record.content_kind,
            record.action_taken.value,
            changed,
        )
        return changed
