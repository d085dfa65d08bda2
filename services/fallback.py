import logging
from dataclasses import dataclass
from typing import Optional

from models.content import ContentItem
from models.moderation import ActionTaken, ModerationRecordModel, Severity, Verdict
from models.queue import SYSTEM_ERROR_PRIORITY, QueueEntryModel, QueueType
from repositories.moderation_records import ModerationRecordRepository
from repositories.queue import QueueRepository

logger = logging.getLogger(__name__)

FALLBACK_CONFIDENCE = 0.1
FALLBACK_FLAG = "assessment unavailable — requires manual review"
FALLBACK_ESCALATION_REASON = "moderation system error"

FALLBACK_VERDICT = Verdict(
    action_taken=ActionTaken.MANUAL_REVIEW,
    severity=Severity.MEDIUM,
    confidence=FALLBACK_CONFIDENCE,
    flags=[FALLBACK_FLAG],
    is_appropriate=False,
)


@dataclass(frozen=True)
class FallbackHandler:
    """Fails closed when no verdict could be obtained.

    The item is recorded as inappropriate pending a human decision and put
    on the escalated queue. Nothing is enforced on the content itself.
    """

    ledger: ModerationRecordRepository = ModerationRecordRepository()
    queue_repo: QueueRepository = QueueRepository()

    async def handle(self, item: ContentItem) -> tuple[ModerationRecordModel, Optional[QueueEntryModel]]:
        record, created = await self.ledger.create_record(item, FALLBACK_VERDICT, auto_actioned=False)
        if not created:
            logger.info(
                "fallback_skipped reason=record_exists moderation_id=%s content_id=%s",
                record.id,
                item.content_id,
            )
            return record, None

        entry = await self.queue_repo.enqueue(
            record.id,
            QueueType.ESCALATED,
            SYSTEM_ERROR_PRIORITY,
            FALLBACK_ESCALATION_REASON,
        )
        logger.warning(
            "fallback_escalated moderation_id=%s content_id=%s content_kind=%s queue_entry_id=%s",
            record.id,
            item.content_id,
            item.content_kind,
            entry.id,
        )
        return record, entry
