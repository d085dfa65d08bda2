import logging
from dataclasses import dataclass

from models.appeals import ModerationAppealIn, ModerationAppealModel, UserModerationHistoryModel
from models.queue import APPEAL_PRIORITY, QueueEntryModel, QueueType
from models.results import Err, ErrorKind, Ok, Result
from repositories.appeals import AppealRepository
from repositories.history import UserModerationHistoryRepository
from repositories.moderation_records import ModerationRecordRepository
from repositories.queue import QueueRepository

logger = logging.getLogger(__name__)

APPEAL_ESCALATION_REASON = "user appeal"


@dataclass(frozen=True)
class AppealOutcome:
    appeal: ModerationAppealModel
    queue_entry: QueueEntryModel
    history: UserModerationHistoryModel


@dataclass(frozen=True)
class AppealService:
    appeal_repo: AppealRepository = AppealRepository()
    ledger: ModerationRecordRepository = ModerationRecordRepository()
    queue_repo: QueueRepository = QueueRepository()
    history_repo: UserModerationHistoryRepository = UserModerationHistoryRepository()

    async def submit_appeal(self, submission: ModerationAppealIn) -> Result[AppealOutcome]:
        record = await self.ledger.find(submission.moderation_id)
        if record is None:
            logger.warning(
                "appeal_rejected reason=moderation_not_found moderation_id=%s user_id=%s",
                submission.moderation_id,
                submission.user_id,
            )
            return Err(
                ErrorKind.MODERATION_NOT_FOUND,
                f"Moderation record {submission.moderation_id} does not exist",
            )

        appeal = await self.appeal_repo.create(submission)
        entry = await self.queue_repo.enqueue(
            record.id,
            QueueType.APPEAL,
            APPEAL_PRIORITY,
            APPEAL_ESCALATION_REASON,
        )
        history = await self.history_repo.mark_appeal_submitted(record.author_id, record.id)

        logger.info(
            "appeal_received appeal_id=%s moderation_id=%s queue_entry_id=%s",
            appeal.id,
            record.id,
            entry.id,
        )
        return Ok(AppealOutcome(appeal=appeal, queue_entry=entry, history=history))
