import logging
from dataclasses import dataclass
from typing import Optional

from pydantic import BaseModel, field_validator

from errors import QueueEntryNotFoundError, QueueEntryStateError
from models.appeals import AppealStatus
from models.queue import QueueEntryModel, QueueStatus, QueueType
from models.reports import ReportStatus
from models.results import Err, ErrorKind, Ok, Result
from repositories.appeals import AppealRepository
from repositories.history import UserModerationHistoryRepository
from repositories.moderation_records import ModerationRecordRepository
from repositories.queue import QueueRepository
from repositories.reports import ReportRepository

logger = logging.getLogger(__name__)


class ReviewResolution(BaseModel):
    appeal_status: Optional[AppealStatus] = None
    report_status: ReportStatus = ReportStatus.REVIEWED

    @field_validator("appeal_status")
    @classmethod
    def _appeal_status_is_final(cls, value: Optional[AppealStatus]) -> Optional[AppealStatus]:
        if value is AppealStatus.PENDING:
            raise ValueError("appeal_status must be approved or denied")
        return value

    @field_validator("report_status")
    @classmethod
    def _report_status_is_final(cls, value: ReportStatus) -> ReportStatus:
        if value is ReportStatus.PENDING:
            raise ValueError("report_status must be reviewed or dismissed")
        return value


@dataclass(frozen=True)
class ReviewService:
    """Boundary with the human reviewers working the escalation queue."""

    queue_repo: QueueRepository = QueueRepository()
    ledger: ModerationRecordRepository = ModerationRecordRepository()
    report_repo: ReportRepository = ReportRepository()
    appeal_repo: AppealRepository = AppealRepository()
    history_repo: UserModerationHistoryRepository = UserModerationHistoryRepository()

    async def dequeue(self) -> Optional[QueueEntryModel]:
        entry = await self.queue_repo.dequeue_highest_priority()
        if entry is not None:
            logger.info(
                "queue_entry_claimed queue_entry_id=%s moderation_id=%s priority=%s queue_type=%s",
                entry.id,
                entry.moderation_id,
                entry.priority,
                entry.queue_type.value,
            )
        return entry

    async def pending_count(self) -> int:
        return await self.queue_repo.count_by_status(QueueStatus.PENDING)

    async def resolve(self, entry_id: int, resolution: ReviewResolution) -> Result[QueueEntryModel]:
        try:
            entry = await self.queue_repo.get(entry_id)
        except QueueEntryNotFoundError:
            return Err(ErrorKind.QUEUE_ENTRY_NOT_FOUND, f"Queue entry {entry_id} does not exist")

        if entry.queue_type is QueueType.APPEAL and resolution.appeal_status is None:
            return Err(ErrorKind.INVALID_INPUT, "appeal_status is required to resolve an appeal")

        try:
            entry = await self.queue_repo.resolve(entry_id)
        except QueueEntryStateError as exc:
            return Err(ErrorKind.QUEUE_ENTRY_NOT_IN_REVIEW, str(exc))

        if entry.queue_type is QueueType.APPEAL:
            appeals = await self.appeal_repo.resolve_pending_for_moderation(
                entry.moderation_id,
                resolution.appeal_status,
            )
            await self.history_repo.set_appeal_status(entry.moderation_id, resolution.appeal_status)
            logger.info(
                "appeal_resolved queue_entry_id=%s moderation_id=%s status=%s appeals=%s",
                entry.id,
                entry.moderation_id,
                resolution.appeal_status.value,
                len(appeals),
            )
        else:
            record = await self.ledger.get(entry.moderation_id)
            reports = await self.report_repo.resolve_pending_for_content(
                record.content_id,
                record.content_kind,
                resolution.report_status,
            )
            logger.info(
                "escalation_resolved queue_entry_id=%s moderation_id=%s report_status=%s reports=%s",
                entry.id,
                entry.moderation_id,
                resolution.report_status.value,
                len(reports),
            )
        return Ok(entry)
