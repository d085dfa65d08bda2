import logging
from dataclasses import dataclass
from typing import Optional

from models.content import ContentItem
from models.moderation import ModerationRecordModel
from models.queue import REPORT_PRIORITY, QueueEntryModel, QueueType
from models.reports import UserReportIn, UserReportModel
from models.results import Ok, Result
from repositories.moderation_records import ModerationRecordRepository
from repositories.queue import QueueRepository
from repositories.reports import ReportRepository
from services.moderation import IngestionOutcome, IngestionResult, ModerationService

logger = logging.getLogger(__name__)

# reassessment produced no verdict, so the report needs a human
UNASSESSABLE_OUTCOMES = frozenset(
    {
        IngestionOutcome.CONTENT_NOT_FOUND,
        IngestionOutcome.SKIPPED_UNSUPPORTED,
        IngestionOutcome.SKIPPED_EMPTY,
    }
)


@dataclass(frozen=True)
class ReportOutcome:
    report: UserReportModel
    queue_entry: Optional[QueueEntryModel] = None
    assessment: Optional[IngestionResult] = None


@dataclass(frozen=True)
class ReportService:
    moderation: ModerationService
    report_repo: ReportRepository = ReportRepository()
    ledger: ModerationRecordRepository = ModerationRecordRepository()
    queue_repo: QueueRepository = QueueRepository()

    async def submit_report(self, submission: UserReportIn) -> Result[ReportOutcome]:
        """Persist a user complaint, then escalate or assess the reported content.

        Content that already has a moderation record goes straight to the
        human queue at report priority. Content nobody has judged yet is
        assessed once, exactly as if it had just been created. Content that
        cannot be assessed at all is escalated through the fallback handler.
        """
        report = await self.report_repo.create(submission)
        logger.info(
            "report_received report_id=%s content_id=%s content_kind=%s category=%s",
            report.id,
            report.reported_content_id,
            report.reported_content_kind,
            report.category,
        )

        existing = await self.ledger.find_active_record(
            submission.reported_content_id,
            submission.reported_content_kind,
        )
        if existing is not None:
            entry = await self._escalate(report, existing)
            await self.moderation.enforce(existing)
            return Ok(ReportOutcome(report=report, queue_entry=entry))

        assessment = await self.moderation.reassess(
            submission.reported_content_id,
            submission.reported_content_kind,
        )
        if assessment.outcome in UNASSESSABLE_OUTCOMES:
            logger.warning(
                "report_unassessable report_id=%s outcome=%s",
                report.id,
                assessment.outcome.value,
            )
            assessment = await self._fall_back(report)

        degraded = assessment.outcome not in (IngestionOutcome.ASSESSED, IngestionOutcome.ALREADY_MODERATED)
        if degraded:
            logger.warning(
                "report_assessment_degraded report_id=%s outcome=%s",
                report.id,
                assessment.outcome.value,
            )
        return Ok(
            ReportOutcome(report=report, queue_entry=assessment.queue_entry, assessment=assessment),
            degraded=degraded,
        )

    async def _escalate(self, report: UserReportModel, record: ModerationRecordModel) -> QueueEntryModel:
        entry = await self.queue_repo.enqueue(
            record.id,
            QueueType.ESCALATED,
            REPORT_PRIORITY,
            f"User report: {report.category}",
        )
        logger.info(
            "report_escalated report_id=%s moderation_id=%s queue_entry_id=%s",
            report.id,
            record.id,
            entry.id,
        )
        return entry

    async def _fall_back(self, report: UserReportModel) -> IngestionResult:
        item = ContentItem(
            content_id=report.reported_content_id,
            content_kind=report.reported_content_kind,
            author_id=report.reported_user_id,
        )
        record, entry = await self.moderation.fallback.handle(item)
        if entry is None:
            # someone else recorded the content meanwhile
            entry = await self._escalate(report, record)
        return IngestionResult(IngestionOutcome.FALLBACK, record, entry)
