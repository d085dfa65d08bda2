import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Optional

from clients.assessment import AssessmentClient
from errors import AssessmentError, EnforcementError, InvalidContentEventError
from models.content import ContentCreatedEvent, ContentItem
from models.moderation import ActionTaken, ModerationRecordModel, Severity
from models.queue import (
    REVIEW_DEFAULT_PRIORITY,
    REVIEW_HIGH_SEVERITY_PRIORITY,
    SYSTEM_ERROR_PRIORITY,
    QueueEntryModel,
    QueueType,
)
from models.results import Err, ErrorKind, Ok, Result
from repositories.content import ContentRepository
from repositories.history import UserModerationHistoryRepository
from repositories.moderation_records import ModerationRecordRepository
from repositories.queue import QueueRepository
from services.enforcement import EnforcementEngine
from services.fallback import FallbackHandler
from services.normalizer import ContentNormalizer

logger = logging.getLogger(__name__)

REVIEW_REQUESTED_REASON = "assessment requested manual review"
ENFORCEMENT_FAILED_REASON = "enforcement failed"

STRIKE_TTL = timedelta(days=30)
SHADOW_BAN_TTL = timedelta(hours=24)
RESTRICTION_TTL = timedelta(days=7)
STRIKES_BY_SEVERITY = {Severity.CRITICAL: 3, Severity.HIGH: 2}


class IngestionOutcome(str, Enum):
    SKIPPED_UNSUPPORTED = "skipped_unsupported"
    SKIPPED_EMPTY = "skipped_empty"
    CONTENT_NOT_FOUND = "content_not_found"
    ALREADY_MODERATED = "already_moderated"
    ASSESSED = "assessed"
    FALLBACK = "fallback"


@dataclass(frozen=True)
class IngestionResult:
    outcome: IngestionOutcome
    record: Optional[ModerationRecordModel] = None
    queue_entry: Optional[QueueEntryModel] = None

    @property
    def degraded(self) -> bool:
        return self.outcome is IngestionOutcome.FALLBACK


@dataclass(frozen=True)
class ModerationService:
    assessment_client: AssessmentClient
    ledger: ModerationRecordRepository = ModerationRecordRepository()
    queue_repo: QueueRepository = QueueRepository()
    history_repo: UserModerationHistoryRepository = UserModerationHistoryRepository()
    content_repo: ContentRepository = ContentRepository()
    normalizer: ContentNormalizer = field(default_factory=ContentNormalizer)
    enforcement: EnforcementEngine = field(default_factory=EnforcementEngine)
    fallback: FallbackHandler = field(default_factory=FallbackHandler)

    async def handle_content_created(self, event: ContentCreatedEvent) -> Result[IngestionResult]:
        try:
            item = self.normalizer.normalize(event)
        except InvalidContentEventError as exc:
            logger.warning("ingestion_rejected content_kind=%s error=%s", event.content_kind, exc)
            return Err(ErrorKind.INVALID_INPUT, str(exc))

        if item is None:
            return Ok(IngestionResult(IngestionOutcome.SKIPPED_UNSUPPORTED))

        result = await self.moderate(item)
        return Ok(result, degraded=result.degraded)

    async def reassess(self, content_id: str, content_kind: str) -> IngestionResult:
        """Moderate content that is already stored, loading it through the registry."""
        rule = self.normalizer.registry.get(content_kind)
        if rule is None:
            logger.warning("reassess_skipped reason=unsupported_kind content_kind=%s", content_kind)
            return IngestionResult(IngestionOutcome.SKIPPED_UNSUPPORTED)

        record = await self.content_repo.get_record(rule, content_id)
        if record is None:
            logger.warning(
                "reassess_skipped reason=content_not_found content_id=%s content_kind=%s",
                content_id,
                content_kind,
            )
            return IngestionResult(IngestionOutcome.CONTENT_NOT_FOUND)

        try:
            item = self.normalizer.normalize_record(content_kind, record)
        except InvalidContentEventError as exc:
            logger.warning("reassess_skipped reason=invalid_record content_id=%s error=%s", content_id, exc)
            return IngestionResult(IngestionOutcome.CONTENT_NOT_FOUND)
        if item is None:
            return IngestionResult(IngestionOutcome.SKIPPED_UNSUPPORTED)
        return await self.moderate(item)

    async def moderate(self, item: ContentItem) -> IngestionResult:
        if item.is_empty:
            logger.info(
                "moderation_skipped reason=empty content_id=%s content_kind=%s",
                item.content_id,
                item.content_kind,
            )
            return IngestionResult(IngestionOutcome.SKIPPED_EMPTY)

        existing = await self.ledger.find_active_record(item.content_id, item.content_kind)
        if existing is not None:
            logger.info(
                "moderation_skipped reason=already_moderated moderation_id=%s content_id=%s",
                existing.id,
                item.content_id,
            )
            entry = await self.enforce(existing)
            return IngestionResult(IngestionOutcome.ALREADY_MODERATED, existing, entry)

        try:
            verdict = await self.assessment_client.assess(item)
        except AssessmentError:
            record, entry = await self.fallback.handle(item)
            return IngestionResult(IngestionOutcome.FALLBACK, record, entry)

        record, created = await self.ledger.create_record(item, verdict, auto_actioned=True)
        if not created:
            logger.info(
                "moderation_race_lost moderation_id=%s content_id=%s content_kind=%s",
                record.id,
                item.content_id,
                item.content_kind,
            )
            entry = await self.enforce(record)
            return IngestionResult(IngestionOutcome.ALREADY_MODERATED, record, entry)

        review_entry = await self._queue_for_review(record)
        enforcement_entry = await self.enforce(record)
        await self._record_strike(record)

        logger.info(
            "moderation_completed moderation_id=%s content_id=%s action=%s severity=%s confidence=%.3f",
            record.id,
            record.content_id,
            record.action_taken.value,
            record.severity.value,
            record.confidence,
        )
        return IngestionResult(IngestionOutcome.ASSESSED, record, review_entry or enforcement_entry)

    async def enforce(self, record: ModerationRecordModel) -> Optional[QueueEntryModel]:
        """Apply an unstamped record's action. A failure is escalated, not raised."""
        if not record.needs_enforcement:
            return None
        try:
            await self.enforcement.apply(record)
        except EnforcementError as exc:
            logger.error(
                "enforcement_failed moderation_id=%s content_id=%s error=%s",
                record.id,
                record.content_id,
                exc,
            )
            return await self.queue_repo.enqueue(
                record.id,
                QueueType.ESCALATED,
                SYSTEM_ERROR_PRIORITY,
                ENFORCEMENT_FAILED_REASON,
            )
        await self.ledger.mark_enforced(record.id)
        return None

    async def _queue_for_review(self, record: ModerationRecordModel) -> Optional[QueueEntryModel]:
        if record.action_taken is not ActionTaken.MANUAL_REVIEW:
            return None
        priority = (
            REVIEW_HIGH_SEVERITY_PRIORITY
            if record.severity in (Severity.HIGH, Severity.CRITICAL)
            else REVIEW_DEFAULT_PRIORITY
        )
        return await self.queue_repo.enqueue(record.id, QueueType.STANDARD, priority, REVIEW_REQUESTED_REASON)

    async def _record_strike(self, record: ModerationRecordModel) -> None:
        if record.is_appropriate or record.action_taken is ActionTaken.NONE:
            return

        now = datetime.now(timezone.utc)
        shadow_ban_expires_at = None
        restriction_expires_at = None
        if record.action_taken is ActionTaken.SHADOW_BAN:
            shadow_ban_expires_at = now + SHADOW_BAN_TTL
        elif record.action_taken is ActionTaken.CONTENT_REMOVED and record.severity is Severity.CRITICAL:
            restriction_expires_at = now + RESTRICTION_TTL

        history = await self.history_repo.record_strike(
            user_id=record.author_id,
            moderation_id=record.id,
            strike_count=STRIKES_BY_SEVERITY.get(record.severity, 1),
            strike_severity=record.severity,
            strike_expires_at=now + STRIKE_TTL,
            shadow_ban_expires_at=shadow_ban_expires_at,
            restriction_expires_at=restriction_expires_at,
        )
        logger.info(
            "strike_recorded user_id=%s moderation_id=%s strikes=%s shadow_banned=%s restricted=%s",
            history.user_id,
            record.id,
            history.strike_count,
            history.is_shadow_banned,
            history.is_restricted,
        )
