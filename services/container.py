from dataclasses import dataclass
from typing import Optional

from clients.assessment import AssessmentClient
from config import Settings
from repositories.appeals import AppealRepository
from repositories.content import ContentRepository
from repositories.history import UserModerationHistoryRepository
from repositories.moderation_records import ModerationRecordRepository
from repositories.queue import QueueRepository
from repositories.reports import ReportRepository
from services.appeals import AppealService
from services.enforcement import EnforcementEngine
from services.fallback import FallbackHandler
from services.moderation import ModerationService
from services.normalizer import ContentKindRegistry, ContentNormalizer
from services.reports import ReportService
from services.review import ReviewService


@dataclass(frozen=True)
class Services:
    moderation: ModerationService
    reports: ReportService
    appeals: AppealService
    review: ReviewService
    ledger: ModerationRecordRepository


def wire_services(
    assessment_client: AssessmentClient,
    ledger: ModerationRecordRepository,
    queue_repo: QueueRepository,
    report_repo: ReportRepository,
    appeal_repo: AppealRepository,
    history_repo: UserModerationHistoryRepository,
    content_repo: ContentRepository,
    registry: Optional[ContentKindRegistry] = None,
) -> Services:
    """Assemble the services around one set of repositories and clients."""
    registry = registry or ContentKindRegistry.default()
    moderation = ModerationService(
        assessment_client=assessment_client,
        ledger=ledger,
        queue_repo=queue_repo,
        history_repo=history_repo,
        content_repo=content_repo,
        normalizer=ContentNormalizer(registry),
        enforcement=EnforcementEngine(content_repo, registry),
        fallback=FallbackHandler(ledger, queue_repo),
    )
    return Services(
        moderation=moderation,
        reports=ReportService(
            moderation=moderation,
            report_repo=report_repo,
            ledger=ledger,
            queue_repo=queue_repo,
        ),
        appeals=AppealService(
            appeal_repo=appeal_repo,
            ledger=ledger,
            queue_repo=queue_repo,
            history_repo=history_repo,
        ),
        review=ReviewService(
            queue_repo=queue_repo,
            ledger=ledger,
            report_repo=report_repo,
            appeal_repo=appeal_repo,
            history_repo=history_repo,
        ),
        ledger=ledger,
    )


def build_services(settings: Settings, registry: Optional[ContentKindRegistry] = None) -> Services:
    dsn = settings.db_dsn
    return wire_services(
        assessment_client=AssessmentClient(
            endpoint=settings.assessment_url,
            api_key=settings.assessment_api_key,
            timeout=settings.assessment_timeout_seconds,
        ),
        ledger=ModerationRecordRepository(dsn),
        queue_repo=QueueRepository(dsn),
        report_repo=ReportRepository(dsn),
        appeal_repo=AppealRepository(dsn),
        history_repo=UserModerationHistoryRepository(dsn),
        content_repo=ContentRepository(dsn),
        registry=registry,
    )
