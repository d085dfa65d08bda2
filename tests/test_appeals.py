import asyncio
from typing import Callable

from models.appeals import AppealStatus, ModerationAppealIn
from models.content import ContentCreatedEvent
from models.moderation import ActionTaken, Severity, Verdict
from models.queue import QueueType
from models.results import Err, ErrorKind, Ok

from fakes import FakeBackend


def _appeal(moderation_id: int, user_id: str = "author-1") -> ModerationAppealIn:
    return ModerationAppealIn.model_validate(
        {
            "userId": user_id,
            "moderationId": moderation_id,
            "reason": "this was satire",
            "evidence": "https://example.com/context",
            "statement": "please take another look",
        }
    )


def test_appeal_is_persisted_queued_and_recorded_in_history(
    backend: FakeBackend,
    message_event: Callable[..., ContentCreatedEvent],
    make_verdict: Callable[..., Verdict],
) -> None:
    backend.assessment.verdict = make_verdict(ActionTaken.CONTENT_REMOVED, Severity.HIGH, 0.93)
    asyncio.run(backend.services.moderation.handle_content_created(message_event()))
    [record] = backend.ledger.records.values()

    result = asyncio.run(backend.services.appeals.submit_appeal(_appeal(record.id)))

    assert isinstance(result, Ok)
    [appeal] = backend.appeals.appeals.values()
    assert appeal.status is AppealStatus.PENDING
    assert appeal.moderation_id == record.id
    [entry] = backend.queue.entries.values()
    assert entry.priority == 7
    assert entry.queue_type is QueueType.APPEAL
    history = backend.history.rows[record.id]
    assert history.appeal_submitted is True
    assert history.appeal_status is AppealStatus.PENDING
    # the strike written at enforcement time is kept
    assert history.strike_count == 2


def test_appeal_without_prior_history_creates_it(
    backend: FakeBackend,
    message_event: Callable[..., ContentCreatedEvent],
) -> None:
    asyncio.run(backend.services.moderation.handle_content_created(message_event()))
    [record] = backend.ledger.records.values()
    assert record.id not in backend.history.rows

    asyncio.run(backend.services.appeals.submit_appeal(_appeal(record.id)))

    history = backend.history.rows[record.id]
    assert history.user_id == record.author_id
    assert history.appeal_submitted is True


def test_appeal_for_unknown_moderation_is_rejected(backend: FakeBackend) -> None:
    result = asyncio.run(backend.services.appeals.submit_appeal(_appeal(404)))

    assert isinstance(result, Err)
    assert result.kind is ErrorKind.MODERATION_NOT_FOUND
    assert not backend.appeals.appeals
    assert not backend.queue.entries
    assert not backend.history.rows
