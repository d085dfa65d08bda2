import asyncio
from datetime import datetime, timezone

import pytest

from errors import EnforcementError
from models.moderation import ActionTaken, ModerationRecordModel, Severity
from services.enforcement import EnforcementEngine

from fakes import FakeBackend


def _record(kind: str, content_id: str, action: ActionTaken) -> ModerationRecordModel:
    return ModerationRecordModel(
        id=1,
        content_id=content_id,
        content_kind=kind,
        author_id="u-1",
        is_appropriate=False,
        severity=Severity.HIGH,
        confidence=0.9,
        action_taken=action,
        auto_actioned=True,
        original_content="text",
        created_at=datetime.now(timezone.utc),
    )


@pytest.fixture
def engine(backend: FakeBackend) -> EnforcementEngine:
    return EnforcementEngine(backend.content, backend.registry)


def test_removal_is_idempotent_for_timestamp_marker(backend: FakeBackend, engine: EnforcementEngine) -> None:
    rule = backend.rule("comment")
    backend.content.add(rule, {"id": "c-1", "user_id": "u-1", "content": "x"})
    record = _record("comment", "c-1", ActionTaken.CONTENT_REMOVED)

    assert asyncio.run(engine.apply(record)) is True
    deleted_at = backend.content.row(rule, "c-1")["deleted_at"]
    assert asyncio.run(engine.apply(record)) is False

    assert backend.content.row(rule, "c-1")["deleted_at"] == deleted_at


def test_removal_is_idempotent_for_flag_marker(backend: FakeBackend, engine: EnforcementEngine) -> None:
    rule = backend.rule("post")
    backend.content.add(rule, {"id": "p-1", "author_id": "u-1", "title": "t"})
    record = _record("post", "p-1", ActionTaken.CONTENT_REMOVED)

    asyncio.run(engine.apply(record))
    asyncio.run(engine.apply(record))

    row = backend.content.row(rule, "p-1")
    assert row["is_deleted"] is True
    assert row["is_shadow_banned"] is False


def test_shadow_ban_is_idempotent(backend: FakeBackend, engine: EnforcementEngine) -> None:
    rule = backend.rule("message")
    backend.content.add(rule, {"id": "m-1", "user_id": "u-1", "content": "x"})
    record = _record("message", "m-1", ActionTaken.SHADOW_BAN)

    assert asyncio.run(engine.apply(record)) is True
    banned_at = backend.content.row(rule, "m-1")["shadow_banned_at"]
    assert asyncio.run(engine.apply(record)) is False

    row = backend.content.row(rule, "m-1")
    assert row["shadow_banned_at"] == banned_at
    assert row["deleted_at"] is None


@pytest.mark.parametrize("action", [ActionTaken.NONE, ActionTaken.WARNING, ActionTaken.MANUAL_REVIEW])
def test_non_enforcing_actions_do_not_touch_content(
    backend: FakeBackend,
    engine: EnforcementEngine,
    action: ActionTaken,
) -> None:
    rule = backend.rule("message")
    backend.content.add(rule, {"id": "m-2", "user_id": "u-1", "content": "x"})

    assert asyncio.run(engine.apply(_record("message", "m-2", action))) is False

    row = backend.content.row(rule, "m-2")
    assert row["deleted_at"] is None
    assert row["is_shadow_banned"] is False


def test_unknown_kind_cannot_be_enforced(engine: EnforcementEngine) -> None:
    with pytest.raises(EnforcementError):
        asyncio.run(engine.apply(_record("livestream", "l-1", ActionTaken.CONTENT_REMOVED)))
