import asyncio
import os
import threading
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

import psycopg
import pytest

from db.connection import get_connection
from db.migrate import apply_migrations
from errors import ModerationRecordNotFoundError, QueueEntryStateError
from models.content import ContentItem
from models.moderation import ActionTaken, Severity, Verdict
from models.queue import QueueStatus, QueueType
from repositories.content import ContentRepository
from repositories.moderation_records import ModerationRecordRepository
from repositories.queue import QueueRepository
from services.normalizer import ContentKindRegistry

TEST_DB_DSN = os.getenv("TEST_DB_DSN")
MIGRATIONS_DIR = Path(__file__).resolve().parent.parent / "db"
TABLES = (
    "moderation_queue",
    "user_reports",
    "moderation_appeals",
    "user_moderation_history",
    "content_moderation",
    "community_posts",
    "community_messages",
    "post_comments",
)

VERDICT = Verdict(action_taken=ActionTaken.CONTENT_REMOVED, severity=Severity.HIGH, confidence=0.9)


@pytest.fixture
def dsn() -> str:
    if not TEST_DB_DSN:
        pytest.skip("TEST_DB_DSN is not set")
    try:
        apply_migrations(MIGRATIONS_DIR, TEST_DB_DSN)
    except psycopg.OperationalError as exc:
        pytest.skip(f"Postgres is unreachable: {exc}")
    with get_connection(TEST_DB_DSN) as conn:
        conn.execute(f"TRUNCATE {', '.join(TABLES)} RESTART IDENTITY CASCADE")
        conn.commit()
    return TEST_DB_DSN


def _item(content_id: str = "msg-1") -> ContentItem:
    return ContentItem(content_id=content_id, content_kind="message", author_id="author-1", text="hello")


def test_create_record_is_insert_or_fetch(dsn: str) -> None:
    ledger = ModerationRecordRepository(dsn=dsn)

    first, first_created = asyncio.run(ledger.create_record(_item(), VERDICT, auto_actioned=True))
    second, second_created = asyncio.run(ledger.create_record(_item(), VERDICT, auto_actioned=False))

    assert first_created is True
    assert second_created is False
    assert second.id == first.id
    assert second.auto_actioned is True
    assert first.action_taken is ActionTaken.CONTENT_REMOVED
    assert first.enforced_at is None


def test_mark_enforced_keeps_first_timestamp(dsn: str) -> None:
    ledger = ModerationRecordRepository(dsn=dsn)
    record, _ = asyncio.run(ledger.create_record(_item(), VERDICT, auto_actioned=True))

    first = asyncio.run(ledger.mark_enforced(record.id))
    second = asyncio.run(ledger.mark_enforced(record.id))

    assert first.enforced_at is not None
    assert second.enforced_at == first.enforced_at


def test_queue_orders_by_priority_then_age(dsn: str) -> None:
    ledger = ModerationRecordRepository(dsn=dsn)
    queue = QueueRepository(dsn=dsn)
    record, _ = asyncio.run(ledger.create_record(_item(), VERDICT, auto_actioned=True))

    appeal = asyncio.run(queue.enqueue(record.id, QueueType.APPEAL, 7, "user appeal"))
    older = asyncio.run(queue.enqueue(record.id, QueueType.ESCALATED, 9, "User report: spam"))
    newer = asyncio.run(queue.enqueue(record.id, QueueType.ESCALATED, 9, "User report: abuse"))

    claimed = [asyncio.run(queue.dequeue_highest_priority()) for _ in range(4)]

    assert [entry.id for entry in claimed[:3]] == [older.id, newer.id, appeal.id]
    assert claimed[3] is None
    assert all(entry.status is QueueStatus.IN_REVIEW for entry in claimed[:3])


def test_queue_rejects_unknown_moderation_id(dsn: str) -> None:
    queue = QueueRepository(dsn=dsn)

    with pytest.raises(ModerationRecordNotFoundError):
        asyncio.run(queue.enqueue(4242, QueueType.ESCALATED, 9, "User report: spam"))


def test_resolve_requires_claim(dsn: str) -> None:
    ledger = ModerationRecordRepository(dsn=dsn)
    queue = QueueRepository(dsn=dsn)
    record, _ = asyncio.run(ledger.create_record(_item(), VERDICT, auto_actioned=True))
    entry = asyncio.run(queue.enqueue(record.id, QueueType.STANDARD, 5, None))

    with pytest.raises(QueueEntryStateError):
        asyncio.run(queue.resolve(entry.id))

    asyncio.run(queue.dequeue_highest_priority())
    resolved = asyncio.run(queue.resolve(entry.id))

    assert resolved.status is QueueStatus.RESOLVED
    assert resolved.resolved_at is not None


def test_soft_delete_is_idempotent(dsn: str) -> None:
    registry = ContentKindRegistry.default()
    content = ContentRepository(dsn=dsn)
    with get_connection(dsn) as conn:
        conn.execute("INSERT INTO community_messages (id, user_id, content) VALUES ('msg-1', 'author-1', 'hi')")
        conn.execute("INSERT INTO community_posts (id, author_id, title) VALUES ('p-1', 'author-1', 'hi')")
        conn.commit()

    message_rule = registry.get("message")
    post_rule = registry.get("post")

    assert asyncio.run(content.soft_delete(message_rule, "msg-1")) is True
    deleted_at = asyncio.run(content.get_record(message_rule, "msg-1"))["deleted_at"]
    assert asyncio.run(content.soft_delete(message_rule, "msg-1")) is False
    assert asyncio.run(content.get_record(message_rule, "msg-1"))["deleted_at"] == deleted_at

    assert asyncio.run(content.soft_delete(post_rule, "p-1")) is True
    assert asyncio.run(content.soft_delete(post_rule, "p-1")) is False
    assert asyncio.run(content.get_record(post_rule, "p-1"))["is_deleted"] is True

    assert asyncio.run(content.shadow_ban(post_rule, "p-1")) is True
    assert asyncio.run(content.shadow_ban(post_rule, "p-1")) is False
    assert asyncio.run(content.soft_delete(message_rule, "missing")) is False


def test_migrations_run_once(dsn: str) -> None:
    assert apply_migrations(MIGRATIONS_DIR, dsn) == []


def test_concurrent_create_record_keeps_one_active_record(dsn: str) -> None:
    ledger = ModerationRecordRepository(dsn=dsn)
    content_ids = [f"msg-race-{n}" for n in range(10)]
    barrier = threading.Barrier(2)

    def create(content_id: str):
        barrier.wait()
        return asyncio.run(ledger.create_record(_item(content_id), VERDICT, auto_actioned=True))

    with ThreadPoolExecutor(max_workers=2) as pool:
        for content_id in content_ids:
            results = list(pool.map(create, [content_id, content_id]))

            assert sorted(created for _, created in results) == [False, True]
            assert results[0][0].id == results[1][0].id

    with get_connection(dsn) as conn:
        rows = conn.execute(
            """
            SELECT content_id, COUNT(*) AS total
            FROM content_moderation
            WHERE is_active
            GROUP BY content_id
            """
        ).fetchall()
    assert {row["content_id"]: row["total"] for row in rows} == {content_id: 1 for content_id in content_ids}
