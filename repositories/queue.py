from dataclasses import dataclass
from typing import Any, Optional, Sequence

import psycopg

from db.connection import DB_DSN, get_connection
from errors import ModerationRecordNotFoundError, QueueEntryNotFoundError, QueueEntryStateError
from models.queue import QueueEntryModel, QueueStatus, QueueType


def _row_to_entry(row: Any) -> QueueEntryModel:
    if row is None:
        raise QueueEntryNotFoundError()
    return QueueEntryModel(**dict(row))


@dataclass(frozen=True)
class QueueRepository:
    dsn: Any = DB_DSN
    connection_provider: Any = get_connection

    async def enqueue(
        self,
        moderation_id: int,
        queue_type: QueueType,
        priority: int,
        reason: Optional[str],
    ) -> QueueEntryModel:
        try:
            with self.connection_provider(self.dsn) as conn:
                with conn.cursor() as cursor:
                    cursor.execute(
                        """
                        INSERT INTO moderation_queue (moderation_id, priority, queue_type, escalation_reason, status)
                        VALUES (%s, %s, %s, %s, 'pending')
                        RETURNING *
                        """,
                        (moderation_id, priority, queue_type.value, reason),
                    )
                    row = cursor.fetchone()
                conn.commit()
        except psycopg.errors.ForeignKeyViolation as exc:
            raise ModerationRecordNotFoundError(moderation_id) from exc
        return _row_to_entry(row)

    async def dequeue_highest_priority(self) -> Optional[QueueEntryModel]:
        """Claim the most urgent pending entry, oldest first on equal priority."""
        with self.connection_provider(self.dsn) as conn:
            with conn.cursor() as cursor:
                cursor.execute(
                    """
                    UPDATE moderation_queue
                    SET status = 'in_review',
                        picked_at = NOW()
                    WHERE id = (
                        SELECT id FROM moderation_queue
                        WHERE status = 'pending'
                        ORDER BY priority DESC, created_at ASC, id ASC
                        LIMIT 1
                        FOR UPDATE SKIP LOCKED
                    )
                    RETURNING *
                    """
                )
                row = cursor.fetchone()
            conn.commit()
        return None if row is None else _row_to_entry(row)

    async def resolve(self, entry_id: int) -> QueueEntryModel:
        with self.connection_provider(self.dsn) as conn:
            with conn.cursor() as cursor:
                cursor.execute(
                    """
                    UPDATE moderation_queue
                    SET status = 'resolved',
                        resolved_at = NOW()
                    WHERE id = %s AND status = 'in_review'
                    RETURNING *
                    """,
                    (entry_id,),
                )
                row = cursor.fetchone()
            conn.commit()
        if row is None:
            current = await self.get(entry_id)
            raise QueueEntryStateError(f"Queue entry {entry_id} is {current.status.value}")
        return _row_to_entry(row)

    async def get(self, entry_id: int) -> QueueEntryModel:
        with self.connection_provider(self.dsn) as conn:
            with conn.cursor() as cursor:
                cursor.execute(
                    "SELECT * FROM moderation_queue WHERE id = %s LIMIT 1",
                    (entry_id,),
                )
                row = cursor.fetchone()
        return _row_to_entry(row)

    async def list_for_moderation(self, moderation_id: int) -> Sequence[QueueEntryModel]:
        with self.connection_provider(self.dsn) as conn:
            with conn.cursor() as cursor:
                cursor.execute(
                    "SELECT * FROM moderation_queue WHERE moderation_id = %s ORDER BY id",
                    (moderation_id,),
                )
                rows = cursor.fetchall()
        return [_row_to_entry(row) for row in rows]

    async def count_by_status(self, status: QueueStatus) -> int:
        with self.connection_provider(self.dsn) as conn:
            with conn.cursor() as cursor:
                cursor.execute(
                    "SELECT COUNT(*) AS total FROM moderation_queue WHERE status = %s",
                    (status.value,),
                )
                row = cursor.fetchone()
        return int(row["total"])
