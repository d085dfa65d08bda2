from dataclasses import dataclass
from typing import Any, Optional

from db.connection import DB_DSN, get_connection
from errors import ModerationRecordNotFoundError
from models.content import ContentItem
from models.moderation import ModerationRecordModel, Verdict

UNAVAILABLE_CONTENT = "Content unavailable"


def _row_to_record(row: Any) -> ModerationRecordModel:
    if row is None:
        raise ModerationRecordNotFoundError()
    return ModerationRecordModel(**dict(row))


@dataclass(frozen=True)
class ModerationRecordRepository:
    dsn: Any = DB_DSN
    connection_provider: Any = get_connection

    async def create_record(
        self,
        item: ContentItem,
        verdict: Verdict,
        auto_actioned: bool,
    ) -> tuple[ModerationRecordModel, bool]:
        """Insert-or-fetch the active record for the item.

        Returns the record and whether this call created it. Concurrent
        callers for the same content meet at the partial unique index, so
        the loser gets the winner's row back.
        """
        with self.connection_provider(self.dsn) as conn:
            with conn.cursor() as cursor:
                cursor.execute(
                    """
                    INSERT INTO content_moderation (
                        content_id, content_kind, author_id, is_appropriate,
                        severity, confidence, flags, categories, action_taken,
                        auto_actioned, original_content, media_refs
                    )
                    VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
                    ON CONFLICT (content_id, content_kind) WHERE is_active DO NOTHING
                    RETURNING *
                    """,
                    (
                        item.content_id,
                        item.content_kind,
                        item.author_id,
                        verdict.is_appropriate,
                        verdict.severity.value,
                        verdict.confidence,
                        list(verdict.flags),
                        list(verdict.categories),
                        verdict.action_taken.value,
                        auto_actioned,
                        item.text or UNAVAILABLE_CONTENT,
                        list(item.media_refs),
                    ),
                )
                row = cursor.fetchone()
                created = row is not None
                if not created:
                    cursor.execute(
                        """
                        SELECT * FROM content_moderation
                        WHERE content_id = %s AND content_kind = %s AND is_active
                        LIMIT 1
                        """,
                        (item.content_id, item.content_kind),
                    )
                    row = cursor.fetchone()
            conn.commit()
        return _row_to_record(row), created

    async def find_active_record(
        self,
        content_id: str,
        content_kind: str,
    ) -> Optional[ModerationRecordModel]:
        with self.connection_provider(self.dsn) as conn:
            with conn.cursor() as cursor:
                cursor.execute(
                    """
                    SELECT * FROM content_moderation
                    WHERE content_id = %s AND content_kind = %s AND is_active
                    LIMIT 1
                    """,
                    (content_id, content_kind),
                )
                row = cursor.fetchone()
        return None if row is None else _row_to_record(row)

    async def find(self, moderation_id: int) -> Optional[ModerationRecordModel]:
        with self.connection_provider(self.dsn) as conn:
            with conn.cursor() as cursor:
                cursor.execute(
                    "SELECT * FROM content_moderation WHERE id = %s LIMIT 1",
                    (moderation_id,),
                )
                row = cursor.fetchone()
        return None if row is None else _row_to_record(row)

    async def get(self, moderation_id: int) -> ModerationRecordModel:
        return _row_to_record(await self.find(moderation_id))

    async def mark_enforced(self, moderation_id: int) -> ModerationRecordModel:
        with self.connection_provider(self.dsn) as conn:
            with conn.cursor() as cursor:
                cursor.execute(
                    """
                    UPDATE content_moderation
                    SET enforced_at = NOW()
                    WHERE id = %s AND enforced_at IS NULL
                    RETURNING *
                    """,
                    (moderation_id,),
                )
                row = cursor.fetchone()
            conn.commit()
        if row is None:
            return await self.get(moderation_id)
        return _row_to_record(row)
