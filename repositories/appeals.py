from dataclasses import dataclass
from typing import Any, Sequence

from db.connection import DB_DSN, get_connection
from errors import AppealNotFoundError
from models.appeals import AppealStatus, ModerationAppealIn, ModerationAppealModel


def _row_to_appeal(row: Any) -> ModerationAppealModel:
    if row is None:
        raise AppealNotFoundError()
    return ModerationAppealModel(**dict(row))


@dataclass(frozen=True)
class AppealRepository:
    dsn: Any = DB_DSN
    connection_provider: Any = get_connection

    async def create(self, appeal: ModerationAppealIn) -> ModerationAppealModel:
        with self.connection_provider(self.dsn) as conn:
            with conn.cursor() as cursor:
                cursor.execute(
                    """
                    INSERT INTO moderation_appeals (user_id, moderation_id, reason, evidence, statement, status)
                    VALUES (%s, %s, %s, %s, %s, 'pending')
                    RETURNING *
                    """,
                    (
                        appeal.user_id,
                        appeal.moderation_id,
                        appeal.reason,
                        appeal.evidence,
                        appeal.statement,
                    ),
                )
                row = cursor.fetchone()
            conn.commit()
        return _row_to_appeal(row)

    async def get(self, appeal_id: int) -> ModerationAppealModel:
        with self.connection_provider(self.dsn) as conn:
            with conn.cursor() as cursor:
                cursor.execute(
                    "SELECT * FROM moderation_appeals WHERE id = %s LIMIT 1",
                    (appeal_id,),
                )
                row = cursor.fetchone()
        return _row_to_appeal(row)

    async def resolve_pending_for_moderation(
        self,
        moderation_id: int,
        status: AppealStatus,
    ) -> Sequence[ModerationAppealModel]:
        with self.connection_provider(self.dsn) as conn:
            with conn.cursor() as cursor:
                cursor.execute(
                    """
                    UPDATE moderation_appeals
                    SET status = %s
                    WHERE moderation_id = %s AND status = 'pending'
                    RETURNING *
                    """,
                    (status.value, moderation_id),
                )
                rows = cursor.fetchall()
            conn.commit()
        return [_row_to_appeal(row) for row in rows]
