from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional

from db.connection import DB_DSN, get_connection
from errors import HistoryNotFoundError
from models.appeals import AppealStatus, UserModerationHistoryModel
from models.moderation import Severity


def _row_to_history(row: Any) -> UserModerationHistoryModel:
    if row is None:
        raise HistoryNotFoundError()
    return UserModerationHistoryModel(**dict(row))


@dataclass(frozen=True)
class UserModerationHistoryRepository:
    dsn: Any = DB_DSN
    connection_provider: Any = get_connection

    async def record_strike(
        self,
        user_id: str,
        moderation_id: int,
        strike_count: int,
        strike_severity: Severity,
        strike_expires_at: datetime,
        shadow_ban_expires_at: Optional[datetime] = None,
        restriction_expires_at: Optional[datetime] = None,
    ) -> UserModerationHistoryModel:
        with self.connection_provider(self.dsn) as conn:
            with conn.cursor() as cursor:
                cursor.execute(
                    """
                    INSERT INTO user_moderation_history (
                        user_id, moderation_id, strike_count, strike_severity,
                        strike_expires_at, is_shadow_banned, shadow_ban_expires_at,
                        is_restricted, restriction_expires_at
                    )
                    VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s)
                    ON CONFLICT (moderation_id) DO UPDATE
                    SET strike_count = EXCLUDED.strike_count,
                        strike_severity = EXCLUDED.strike_severity,
                        strike_expires_at = EXCLUDED.strike_expires_at,
                        is_shadow_banned = EXCLUDED.is_shadow_banned,
                        shadow_ban_expires_at = EXCLUDED.shadow_ban_expires_at,
                        is_restricted = EXCLUDED.is_restricted,
                        restriction_expires_at = EXCLUDED.restriction_expires_at
                    RETURNING *
                    """,
                    (
                        user_id,
                        moderation_id,
                        strike_count,
                        strike_severity.value,
                        strike_expires_at,
                        shadow_ban_expires_at is not None,
                        shadow_ban_expires_at,
                        restriction_expires_at is not None,
                        restriction_expires_at,
                    ),
                )
                row = cursor.fetchone()
            conn.commit()
        return _row_to_history(row)

    async def mark_appeal_submitted(self, user_id: str, moderation_id: int) -> UserModerationHistoryModel:
        with self.connection_provider(self.dsn) as conn:
            with conn.cursor() as cursor:
                cursor.execute(
                    """
                    INSERT INTO user_moderation_history (user_id, moderation_id, appeal_submitted, appeal_status)
                    VALUES (%s, %s, TRUE, 'pending')
                    ON CONFLICT (moderation_id) DO UPDATE
                    SET appeal_submitted = TRUE,
                        appeal_status = 'pending'
                    RETURNING *
                    """,
                    (user_id, moderation_id),
                )
                row = cursor.fetchone()
            conn.commit()
        return _row_to_history(row)

    async def set_appeal_status(self, moderation_id: int, status: AppealStatus) -> Optional[UserModerationHistoryModel]:
        with self.connection_provider(self.dsn) as conn:
            with conn.cursor() as cursor:
                cursor.execute(
                    """
                    UPDATE user_moderation_history
                    SET appeal_status = %s
                    WHERE moderation_id = %s
                    RETURNING *
                    """,
                    (status.value, moderation_id),
                )
                row = cursor.fetchone()
            conn.commit()
        return None if row is None else _row_to_history(row)

    async def get_by_moderation_id(self, moderation_id: int) -> UserModerationHistoryModel:
        with self.connection_provider(self.dsn) as conn:
            with conn.cursor() as cursor:
                cursor.execute(
                    "SELECT * FROM user_moderation_history WHERE moderation_id = %s LIMIT 1",
                    (moderation_id,),
                )
                row = cursor.fetchone()
        return _row_to_history(row)
