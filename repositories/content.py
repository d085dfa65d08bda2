from dataclasses import dataclass
from typing import Any, Optional

import psycopg
from psycopg import sql

from db.connection import DB_DSN, get_connection
from errors import EnforcementError
from services.normalizer import ContentKindRule


@dataclass(frozen=True)
class ContentRepository:
    """Reads and marks rows of the content-owning tables.

    Table and column names come from the content-kind registry, never from
    request input. Every update is guarded on the marker being unset, so
    repeating it changes nothing.
    """

    dsn: Any = DB_DSN
    connection_provider: Any = get_connection

    async def get_record(self, rule: ContentKindRule, content_id: str) -> Optional[dict[str, Any]]:
        query = sql.SQL("SELECT * FROM {table} WHERE id = %s LIMIT 1").format(
            table=sql.Identifier(rule.table),
        )
        with self.connection_provider(self.dsn) as conn:
            with conn.cursor() as cursor:
                cursor.execute(query, (content_id,))
                row = cursor.fetchone()
        return None if row is None else dict(row)

    async def soft_delete(self, rule: ContentKindRule, content_id: str) -> bool:
        marker = sql.Identifier(rule.deletion_marker)
        if rule.deletion_marker_is_flag:
            query = sql.SQL("UPDATE {table} SET {marker} = TRUE WHERE id = %s AND NOT {marker}")
        else:
            query = sql.SQL("UPDATE {table} SET {marker} = NOW() WHERE id = %s AND {marker} IS NULL")
        return self._execute_update(
            query.format(table=sql.Identifier(rule.table), marker=marker),
            content_id,
        )

    async def shadow_ban(self, rule: ContentKindRule, content_id: str) -> bool:
        query = sql.SQL(
            """
            UPDATE {table}
            SET is_shadow_banned = TRUE,
                shadow_banned_at = NOW()
            WHERE id = %s AND NOT is_shadow_banned
            """
        ).format(table=sql.Identifier(rule.table))
        return self._execute_update(query, content_id)

    def _execute_update(self, query: sql.Composed, content_id: str) -> bool:
        try:
            with self.connection_provider(self.dsn) as conn:
                with conn.cursor() as cursor:
                    cursor.execute(query, (content_id,))
                    changed = cursor.rowcount > 0
                conn.commit()
        except psycopg.Error as exc:
            raise EnforcementError(str(exc)) from exc
        return changed
