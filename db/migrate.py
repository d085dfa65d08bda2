from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from db.connection import get_connection

logger = logging.getLogger(__name__)

# API and worker may start together; only one of them runs the migrations
MIGRATION_LOCK_ID = 72_001


def apply_migrations(base_dir: Path, dsn: str | None = None, connection_provider: Any = get_connection) -> list[str]:
    """Run the ``*.sql`` files not yet recorded in ``schema_migrations``.

    Files run in name order inside one transaction. Returns the names that
    were applied by this call.
    """
    migrations_dir = base_dir / "migrations" if (base_dir / "migrations").is_dir() else base_dir
    migration_files = sorted(migrations_dir.glob("*.sql"))

    if not migration_files:
        raise RuntimeError(f"No SQL migrations found in {migrations_dir}")

    applied_now: list[str] = []
    with connection_provider(dsn) as conn:
        with conn.cursor() as cursor:
            cursor.execute("SELECT pg_advisory_xact_lock(%s)", (MIGRATION_LOCK_ID,))
            cursor.execute(
                """
                CREATE TABLE IF NOT EXISTS schema_migrations (
                    name TEXT PRIMARY KEY,
                    applied_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
                )
                """
            )
            cursor.execute("SELECT name FROM schema_migrations")
            already_applied = {row["name"] for row in cursor.fetchall()}

            for migration_file in migration_files:
                if migration_file.name in already_applied:
                    continue
                sql = migration_file.read_text(encoding="utf-8").strip()
                if sql:
                    logger.info("apply_migration file=%s", migration_file.name)
                    cursor.execute(sql)
                cursor.execute(
                    "INSERT INTO schema_migrations (name) VALUES (%s)",
                    (migration_file.name,),
                )
                applied_now.append(migration_file.name)
        conn.commit()

    logger.info("migrations_done applied=%s skipped=%s", len(applied_now), len(migration_files) - len(applied_now))
    return applied_now
