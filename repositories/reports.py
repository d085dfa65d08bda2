from dataclasses import dataclass
from typing import Any, Sequence

from db.connection import DB_DSN, get_connection
from errors import ReportNotFoundError
from models.reports import ReportStatus, UserReportIn, UserReportModel


def _row_to_report(row: Any) -> UserReportModel:
    if row is None:
        raise ReportNotFoundError()
    return UserReportModel(**dict(row))


@dataclass(frozen=True)
class ReportRepository:
    dsn: Any = DB_DSN
    connection_provider: Any = get_connection

    async def create(self, report: UserReportIn) -> UserReportModel:
        with self.connection_provider(self.dsn) as conn:
            with conn.cursor() as cursor:
                cursor.execute(
                    """
                    INSERT INTO user_reports (
                        reporter_id, reported_content_id, reported_content_kind,
                        reported_user_id, category, reason, context, status
                    )
                    VALUES (%s, %s, %s, %s, %s, %s, %s, 'pending')
                    RETURNING *
                    """,
                    (
                        report.reporter_id,
                        report.reported_content_id,
                        report.reported_content_kind,
                        report.reported_user_id,
                        report.category,
                        report.reason,
                        report.context,
                    ),
                )
                row = cursor.fetchone()
            conn.commit()
        return _row_to_report(row)

    async def get(self, report_id: int) -> UserReportModel:
        with self.connection_provider(self.dsn) as conn:
            with conn.cursor() as cursor:
                cursor.execute(
                    "SELECT * FROM user_reports WHERE id = %s LIMIT 1",
                    (report_id,),
                )
                row = cursor.fetchone()
        return _row_to_report(row)

    async def resolve_pending_for_content(
        self,
        content_id: str,
        content_kind: str,
        status: ReportStatus,
    ) -> Sequence[UserReportModel]:
        with self.connection_provider(self.dsn) as conn:
            with conn.cursor() as cursor:
                cursor.execute(
                    """
                    UPDATE user_reports
                    SET status = %s
                    WHERE reported_content_id = %s
                      AND reported_content_kind = %s
                      AND status = 'pending'
                    RETURNING *
                    """,
                    (status.value, content_id, content_kind),
                )
                rows = cursor.fetchall()
            conn.commit()
        return [_row_to_report(row) for row in rows]
