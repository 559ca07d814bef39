from __future__ import annotations

from typing import Optional, Sequence

from ..core.enums import AttendanceStatus, ChangeKind, Table
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, normalize_mysql_datetime
from ..realtime.feed import ChangeFeed
from .model import AttendanceRecord
from .repository import AttendanceRepository


def _to_record(r: dict) -> AttendanceRecord:
    return AttendanceRecord(
        session_id=int(r["session_id"]),
        employee_id=int(r["employee_id"]),
        status=AttendanceStatus(r["status"]),
        note=r.get("note"),
        marshal_name=r.get("marshal_name"),
        updated_at=normalize_mysql_datetime(r.get("updated_at")),
    )


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection, feed: Optional[ChangeFeed] = None):
        self._conn_factory = conn_factory
        self._feed = feed

    def upsert(self, record: AttendanceRecord) -> AttendanceRecord:
        # Last write wins: the whole row is overwritten, no version check.
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO attendance(session_id, employee_id, status, note, marshal_name, updated_at)
                VALUES(%s,%s,%s,%s,%s,%s)
                ON DUPLICATE KEY UPDATE
                    status=VALUES(status),
                    note=VALUES(note),
                    marshal_name=VALUES(marshal_name),
                    updated_at=VALUES(updated_at)
                """,
                (
                    record.session_id,
                    record.employee_id,
                    record.status.value,
                    record.note,
                    record.marshal_name,
                    record.updated_at,
                ),
            )
            # MySQL reports 1 for a fresh insert, 2 for an overwrite, 0 for an identical row.
            kind = ChangeKind.INSERT if cur.rowcount == 1 else ChangeKind.UPDATE

        if self._feed:
            self._feed.publish_row(Table.ATTENDANCE, kind, record.to_dict())
        return record

    def list_for_session(self, session_id: int) -> Sequence[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT session_id, employee_id, status, note, marshal_name, updated_at
                FROM attendance
                WHERE session_id=%s
                ORDER BY employee_id
                """,
                (int(session_id),),
            )
            return [_to_record(r) for r in fetchall(cur)]

    def get(self, session_id: int, employee_id: int) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT session_id, employee_id, status, note, marshal_name, updated_at
                FROM attendance
                WHERE session_id=%s AND employee_id=%s
                """,
                (int(session_id), int(employee_id)),
            )
            r = fetchone(cur)
            return _to_record(r) if r else None
