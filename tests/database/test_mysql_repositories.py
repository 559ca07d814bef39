from __future__ import annotations

from datetime import datetime

import mysql.connector
import pytest

from fire_muster.attendance.model import AttendanceRecord
from fire_muster.attendance.mysql_attendance_repository import MySQLAttendanceRepository
from fire_muster.core.enums import AttendanceStatus, ChangeKind, Table
from fire_muster.core.exceptions import StoreUnavailableError, ValidationError, WriteRejectedError
from fire_muster.drills.mysql_drill_repository import MySQLDrillSessionRepository
from fire_muster.marshals.mysql_marshal_repository import MySQLMarshalRepository
from fire_muster.realtime.feed import ChangeFeed

T0 = datetime(2026, 3, 4, 10, 0, 0)


class FakeCursor:
    def __init__(self, conn):
        self._conn = conn
        self.rowcount = 0
        self.lastrowid = None

    def execute(self, sql, params=None):
        self._conn.executed.append((" ".join(sql.split()), params))
        if self._conn.error is not None:
            raise self._conn.error
        self.rowcount = self._conn.rowcounts.pop(0) if self._conn.rowcounts else 1
        self.lastrowid = self._conn.lastrowid

    def fetchone(self):
        return self._conn.rows.pop(0) if self._conn.rows else None

    def fetchall(self):
        rows, self._conn.rows = self._conn.rows, []
        return rows

    def close(self):
        pass


class FakeConnection:
    def __init__(self):
        self.executed = []
        self.rows = []
        self.rowcounts = []
        self.lastrowid = 1
        self.error = None
        self.committed = 0
        self.rolled_back = 0
        self.closed = 0

    def cursor(self, dictionary=False):
        return FakeCursor(self)

    def commit(self):
        self.committed += 1

    def rollback(self):
        self.rolled_back += 1

    def close(self):
        self.closed += 1


class FakeConnFactory:
    def __init__(self):
        self.conn = FakeConnection()
        self.refuse = None

    def connect(self):
        if self.refuse is not None:
            raise self.refuse
        return self.conn


@pytest.fixture
def factory():
    return FakeConnFactory()


@pytest.fixture
def feed_log():
    feed = ChangeFeed()
    seen = []
    for table in Table:
        feed.subscribe(table, seen.append)
    return feed, seen


def test_create_marshal_publishes_after_commit(factory, feed_log):
    feed, seen = feed_log
    factory.conn.lastrowid = 7

    marshal = MySQLMarshalRepository(factory, feed).create(name="Alex Morgan")

    assert marshal.marshal_id == 7
    assert factory.conn.executed == [("INSERT INTO fire_marshals(name) VALUES(%s)", ("Alex Morgan",))]
    assert factory.conn.committed == 1
    assert [(n.table, n.kind) for n in seen] == [(Table.MARSHALS, ChangeKind.INSERT)]


def test_attendance_upsert_uses_composite_key_and_reports_kind(factory, feed_log):
    feed, seen = feed_log
    repo = MySQLAttendanceRepository(factory, feed)
    record = AttendanceRecord(session_id=1, employee_id=2, status=AttendanceStatus.PRESENT, updated_at=T0)
    factory.conn.rowcounts = [1, 2]

    repo.upsert(record)
    repo.upsert(record)

    sql, params = factory.conn.executed[0]
    assert "ON DUPLICATE KEY UPDATE" in sql
    assert params == (1, 2, "present", None, None, T0)
    assert [n.kind for n in seen] == [ChangeKind.INSERT, ChangeKind.UPDATE]
    assert seen[0].new["status"] == "present"


def test_attendance_rows_are_mapped(factory):
    factory.conn.rows = [
        {
            "session_id": 1,
            "employee_id": 2,
            "status": "missing",
            "note": "Floor 3",
            "marshal_name": "Alex Morgan",
            "updated_at": "2026-03-04 10:00:00",
        }
    ]

    records = MySQLAttendanceRepository(factory).list_for_session(1)

    assert records == [
        AttendanceRecord(
            session_id=1,
            employee_id=2,
            status=AttendanceStatus.MISSING,
            note="Floor 3",
            marshal_name="Alex Morgan",
            updated_at=T0,
        )
    ]


def test_stop_update_is_guarded_by_active_flag(factory, feed_log):
    feed, seen = feed_log
    repo = MySQLDrillSessionRepository(factory, feed)
    factory.conn.rowcounts = [0]

    result = repo.update(1, {"active": False, "ended_at": T0, "ended_by": "Alex Morgan"}, only_active=True)

    sql, params = factory.conn.executed[0]
    assert sql == "UPDATE drill_sessions SET active=%s, ended_at=%s, ended_by=%s WHERE session_id=%s AND active=1"
    assert params == (False, T0, "Alex Morgan", 1)
    assert result is None
    assert seen == []


def test_update_reloads_and_publishes(factory, feed_log):
    feed, seen = feed_log
    factory.conn.rows = [
        {
            "session_id": 1,
            "started_by": "Alex Morgan",
            "started_at": T0,
            "active": 0,
            "ended_at": T0,
            "ended_by": "Alex Morgan",
        }
    ]

    updated = MySQLDrillSessionRepository(factory, feed).update(1, {"active": False})

    assert updated.active is False
    assert [(n.table, n.kind) for n in seen] == [(Table.DRILL_SESSIONS, ChangeKind.UPDATE)]


def test_update_rejects_unknown_columns(factory):
    with pytest.raises(ValidationError):
        MySQLDrillSessionRepository(factory).update(1, {"started_by": "Someone"})
    assert factory.conn.executed == []


def test_delete_session_removes_attendance_first(factory):
    deleted = MySQLDrillSessionRepository(factory).delete_by_id(3)

    assert deleted is True
    assert [sql for sql, _ in factory.conn.executed] == [
        "DELETE FROM attendance WHERE session_id=%s",
        "DELETE FROM drill_sessions WHERE session_id=%s",
    ]


def test_connection_failure_is_store_unavailable(factory):
    factory.refuse = mysql.connector.InterfaceError("no route to host")

    with pytest.raises(StoreUnavailableError):
        MySQLMarshalRepository(factory).list_all()


def test_constraint_failure_rolls_back_and_is_rejected(factory, feed_log):
    feed, seen = feed_log
    factory.conn.error = mysql.connector.IntegrityError("foreign key constraint fails")
    record = AttendanceRecord(session_id=99, employee_id=2)

    with pytest.raises(WriteRejectedError):
        MySQLAttendanceRepository(factory, feed).upsert(record)

    assert factory.conn.rolled_back == 1
    assert factory.conn.closed == 1
    assert seen == []
