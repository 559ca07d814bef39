"""In-process store used by tests, the example script and ``STORE_BACKEND=memory``.

It mirrors the MySQL schema's guarantees: auto-increment ids, the composite
(session_id, employee_id) key on attendance, the attendance -> drill_sessions
foreign key and the cascade on session delete.
"""
from __future__ import annotations

import itertools
import threading
from dataclasses import replace
from datetime import datetime
from typing import Mapping, Optional, Sequence

from ..attendance.model import AttendanceRecord
from ..core.enums import ChangeKind, Table
from ..core.exceptions import StoreUnavailableError, ValidationError, WriteRejectedError
from ..drills.model import DrillSession
from ..drills.repository import UPDATABLE_COLUMNS
from ..employees.model import Employee
from ..marshals.model import Marshal
from ..realtime.feed import ChangeFeed


class InMemoryStore:
    def __init__(self, feed: Optional[ChangeFeed] = None):
        self.feed = feed
        self.lock = threading.RLock()
        self.available = True
        self.marshals: dict[int, Marshal] = {}
        self.employees: dict[int, Employee] = {}
        self.sessions: dict[int, DrillSession] = {}
        self.attendance: dict[tuple[int, int], AttendanceRecord] = {}
        self._ids = {table: itertools.count(1) for table in Table}

    def next_id(self, table: Table) -> int:
        return next(self._ids[table])

    def check_available(self) -> None:
        if not self.available:
            raise StoreUnavailableError("Store unavailable: in-memory store is offline")

    def publish(self, table: Table, kind: ChangeKind, new: dict, *, old: Optional[dict] = None) -> None:
        if self.feed is not None:
            self.feed.publish_row(table, kind, new, old=old)


class InMemoryMarshalRepository:
    def __init__(self, store: InMemoryStore):
        self._store = store

    def create(self, *, name: str) -> Marshal:
        with self._store.lock:
            self._store.check_available()
            marshal = Marshal(marshal_id=self._store.next_id(Table.MARSHALS), name=name)
            self._store.marshals[marshal.marshal_id] = marshal
        self._store.publish(Table.MARSHALS, ChangeKind.INSERT, marshal.to_dict())
        return marshal

    def list_all(self) -> Sequence[Marshal]:
        with self._store.lock:
            self._store.check_available()
            return sorted(self._store.marshals.values(), key=lambda m: (m.name.lower(), m.marshal_id))

    def delete_by_id(self, marshal_id: int) -> bool:
        with self._store.lock:
            self._store.check_available()
            marshal = self._store.marshals.pop(int(marshal_id), None)
        if marshal is None:
            return False
        self._store.publish(Table.MARSHALS, ChangeKind.DELETE, {}, old=marshal.to_dict())
        return True


class InMemoryEmployeeRepository:
    def __init__(self, store: InMemoryStore):
        self._store = store

    def create(self, *, name: str, dept: Optional[str], marshal_id: Optional[int]) -> Employee:
        with self._store.lock:
            self._store.check_available()
            employee = Employee(
                employee_id=self._store.next_id(Table.EMPLOYEES),
                name=name,
                dept=dept,
                marshal_id=marshal_id,
            )
            self._store.employees[employee.employee_id] = employee
        self._store.publish(Table.EMPLOYEES, ChangeKind.INSERT, employee.to_dict())
        return employee

    def list_all(self) -> Sequence[Employee]:
        with self._store.lock:
            self._store.check_available()
            return sorted(self._store.employees.values(), key=lambda e: (e.name.lower(), e.employee_id))

    def list_by_marshal(self, marshal_id: int) -> Sequence[Employee]:
        return [e for e in self.list_all() if e.marshal_id == int(marshal_id)]

    def delete_by_id(self, employee_id: int) -> bool:
        with self._store.lock:
            self._store.check_available()
            employee = self._store.employees.pop(int(employee_id), None)
        if employee is None:
            return False
        self._store.publish(Table.EMPLOYEES, ChangeKind.DELETE, {}, old=employee.to_dict())
        return True


class InMemoryDrillSessionRepository:
    def __init__(self, store: InMemoryStore):
        self._store = store

    def create(self, *, started_by: str, started_at: datetime) -> DrillSession:
        with self._store.lock:
            self._store.check_available()
            session = DrillSession(
                session_id=self._store.next_id(Table.DRILL_SESSIONS),
                started_by=started_by,
                started_at=started_at,
                active=True,
            )
            self._store.sessions[session.session_id] = session
        self._store.publish(Table.DRILL_SESSIONS, ChangeKind.INSERT, session.to_dict())
        return session

    def get_by_id(self, session_id: int) -> Optional[DrillSession]:
        with self._store.lock:
            self._store.check_available()
            return self._store.sessions.get(int(session_id))

    def list_recent(self, limit: int) -> Sequence[DrillSession]:
        with self._store.lock:
            self._store.check_available()
            items = sorted(
                self._store.sessions.values(),
                key=lambda s: (s.started_at, s.session_id),
                reverse=True,
            )
            return items[: int(limit)]

    def list_active(self) -> Sequence[DrillSession]:
        with self._store.lock:
            self._store.check_available()
            items = [s for s in self._store.sessions.values() if s.active]
            return sorted(items, key=lambda s: (s.started_at, s.session_id), reverse=True)

    def update(
        self,
        session_id: int,
        changes: Mapping[str, object],
        *,
        only_active: bool = False,
    ) -> Optional[DrillSession]:
        unknown = set(changes) - UPDATABLE_COLUMNS
        if unknown:
            raise ValidationError(f"Cannot update drill session columns: {', '.join(sorted(unknown))}")

        with self._store.lock:
            self._store.check_available()
            current = self._store.sessions.get(int(session_id))
            if current is None or (only_active and not current.active):
                return None
            updated = replace(current, **dict(changes))
            self._store.sessions[updated.session_id] = updated
        self._store.publish(Table.DRILL_SESSIONS, ChangeKind.UPDATE, updated.to_dict(), old=current.to_dict())
        return updated

    def delete_by_id(self, session_id: int) -> bool:
        with self._store.lock:
            self._store.check_available()
            session = self._store.sessions.pop(int(session_id), None)
            if session is None:
                return False
            doomed = [k for k in self._store.attendance if k[0] == session.session_id]
            removed = [self._store.attendance.pop(k) for k in doomed]

        for record in removed:
            self._store.publish(Table.ATTENDANCE, ChangeKind.DELETE, {}, old=record.to_dict())
        self._store.publish(Table.DRILL_SESSIONS, ChangeKind.DELETE, {}, old=session.to_dict())
        return True


class InMemoryAttendanceRepository:
    def __init__(self, store: InMemoryStore):
        self._store = store

    def upsert(self, record: AttendanceRecord) -> AttendanceRecord:
        with self._store.lock:
            self._store.check_available()
            if record.session_id not in self._store.sessions:
                raise WriteRejectedError(f"Store rejected the operation: drill session {record.session_id} does not exist")
            previous = self._store.attendance.get(record.key)
            self._store.attendance[record.key] = record

        kind = ChangeKind.INSERT if previous is None else ChangeKind.UPDATE
        self._store.publish(
            Table.ATTENDANCE,
            kind,
            record.to_dict(),
            old=previous.to_dict() if previous else None,
        )
        return record

    def list_for_session(self, session_id: int) -> Sequence[AttendanceRecord]:
        with self._store.lock:
            self._store.check_available()
            return [r for k, r in sorted(self._store.attendance.items()) if k[0] == int(session_id)]

    def get(self, session_id: int, employee_id: int) -> Optional[AttendanceRecord]:
        with self._store.lock:
            self._store.check_available()
            return self._store.attendance.get((int(session_id), int(employee_id)))
