from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime
from typing import TYPE_CHECKING, Mapping, Optional, Union

from ..attendance.model import AttendanceRecord
from ..common.datetime_utils import elapsed
from ..core.exceptions import DomainError, StoreUnavailableError
from ..drills.model import DrillSession
from ..employees.model import Employee
from ..marshals.model import Marshal
from ..realtime.reconcile import (
    apply_attendance,
    apply_session_created,
    apply_session_removed,
    apply_session_update,
    reconcile,
)
from ..realtime.subscriber import ChangeFeedSubscriber
from ..reports.service import DrillReport
from ..reports.stats import HeadcountStats, calc_stats
from .state import MarshalViewState
from .views import TAB_ALL, TAB_MINE, parties, visible_employees

if TYPE_CHECKING:
    from ..container import Container

logger = logging.getLogger(__name__)

SessionRef = Union[DrillSession, int]


class MarshalClient:
    """One connected marshal.

    Holds the marshal's ``MarshalViewState`` and keeps it in step with the store:
    results of the marshal's own writes are applied as soon as the call returns,
    everybody else's arrive through the change feed and are merged by ``pump``.

    Store failures are handled here, at the point of call: the operation is
    logged and dropped, local state keeps its previous value and nothing is
    retried.
    """

    def __init__(self, container: "Container", *, name: str = "marshal-client"):
        self._c = container
        self._name = name
        self.state = MarshalViewState()
        self._subscriber = ChangeFeedSubscriber(
            container.feed,
            lambda session_id: container.attendance_ledger.load(session_id).values(),
            name=name,
        )

    @property
    def subscriber(self) -> ChangeFeedSubscriber:
        return self._subscriber

    @property
    def writer(self) -> Optional[str]:
        return self.state.marshal.name if self.state.marshal else None

    # ── Startup ──────────────────────────────────────────────────────────────

    def connect(self) -> bool:
        try:
            marshals = list(self._c.marshal_service.list_marshals())
            employees = list(self._c.employee_service.list_employees())
            sessions = list(self._c.session_service.list_sessions())
        except StoreUnavailableError as exc:
            logger.error("%s: not connected: %s", self._name, exc)
            self.state = replace(self.state, connected=False)
            return False

        self.state = replace(
            self.state,
            marshals=marshals,
            employees=employees,
            sessions=sessions,
            active_sessions=[s for s in sessions if s.active],
            connected=True,
        )
        self._subscriber.watch_new_sessions()
        logger.info(
            "%s connected (%d marshals, %d employees, %d active drills)",
            self._name,
            len(marshals),
            len(employees),
            len(self.state.active_sessions),
        )
        return True

    def select_marshal(self, marshal_id: int) -> Optional[Marshal]:
        marshal = next((m for m in self.state.marshals if m.marshal_id == int(marshal_id)), None)
        if marshal is None:
            logger.warning("%s: unknown marshal %s", self._name, marshal_id)
        self.state = replace(self.state, marshal=marshal)
        return marshal

    # ── Sessions ─────────────────────────────────────────────────────────────

    def start_drill(self, *, now: Optional[datetime] = None) -> Optional[DrillSession]:
        if not self.state.marshal:
            logger.warning("%s: pick a marshal before starting a drill", self._name)
            return None
        try:
            session = self._c.session_service.start_drill(self.state.marshal.name, now=now)
        except DomainError as exc:
            logger.warning("%s: start drill failed: %s", self._name, exc)
            return None

        state = apply_session_created(self.state, session)
        self.state = replace(state, session=session, attendance={})
        self._subscriber.bind(session.session_id)
        return session

    def join_session(self, session: SessionRef) -> Optional[dict[int, AttendanceRecord]]:
        session_id = session.session_id if isinstance(session, DrillSession) else int(session)
        previous = self._subscriber.session_id
        # Subscribe before reading so writes racing the snapshot still reach the inbox.
        self._subscriber.bind(session_id)
        try:
            current = self._c.session_service.get_session(session_id)
            snapshot = self._c.session_service.join_session(session_id)
        except DomainError as exc:
            logger.warning("%s: join drill %s failed: %s", self._name, session_id, exc)
            if previous is None:
                self._subscriber.unbind()
            else:
                self._subscriber.bind(previous)
            return None

        self.state = replace(self.state, session=current, attendance=dict(snapshot))
        return dict(snapshot)

    def switch_session(self, session: SessionRef) -> Optional[dict[int, AttendanceRecord]]:
        """Drop the current drill's local view and load another one. Writes nothing."""
        self._subscriber.unbind()
        self.state = replace(self.state, session=None, attendance={})
        return self.join_session(session)

    def leave_session(self) -> None:
        self._subscriber.unbind()
        self.state = replace(self.state, session=None, attendance={})

    def stop_drill(self, *, now: Optional[datetime] = None) -> Optional[DrillSession]:
        if not self.state.session:
            return None
        try:
            ended = self._c.session_service.stop_drill(self.state.session.session_id, self.writer, now=now)
        except DomainError as exc:
            logger.warning("%s: stop drill failed: %s", self._name, exc)
            return None
        self.state = apply_session_update(self.state, ended)
        return ended

    def delete_session(self, session_id: int) -> bool:
        try:
            deleted = self._c.session_service.delete_session(int(session_id))
        except DomainError as exc:
            logger.warning("%s: delete drill %s failed: %s", self._name, session_id, exc)
            return False
        if self.state.joined_session_id == int(session_id):
            self._subscriber.unbind()
        self.state = apply_session_removed(self.state, int(session_id))
        return deleted

    # ── Attendance ───────────────────────────────────────────────────────────

    def _write(self, op: str, employee_id: int, **kwargs) -> Optional[AttendanceRecord]:
        if not self.state.session:
            logger.warning("%s: no drill joined, %s ignored", self._name, op)
            return None
        session_id = self.state.session.session_id
        known = self.state.attendance.get(int(employee_id))
        try:
            record = getattr(self._c.attendance_ledger, op)(
                session_id,
                int(employee_id),
                self.writer,
                known=known,
                **kwargs,
            )
        except DomainError as exc:
            logger.warning("%s: %s for employee %s failed: %s", self._name, op, employee_id, exc)
            return None
        self.state = apply_attendance(self.state, record)
        return record

    def upsert_attendance(
        self,
        employee_id: int,
        changes: Mapping[str, object],
        *,
        now: Optional[datetime] = None,
    ) -> Optional[AttendanceRecord]:
        return self._write("upsert", employee_id, changes=changes, now=now)

    def cycle_status(self, employee_id: int, *, now: Optional[datetime] = None) -> Optional[AttendanceRecord]:
        return self._write("cycle_status", employee_id, now=now)

    def set_status(self, employee_id: int, status, *, now: Optional[datetime] = None) -> Optional[AttendanceRecord]:
        return self._write("set_status", employee_id, status=status, now=now)

    def save_note(self, employee_id: int, note: Optional[str], *, now: Optional[datetime] = None) -> Optional[AttendanceRecord]:
        return self._write("save_note", employee_id, note=note, now=now)

    # ── Roster management ────────────────────────────────────────────────────

    def add_employee(self, name: str, *, dept: Optional[str] = None, marshal_id=None) -> Optional[Employee]:
        try:
            employee = self._c.employee_service.add_employee(name, dept=dept, marshal_id=marshal_id)
        except DomainError as exc:
            logger.warning("%s: add employee failed: %s", self._name, exc)
            return None
        employees = sorted([*self.state.employees, employee], key=lambda e: e.name.lower())
        self.state = replace(self.state, employees=employees)
        return employee

    def remove_employee(self, employee_id: int) -> bool:
        try:
            removed = self._c.employee_service.remove_employee(employee_id)
        except DomainError as exc:
            logger.warning("%s: remove employee %s failed: %s", self._name, employee_id, exc)
            return False
        self.state = replace(
            self.state,
            employees=[e for e in self.state.employees if e.employee_id != int(employee_id)],
        )
        return removed

    def add_marshal(self, name: str) -> Optional[Marshal]:
        try:
            marshal = self._c.marshal_service.add_marshal(name)
        except DomainError as exc:
            logger.warning("%s: add marshal failed: %s", self._name, exc)
            return None
        marshals = sorted([*self.state.marshals, marshal], key=lambda m: m.name.lower())
        self.state = replace(self.state, marshals=marshals)
        return marshal

    def remove_marshal(self, marshal_id: int) -> bool:
        try:
            removed = self._c.marshal_service.remove_marshal(marshal_id)
        except DomainError as exc:
            logger.warning("%s: remove marshal %s failed: %s", self._name, marshal_id, exc)
            return False
        me = self.state.marshal
        self.state = replace(
            self.state,
            marshals=[m for m in self.state.marshals if m.marshal_id != int(marshal_id)],
            marshal=None if me and me.marshal_id == int(marshal_id) else me,
        )
        return removed

    # ── Change feed ──────────────────────────────────────────────────────────

    def pump(self, timeout: float = 0) -> int:
        """Merge pending feed events into the local state; returns how many were applied."""
        events = []
        if timeout:
            first = self._subscriber.next_event(timeout)
            if first is not None:
                events.append(first)
        events.extend(self._subscriber.drain())
        for event in events:
            self.state = reconcile(self.state, event)
        return len(events)

    def disconnect(self) -> None:
        self._subscriber.disconnect()

    def resync(self) -> int:
        """Reconnect the feed and reload the joined drill in full."""
        try:
            self._subscriber.reconnect()
        except DomainError as exc:
            logger.warning("%s: resync failed: %s", self._name, exc)
            return 0
        return self.pump()

    def close(self) -> None:
        self._subscriber.close()

    # ── Derived views ────────────────────────────────────────────────────────

    def visible_employees(self, *, tab: str = TAB_MINE, search: str = "") -> list[Employee]:
        return visible_employees(self.state, tab=tab, search=search)

    def parties(self, *, search: str = "") -> list[tuple[str, list[Employee]]]:
        """The whole roster grouped by marshal, for the "all" tab."""
        return parties(self.state, visible_employees(self.state, tab=TAB_ALL, search=search))

    def stats(self, *, tab: str = TAB_ALL) -> HeadcountStats:
        employees = self.state.my_party if tab == TAB_MINE else self.state.employees
        return calc_stats(employees, self.state.attendance)

    @property
    def all_clear(self) -> bool:
        return self.stats().all_clear

    @property
    def has_missing(self) -> bool:
        return self.stats().missing > 0

    def elapsed(self, *, now: Optional[datetime] = None) -> str:
        session = self.state.session
        if not session:
            return "0m 0s"
        return elapsed(session.started_at, session.ended_at, now=now)

    def report(self, *, now: Optional[datetime] = None) -> DrillReport:
        return self._c.report_service.build(
            session=self.state.session,
            employees=self.state.employees,
            marshals=self.state.marshals,
            attendance=self.state.attendance,
            now=now,
        )
