"""Merge policy between the change feed and a marshal's local view.

Every function takes a ``MarshalViewState`` and returns a new one. Attendance is
last-writer-wins at the view layer too: an incoming record for the joined session
always replaces the local entry, so re-applying the same record changes nothing.
"""
from __future__ import annotations

from dataclasses import replace
from typing import Iterable

from ..attendance.model import AttendanceRecord
from ..client.state import MarshalViewState
from ..core.enums import ChangeKind
from ..drills.model import DrillSession
from .events import AttendanceChanged, AttendanceReloaded, FeedEvent, SessionCreated, SessionUpdated


def apply_attendance(state: MarshalViewState, record: AttendanceRecord) -> MarshalViewState:
    if record.session_id != state.joined_session_id:
        return state
    attendance = dict(state.attendance)
    attendance[record.employee_id] = record
    return replace(state, attendance=attendance)


def apply_snapshot(state: MarshalViewState, session_id: int, records: Iterable[AttendanceRecord]) -> MarshalViewState:
    if session_id != state.joined_session_id:
        return state
    return replace(state, attendance={r.employee_id: r for r in records})


def _replace_in(sessions: list[DrillSession], session: DrillSession) -> list[DrillSession]:
    return [session if s.session_id == session.session_id else s for s in sessions]


def apply_session_update(state: MarshalViewState, session: DrillSession) -> MarshalViewState:
    current = state.session
    if current is not None and current.session_id == session.session_id:
        current = session

    active = list(state.active_sessions)
    if not session.active:
        active = [s for s in active if s.session_id != session.session_id]
    else:
        active = _replace_in(active, session)

    return replace(
        state,
        session=current,
        active_sessions=active,
        sessions=_replace_in(state.sessions, session),
    )


def apply_session_created(state: MarshalViewState, session: DrillSession) -> MarshalViewState:
    if not session.active:
        return state
    active = list(state.active_sessions)
    sessions = list(state.sessions)
    if not any(s.session_id == session.session_id for s in active):
        active.insert(0, session)
    if not any(s.session_id == session.session_id for s in sessions):
        sessions.insert(0, session)
    return replace(state, active_sessions=active, sessions=sessions)


def apply_session_removed(state: MarshalViewState, session_id: int) -> MarshalViewState:
    removed = state.joined_session_id == session_id
    return replace(
        state,
        sessions=[s for s in state.sessions if s.session_id != session_id],
        active_sessions=[s for s in state.active_sessions if s.session_id != session_id],
        session=None if removed else state.session,
        attendance={} if removed else state.attendance,
    )


def reconcile(state: MarshalViewState, event: FeedEvent) -> MarshalViewState:
    if isinstance(event, AttendanceChanged):
        # Rows only disappear with their whole session; single deletes are ignored.
        if event.kind == ChangeKind.DELETE:
            return state
        return apply_attendance(state, event.record)

    if isinstance(event, SessionUpdated):
        return apply_session_update(state, event.session)

    if isinstance(event, SessionCreated):
        return apply_session_created(state, event.session)

    if isinstance(event, AttendanceReloaded):
        return apply_snapshot(state, event.session_id, event.records)

    raise TypeError(f"Unsupported feed event: {event!r}")
