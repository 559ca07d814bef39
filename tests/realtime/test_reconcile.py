from __future__ import annotations

from dataclasses import replace
from datetime import datetime

import pytest

from fire_muster.attendance.model import AttendanceRecord
from fire_muster.client.state import MarshalViewState
from fire_muster.core.enums import AttendanceStatus, ChangeKind
from fire_muster.drills.model import DrillSession
from fire_muster.realtime.events import AttendanceChanged, AttendanceReloaded, SessionCreated, SessionUpdated
from fire_muster.realtime.reconcile import reconcile

T0 = datetime(2026, 3, 4, 10, 0, 0)


def session(sid: int, *, active: bool = True) -> DrillSession:
    return DrillSession(
        session_id=sid,
        started_by="Alex Morgan",
        started_at=T0,
        active=active,
        ended_at=None if active else T0,
        ended_by=None if active else "Alex Morgan",
    )


def record(sid: int, eid: int, status=AttendanceStatus.PRESENT, note=None) -> AttendanceRecord:
    return AttendanceRecord(session_id=sid, employee_id=eid, status=status, note=note, marshal_name="Priya Shah")


@pytest.fixture
def joined() -> MarshalViewState:
    s1, s2 = session(1), session(2)
    return MarshalViewState(sessions=[s2, s1], active_sessions=[s2, s1], session=s1, connected=True)


def test_attendance_for_joined_session_replaces_local_entry(joined):
    local = replace(joined, attendance={5: record(1, 5, AttendanceStatus.MISSING, note="old")})

    state = reconcile(local, AttendanceChanged(record=record(1, 5)))

    assert state.attendance[5] == record(1, 5)
    assert local.attendance[5].status == AttendanceStatus.MISSING


def test_attendance_for_other_session_is_ignored(joined):
    state = reconcile(joined, AttendanceChanged(record=record(2, 5)))

    assert state is joined


def test_attendance_without_joined_session_is_ignored():
    state = MarshalViewState()

    assert reconcile(state, AttendanceChanged(record=record(1, 5))) is state


def test_reapplying_event_is_idempotent(joined):
    event = AttendanceChanged(record=record(1, 5))

    once = reconcile(joined, event)
    twice = reconcile(once, event)

    assert twice == once


def test_attendance_deletes_are_ignored(joined):
    local = replace(joined, attendance={5: record(1, 5)})

    state = reconcile(local, AttendanceChanged(record=record(1, 5), kind=ChangeKind.DELETE))

    assert state.attendance == local.attendance


def test_session_update_ending_drill_leaves_active_list(joined):
    ended = session(1, active=False)

    state = reconcile(joined, SessionUpdated(session=ended))

    assert state.session == ended
    assert [s.session_id for s in state.active_sessions] == [2]
    assert state.sessions[1] == ended
    assert state.past_sessions == [ended]


def test_session_update_for_other_drill_keeps_joined_session(joined):
    ended = session(2, active=False)

    state = reconcile(joined, SessionUpdated(session=ended))

    assert state.session == joined.session
    assert [s.session_id for s in state.active_sessions] == [1]


def test_session_created_is_prepended_once(joined):
    new = session(3)

    state = reconcile(reconcile(joined, SessionCreated(session=new)), SessionCreated(session=new))

    assert [s.session_id for s in state.active_sessions] == [3, 2, 1]
    assert [s.session_id for s in state.sessions] == [3, 2, 1]
    assert state.session == joined.session


def test_snapshot_replaces_attendance_map(joined):
    local = replace(joined, attendance={5: record(1, 5), 6: record(1, 6)})

    state = reconcile(local, AttendanceReloaded(session_id=1, records=(record(1, 6, AttendanceStatus.MISSING),)))

    assert list(state.attendance) == [6]
    assert state.attendance[6].status == AttendanceStatus.MISSING


def test_snapshot_for_other_session_is_ignored(joined):
    state = reconcile(joined, AttendanceReloaded(session_id=2, records=(record(2, 6),)))

    assert state is joined


def test_unknown_event_type_raises(joined):
    with pytest.raises(TypeError):
        reconcile(joined, object())
