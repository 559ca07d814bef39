from __future__ import annotations

from datetime import datetime

import pytest

from fire_muster.attendance.model import AttendanceRecord
from fire_muster.client.state import MarshalViewState
from fire_muster.client.views import TAB_MINE, matches_search, parties, visible_employees
from fire_muster.core.enums import AttendanceStatus
from fire_muster.core.exceptions import ValidationError
from fire_muster.drills.model import DrillSession
from fire_muster.employees.model import Employee
from fire_muster.marshals.model import Marshal

ALEX = Marshal(marshal_id=1, name="Alex Morgan")
PRIYA = Marshal(marshal_id=2, name="Priya Shah")
EMPLOYEES = [
    Employee(employee_id=1, name="amelia Clarke", dept="Finance", marshal_id=1),
    Employee(employee_id=2, name="Ben Osei", dept="Finance", marshal_id=1),
    Employee(employee_id=3, name="Chloe Martin", dept="Marketing", marshal_id=1),
    Employee(employee_id=4, name="Daniel Kim", dept="Technical", marshal_id=2),
    Employee(employee_id=5, name="Ivan Petrov", dept=None, marshal_id=None),
    Employee(employee_id=6, name="Olga Brandt", dept="ESG", marshal_id=9),
]


def state_with(statuses: dict[int, AttendanceStatus]) -> MarshalViewState:
    session = DrillSession(session_id=1, started_by="Alex Morgan", started_at=datetime(2026, 3, 4, 10, 0))
    return MarshalViewState(
        marshal=ALEX,
        marshals=[ALEX, PRIYA],
        employees=list(EMPLOYEES),
        sessions=[session],
        active_sessions=[session],
        session=session,
        attendance={eid: AttendanceRecord(session_id=1, employee_id=eid, status=s) for eid, s in statuses.items()},
        connected=True,
    )


def test_my_tab_sorts_unaccounted_then_missing_then_rest():
    state = state_with({1: AttendanceStatus.PRESENT, 2: AttendanceStatus.MISSING})

    names = [e.name for e in visible_employees(state, tab=TAB_MINE)]

    assert names == ["Chloe Martin", "Ben Osei", "amelia Clarke"]


def test_search_matches_name_or_department_case_insensitively():
    assert matches_search(EMPLOYEES[0], "AMELIA")
    assert matches_search(EMPLOYEES[3], "tech")
    assert not matches_search(EMPLOYEES[4], "finance")
    assert matches_search(EMPLOYEES[4], "   ")


def test_unknown_tab_is_rejected():
    with pytest.raises(ValidationError):
        visible_employees(state_with({}), tab="others")


def test_parties_group_by_marshal_with_unassigned_last():
    groups = parties(state_with({}), EMPLOYEES)

    assert [(name, [e.employee_id for e in members]) for name, members in groups] == [
        ("Alex Morgan", [1, 2, 3]),
        ("Priya Shah", [4]),
        ("Unassigned", [5, 6]),
    ]


def test_state_helpers():
    state = state_with({4: AttendanceStatus.EXCUSED})

    assert state.joined_session_id == 1
    assert state.status_of(4) == AttendanceStatus.EXCUSED
    assert state.status_of(5) == AttendanceStatus.UNACCOUNTED
    assert [e.employee_id for e in state.my_party] == [1, 2, 3]
    assert state.other_active_sessions == []
    assert state.past_sessions == []


def test_state_survives_json_style_round_trip():
    state = state_with({2: AttendanceStatus.MISSING})

    data = state.to_dict()

    assert list(data["attendance"]) == ["2"]
    assert MarshalViewState.from_dict(data) == state
