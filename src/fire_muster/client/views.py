from __future__ import annotations

from typing import Iterable

from ..core.constants import STATUS_SORT_PRIORITY
from ..core.exceptions import ValidationError
from ..employees.model import Employee
from .state import MarshalViewState

TAB_MINE = "mine"
TAB_ALL = "all"


def matches_search(employee: Employee, query: str) -> bool:
    q = (query or "").strip().lower()
    if not q:
        return True
    return q in employee.name.lower() or q in (employee.dept or "").lower()


def roster_order(state: MarshalViewState, employees: Iterable[Employee]) -> list[Employee]:
    """Unaccounted first, then missing, then everyone else; by name within a group."""
    return sorted(
        employees,
        key=lambda e: (STATUS_SORT_PRIORITY[state.status_of(e.employee_id)], e.name.lower()),
    )


def visible_employees(state: MarshalViewState, *, tab: str = TAB_MINE, search: str = "") -> list[Employee]:
    if tab == TAB_MINE:
        base = state.my_party
    elif tab == TAB_ALL:
        base = state.employees
    else:
        raise ValidationError(f"Unknown roster tab: {tab!r}")
    return roster_order(state, [e for e in base if matches_search(e, search)])


def parties(state: MarshalViewState, employees: Iterable[Employee]) -> list[tuple[str, list[Employee]]]:
    """Group employees by marshal (in marshal order), unassigned last."""
    employees = list(employees)
    groups = []
    for marshal in state.marshals:
        party = [e for e in employees if e.marshal_id == marshal.marshal_id]
        if party:
            groups.append((marshal.name, party))
    known = {m.marshal_id for m in state.marshals}
    unassigned = [e for e in employees if e.marshal_id is None or e.marshal_id not in known]
    if unassigned:
        groups.append(("Unassigned", unassigned))
    return groups
