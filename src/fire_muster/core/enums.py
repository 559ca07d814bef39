from __future__ import annotations

from enum import Enum


class AttendanceStatus(str, Enum):
    """Headcount status of one employee within one drill session."""

    UNACCOUNTED = "unaccounted"
    PRESENT = "present"
    MISSING = "missing"
    EXCUSED = "excused"

    def next_in_cycle(self) -> "AttendanceStatus":
        """Quick-tap rotation: unaccounted -> present -> missing -> excused -> unaccounted."""
        return _CYCLE[self]


_CYCLE = {
    AttendanceStatus.UNACCOUNTED: AttendanceStatus.PRESENT,
    AttendanceStatus.PRESENT: AttendanceStatus.MISSING,
    AttendanceStatus.MISSING: AttendanceStatus.EXCUSED,
    AttendanceStatus.EXCUSED: AttendanceStatus.UNACCOUNTED,
}


class ChangeKind(str, Enum):
    """Kind of row change delivered by the change feed."""

    INSERT = "insert"
    UPDATE = "update"
    DELETE = "delete"


class Table(str, Enum):
    """Store tables that publish change notifications."""

    MARSHALS = "fire_marshals"
    EMPLOYEES = "employees"
    DRILL_SESSIONS = "drill_sessions"
    ATTENDANCE = "attendance"
