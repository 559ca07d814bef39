from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Mapping

from ..attendance.model import AttendanceRecord
from ..core.enums import AttendanceStatus
from ..employees.model import Employee


@dataclass(frozen=True)
class HeadcountStats:
    total: int = 0
    present: int = 0
    missing: int = 0
    excused: int = 0
    unaccounted: int = 0

    @property
    def all_clear(self) -> bool:
        """Everyone accounted for and nobody missing."""
        return self.total > 0 and self.unaccounted == 0 and self.missing == 0

    def count(self, status: AttendanceStatus) -> int:
        return getattr(self, AttendanceStatus(status).value)

    def to_dict(self) -> dict:
        return {
            "total": self.total,
            "present": self.present,
            "missing": self.missing,
            "excused": self.excused,
            "unaccounted": self.unaccounted,
        }


def calc_stats(employees: Iterable[Employee], attendance: Mapping[int, AttendanceRecord]) -> HeadcountStats:
    counts = {s: 0 for s in AttendanceStatus}
    total = 0
    for e in employees:
        total += 1
        record = attendance.get(e.employee_id)
        counts[record.status if record else AttendanceStatus.UNACCOUNTED] += 1
    return HeadcountStats(
        total=total,
        present=counts[AttendanceStatus.PRESENT],
        missing=counts[AttendanceStatus.MISSING],
        excused=counts[AttendanceStatus.EXCUSED],
        unaccounted=counts[AttendanceStatus.UNACCOUNTED],
    )
