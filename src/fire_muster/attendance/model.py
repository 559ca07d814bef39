from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..common.datetime_utils import from_iso, to_iso
from ..core.enums import AttendanceStatus


@dataclass(frozen=True)
class AttendanceRecord:
    """Ledger entry for one (session, employee) pair.

    ``marshal_name`` and ``updated_at`` describe the last write only.
    """

    session_id: int
    employee_id: int
    status: AttendanceStatus = AttendanceStatus.UNACCOUNTED
    note: Optional[str] = None
    marshal_name: Optional[str] = None
    updated_at: Optional[datetime] = None

    @property
    def key(self) -> tuple[int, int]:
        return (self.session_id, self.employee_id)

    def to_dict(self) -> dict:
        return {
            "session_id": self.session_id,
            "employee_id": self.employee_id,
            "status": self.status.value,
            "note": self.note,
            "marshal_name": self.marshal_name,
            "updated_at": to_iso(self.updated_at),
        }

    @classmethod
    def from_dict(cls, row: dict) -> "AttendanceRecord":
        return cls(
            session_id=int(row["session_id"]),
            employee_id=int(row["employee_id"]),
            status=AttendanceStatus(row.get("status") or AttendanceStatus.UNACCOUNTED.value),
            note=row.get("note"),
            marshal_name=row.get("marshal_name"),
            updated_at=from_iso(row.get("updated_at")),
        )
