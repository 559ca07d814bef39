from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from ..attendance.model import AttendanceRecord
from ..core.enums import AttendanceStatus
from ..drills.model import DrillSession
from ..employees.model import Employee
from ..marshals.model import Marshal


@dataclass
class MarshalViewState:
    """One marshal's local view of the shared drill state.

    Reconciliation functions never mutate an instance; they return a new one.
    """

    marshal: Optional[Marshal] = None
    marshals: list[Marshal] = field(default_factory=list)
    employees: list[Employee] = field(default_factory=list)
    sessions: list[DrillSession] = field(default_factory=list)
    active_sessions: list[DrillSession] = field(default_factory=list)
    session: Optional[DrillSession] = None
    attendance: dict[int, AttendanceRecord] = field(default_factory=dict)
    connected: bool = False

    @property
    def joined_session_id(self) -> Optional[int]:
        return self.session.session_id if self.session else None

    def status_of(self, employee_id: int) -> AttendanceStatus:
        record = self.attendance.get(int(employee_id))
        return record.status if record else AttendanceStatus.UNACCOUNTED

    @property
    def my_party(self) -> list[Employee]:
        if not self.marshal:
            return []
        return [e for e in self.employees if e.marshal_id == self.marshal.marshal_id]

    @property
    def other_active_sessions(self) -> list[DrillSession]:
        return [s for s in self.active_sessions if s.session_id != self.joined_session_id]

    @property
    def past_sessions(self) -> list[DrillSession]:
        return [s for s in self.sessions if not s.active]

    def to_dict(self) -> dict:
        return {
            "marshal": self.marshal.to_dict() if self.marshal else None,
            "marshals": [m.to_dict() for m in self.marshals],
            "employees": [e.to_dict() for e in self.employees],
            "sessions": [s.to_dict() for s in self.sessions],
            "active_sessions": [s.to_dict() for s in self.active_sessions],
            "session": self.session.to_dict() if self.session else None,
            # JSON object keys are strings; from_dict turns them back into ints.
            "attendance": {str(k): r.to_dict() for k, r in self.attendance.items()},
            "connected": self.connected,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "MarshalViewState":
        return cls(
            marshal=Marshal.from_dict(data["marshal"]) if data.get("marshal") else None,
            marshals=[Marshal.from_dict(m) for m in data.get("marshals", [])],
            employees=[Employee.from_dict(e) for e in data.get("employees", [])],
            sessions=[DrillSession.from_dict(s) for s in data.get("sessions", [])],
            active_sessions=[DrillSession.from_dict(s) for s in data.get("active_sessions", [])],
            session=DrillSession.from_dict(data["session"]) if data.get("session") else None,
            attendance={int(k): AttendanceRecord.from_dict(r) for k, r in data.get("attendance", {}).items()},
            connected=bool(data.get("connected", False)),
        )
