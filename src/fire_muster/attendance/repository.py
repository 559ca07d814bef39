from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import AttendanceRecord


class AttendanceRepository(Protocol):
    def upsert(self, record: AttendanceRecord) -> AttendanceRecord:
        """Insert or overwrite the row keyed by (session_id, employee_id)."""

        raise NotImplementedError

    def list_for_session(self, session_id: int) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def get(self, session_id: int, employee_id: int) -> Optional[AttendanceRecord]:
        raise NotImplementedError
