from __future__ import annotations

import logging
from datetime import datetime
from typing import Mapping, Optional

from ..common.datetime_utils import now_local
from ..common.validators import optional_text, require_non_empty
from ..core.enums import AttendanceStatus
from ..core.exceptions import ValidationError
from .model import AttendanceRecord
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = frozenset({"status", "note"})


def coerce_status(value) -> AttendanceStatus:
    try:
        return AttendanceStatus(value)
    except ValueError:
        raise ValidationError(f"Unknown attendance status: {value!r}")


class AttendanceLedger:
    """Per (session, employee) headcount ledger.

    Writes are read-modify-write: fields missing from an update are taken from the
    caller's last known record (``known``), then the full row is upserted on the
    (session_id, employee_id) key. There is no version check, so of two marshals
    updating the same person the later write wins, note included.
    """

    def __init__(self, attendance: AttendanceRepository):
        self._attendance = attendance

    def upsert(
        self,
        session_id: int,
        employee_id: int,
        writer: str,
        changes: Mapping[str, object],
        *,
        known: Optional[AttendanceRecord] = None,
        now: Optional[datetime] = None,
    ) -> AttendanceRecord:
        writer = require_non_empty(writer, "marshal_name")
        unknown = set(changes) - UPDATABLE_FIELDS
        if unknown:
            raise ValidationError(f"Cannot update attendance fields: {', '.join(sorted(unknown))}")
        if known is not None and known.key != (int(session_id), int(employee_id)):
            raise ValidationError("Known record belongs to a different session or employee")

        if "status" in changes:
            status = coerce_status(changes["status"])
        else:
            status = known.status if known else AttendanceStatus.UNACCOUNTED

        if "note" in changes:
            note = optional_text(changes["note"])
        else:
            note = known.note if known else None

        record = AttendanceRecord(
            session_id=int(session_id),
            employee_id=int(employee_id),
            status=status,
            note=note,
            marshal_name=writer,
            updated_at=now or now_local(),
        )
        saved = self._attendance.upsert(record)
        logger.debug(
            "Attendance session=%s employee=%s -> %s by %s",
            saved.session_id,
            saved.employee_id,
            saved.status.value,
            writer,
        )
        return saved

    def cycle_status(
        self,
        session_id: int,
        employee_id: int,
        writer: str,
        *,
        known: Optional[AttendanceRecord] = None,
        now: Optional[datetime] = None,
    ) -> AttendanceRecord:
        current = known.status if known else AttendanceStatus.UNACCOUNTED
        return self.upsert(
            session_id,
            employee_id,
            writer,
            {"status": current.next_in_cycle()},
            known=known,
            now=now,
        )

    def set_status(
        self,
        session_id: int,
        employee_id: int,
        writer: str,
        status,
        *,
        known: Optional[AttendanceRecord] = None,
        now: Optional[datetime] = None,
    ) -> AttendanceRecord:
        return self.upsert(session_id, employee_id, writer, {"status": status}, known=known, now=now)

    def save_note(
        self,
        session_id: int,
        employee_id: int,
        writer: str,
        note: Optional[str],
        *,
        known: Optional[AttendanceRecord] = None,
        now: Optional[datetime] = None,
    ) -> AttendanceRecord:
        return self.upsert(session_id, employee_id, writer, {"note": note}, known=known, now=now)

    def load(self, session_id: int) -> dict[int, AttendanceRecord]:
        return {r.employee_id: r for r in self._attendance.list_for_session(int(session_id))}

    def get(self, session_id: int, employee_id: int) -> Optional[AttendanceRecord]:
        return self._attendance.get(int(session_id), int(employee_id))

    @staticmethod
    def effective_status(records: Mapping[int, AttendanceRecord], employee_id: int) -> AttendanceStatus:
        """No row means nobody has accounted for the employee yet."""
        record = records.get(int(employee_id))
        return record.status if record else AttendanceStatus.UNACCOUNTED
