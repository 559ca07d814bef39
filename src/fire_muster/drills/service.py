from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional, Sequence

from ..attendance.model import AttendanceRecord
from ..attendance.repository import AttendanceRepository
from ..common.datetime_utils import now_local
from ..core.constants import SESSION_PAGE_SIZE
from ..core.exceptions import NotFoundError
from .model import DrillSession
from .repository import DrillSessionRepository

logger = logging.getLogger(__name__)


class SessionLifecycleService:
    """Use cases: start, join, stop and delete drill sessions.

    Several sessions may be active at the same time (different floors or buildings
    drilling independently). Starting a drill never ends another one, and stopping
    a drill only ever touches that drill.
    """

    def __init__(
        self,
        sessions: DrillSessionRepository,
        attendance: AttendanceRepository,
        *,
        page_size: int = SESSION_PAGE_SIZE,
    ):
        self._sessions = sessions
        self._attendance = attendance
        self._page_size = int(page_size)

    def start_drill(self, initiator: str, *, now: Optional[datetime] = None) -> DrillSession:
        session = self._sessions.create(started_by=initiator, started_at=now or now_local())
        logger.info("Drill %s started by %s", session.session_id, session.started_by)
        return session

    def get_session(self, session_id: int) -> DrillSession:
        session = self._sessions.get_by_id(int(session_id))
        if not session:
            raise NotFoundError(f"Drill session {session_id} does not exist")
        return session

    def join_session(self, session_id: int) -> dict[int, AttendanceRecord]:
        """Attendance snapshot of a session keyed by employee id."""
        session = self.get_session(session_id)
        return {r.employee_id: r for r in self._attendance.list_for_session(session.session_id)}

    def stop_drill(self, session_id: int, ended_by: Optional[str], *, now: Optional[datetime] = None) -> DrillSession:
        updated = self._sessions.update(
            int(session_id),
            {"active": False, "ended_at": now or now_local(), "ended_by": ended_by},
            only_active=True,
        )
        if updated:
            logger.info("Drill %s stopped by %s", updated.session_id, ended_by)
            return updated

        # Nothing changed: either unknown, or already ended (terminal, keep its stamps).
        session = self.get_session(session_id)
        logger.info("Drill %s already ended at %s", session.session_id, session.ended_at)
        return session

    def delete_session(self, session_id: int) -> bool:
        deleted = self._sessions.delete_by_id(int(session_id))
        if deleted:
            logger.info("Drill %s deleted with its attendance", session_id)
        return deleted

    def list_sessions(self, *, limit: Optional[int] = None) -> Sequence[DrillSession]:
        return self._sessions.list_recent(int(limit or self._page_size))

    def list_active(self) -> Sequence[DrillSession]:
        return self._sessions.list_active()
