from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.repository import AttendanceRepository
from .attendance.service import AttendanceLedger
from .core.constants import SESSION_PAGE_SIZE
from .database.connection import DatabaseConnection, DBConfig
from .database.memory_store import (
    InMemoryAttendanceRepository,
    InMemoryDrillSessionRepository,
    InMemoryEmployeeRepository,
    InMemoryMarshalRepository,
    InMemoryStore,
)
from .drills.mysql_drill_repository import MySQLDrillSessionRepository
from .drills.repository import DrillSessionRepository
from .drills.service import SessionLifecycleService
from .employees.mysql_employee_repository import MySQLEmployeeRepository
from .employees.repository import EmployeeRepository
from .employees.service import EmployeeService
from .marshals.mysql_marshal_repository import MySQLMarshalRepository
from .marshals.repository import MarshalRepository
from .marshals.service import MarshalService
from .realtime.feed import ChangeFeed
from .reports.service import DrillReportService


@dataclass(frozen=True)
class Container:
    feed: ChangeFeed

    marshals_repo: MarshalRepository
    employees_repo: EmployeeRepository
    sessions_repo: DrillSessionRepository
    attendance_repo: AttendanceRepository

    marshal_service: MarshalService
    employee_service: EmployeeService
    session_service: SessionLifecycleService
    attendance_ledger: AttendanceLedger
    report_service: DrillReportService


def _assemble(
    feed: ChangeFeed,
    marshals_repo: MarshalRepository,
    employees_repo: EmployeeRepository,
    sessions_repo: DrillSessionRepository,
    attendance_repo: AttendanceRepository,
    *,
    page_size: int,
) -> Container:
    return Container(
        feed=feed,
        marshals_repo=marshals_repo,
        employees_repo=employees_repo,
        sessions_repo=sessions_repo,
        attendance_repo=attendance_repo,
        marshal_service=MarshalService(marshals_repo),
        employee_service=EmployeeService(employees_repo),
        session_service=SessionLifecycleService(sessions_repo, attendance_repo, page_size=page_size),
        attendance_ledger=AttendanceLedger(attendance_repo),
        report_service=DrillReportService(),
    )


def build_container(
    *,
    db_config: dict,
    feed: Optional[ChangeFeed] = None,
    page_size: int = SESSION_PAGE_SIZE,
) -> Container:
    """MySQL-backed container; every repository publishes to the shared feed."""
    feed = feed or ChangeFeed()
    conn = DatabaseConnection.get_instance(DBConfig.from_mapping(db_config))
    return _assemble(
        feed,
        MySQLMarshalRepository(conn, feed),
        MySQLEmployeeRepository(conn, feed),
        MySQLDrillSessionRepository(conn, feed),
        MySQLAttendanceRepository(conn, feed),
        page_size=page_size,
    )


def build_memory_container(
    *,
    store: Optional[InMemoryStore] = None,
    page_size: int = SESSION_PAGE_SIZE,
) -> Container:
    """In-process container for tests, demos and ``STORE_BACKEND=memory``."""
    store = store or InMemoryStore(ChangeFeed())
    if store.feed is None:
        store.feed = ChangeFeed()
    return _assemble(
        store.feed,
        InMemoryMarshalRepository(store),
        InMemoryEmployeeRepository(store),
        InMemoryDrillSessionRepository(store),
        InMemoryAttendanceRepository(store),
        page_size=page_size,
    )
