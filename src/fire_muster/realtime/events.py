from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Union

from ..attendance.model import AttendanceRecord
from ..core.enums import ChangeKind, Table
from ..drills.model import DrillSession
from .feed import ChangeNotification


@dataclass(frozen=True)
class AttendanceChanged:
    record: AttendanceRecord
    kind: ChangeKind = ChangeKind.UPDATE


@dataclass(frozen=True)
class SessionUpdated:
    session: DrillSession


@dataclass(frozen=True)
class SessionCreated:
    session: DrillSession


@dataclass(frozen=True)
class AttendanceReloaded:
    """Full attendance snapshot fetched after a feed reconnect."""

    session_id: int
    records: tuple[AttendanceRecord, ...]


FeedEvent = Union[AttendanceChanged, SessionUpdated, SessionCreated, AttendanceReloaded]


def from_notification(notification: ChangeNotification) -> Optional[FeedEvent]:
    """Translate a raw store notification into a typed event, or None if irrelevant."""
    if notification.table == Table.ATTENDANCE:
        if not notification.row:
            return None
        return AttendanceChanged(record=AttendanceRecord.from_dict(notification.row), kind=notification.kind)

    if notification.table == Table.DRILL_SESSIONS:
        if notification.kind == ChangeKind.INSERT:
            return SessionCreated(session=DrillSession.from_dict(notification.new))
        if notification.kind == ChangeKind.UPDATE:
            return SessionUpdated(session=DrillSession.from_dict(notification.new))

    return None


def event_name(event: FeedEvent) -> str:
    return {
        AttendanceChanged: "attendance_changed",
        SessionUpdated: "session_updated",
        SessionCreated: "session_created",
        AttendanceReloaded: "attendance_reloaded",
    }[type(event)]


def event_payload(event: FeedEvent) -> dict:
    if isinstance(event, AttendanceChanged):
        return {"kind": event.kind.value, "record": event.record.to_dict()}
    if isinstance(event, (SessionUpdated, SessionCreated)):
        return {"session": event.session.to_dict()}
    return {"session_id": event.session_id, "records": [r.to_dict() for r in event.records]}
