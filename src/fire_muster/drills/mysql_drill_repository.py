from __future__ import annotations

from datetime import datetime
from typing import Mapping, Optional, Sequence

from ..core.enums import ChangeKind, Table
from ..core.exceptions import ValidationError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, normalize_mysql_datetime
from ..realtime.feed import ChangeFeed
from .model import DrillSession
from .repository import UPDATABLE_COLUMNS, DrillSessionRepository

_COLUMNS = "session_id, started_by, started_at, active, ended_at, ended_by"


def _to_session(r: dict) -> DrillSession:
    return DrillSession(
        session_id=int(r["session_id"]),
        started_by=r["started_by"],
        started_at=normalize_mysql_datetime(r["started_at"]),
        active=bool(r["active"]),
        ended_at=normalize_mysql_datetime(r.get("ended_at")),
        ended_by=r.get("ended_by"),
    )


class MySQLDrillSessionRepository(DrillSessionRepository):
    def __init__(self, conn_factory: DatabaseConnection, feed: Optional[ChangeFeed] = None):
        self._conn_factory = conn_factory
        self._feed = feed

    def create(self, *, started_by: str, started_at: datetime) -> DrillSession:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO drill_sessions(started_by, started_at, active)
                VALUES(%s,%s,1)
                """,
                (started_by, started_at),
            )
            session = DrillSession(
                session_id=int(cur.lastrowid),
                started_by=started_by,
                started_at=started_at,
                active=True,
            )
        if self._feed:
            self._feed.publish_row(Table.DRILL_SESSIONS, ChangeKind.INSERT, session.to_dict())
        return session

    def get_by_id(self, session_id: int) -> Optional[DrillSession]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM drill_sessions WHERE session_id=%s", (int(session_id),))
            r = fetchone(cur)
            return _to_session(r) if r else None

    def list_recent(self, limit: int) -> Sequence[DrillSession]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM drill_sessions
                ORDER BY started_at DESC, session_id DESC
                LIMIT %s
                """,
                (int(limit),),
            )
            return [_to_session(r) for r in fetchall(cur)]

    def list_active(self) -> Sequence[DrillSession]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM drill_sessions
                WHERE active=1
                ORDER BY started_at DESC, session_id DESC
                """
            )
            return [_to_session(r) for r in fetchall(cur)]

    def update(
        self,
        session_id: int,
        changes: Mapping[str, object],
        *,
        only_active: bool = False,
    ) -> Optional[DrillSession]:
        unknown = set(changes) - UPDATABLE_COLUMNS
        if unknown:
            raise ValidationError(f"Cannot update drill session columns: {', '.join(sorted(unknown))}")
        if not changes:
            return self.get_by_id(session_id)

        columns = sorted(changes)
        assignments = ", ".join(f"{c}=%s" for c in columns)
        params: list[object] = [changes[c] for c in columns]
        where = "session_id=%s"
        params.append(int(session_id))
        if only_active:
            where += " AND active=1"

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"UPDATE drill_sessions SET {assignments} WHERE {where}", tuple(params))
            if cur.rowcount <= 0:
                return None
            cur.execute(f"SELECT {_COLUMNS} FROM drill_sessions WHERE session_id=%s", (int(session_id),))
            r = fetchone(cur)
            updated = _to_session(r) if r else None

        if updated and self._feed:
            self._feed.publish_row(Table.DRILL_SESSIONS, ChangeKind.UPDATE, updated.to_dict())
        return updated

    def delete_by_id(self, session_id: int) -> bool:
        # Explicit child delete in the same transaction; the FK also cascades.
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM attendance WHERE session_id=%s", (int(session_id),))
            cur.execute("DELETE FROM drill_sessions WHERE session_id=%s", (int(session_id),))
            deleted = cur.rowcount > 0
        if deleted and self._feed:
            self._feed.publish_row(Table.DRILL_SESSIONS, ChangeKind.DELETE, {}, old={"session_id": int(session_id)})
        return deleted
