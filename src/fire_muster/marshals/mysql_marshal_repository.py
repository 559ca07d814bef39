from __future__ import annotations

from typing import Optional, Sequence

from ..core.enums import ChangeKind, Table
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall
from ..realtime.feed import ChangeFeed
from .model import Marshal
from .repository import MarshalRepository


class MySQLMarshalRepository(MarshalRepository):
    def __init__(self, conn_factory: DatabaseConnection, feed: Optional[ChangeFeed] = None):
        self._conn_factory = conn_factory
        self._feed = feed

    def create(self, *, name: str) -> Marshal:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("INSERT INTO fire_marshals(name) VALUES(%s)", (name,))
            marshal = Marshal(marshal_id=int(cur.lastrowid), name=name)
        if self._feed:
            self._feed.publish_row(Table.MARSHALS, ChangeKind.INSERT, marshal.to_dict())
        return marshal

    def list_all(self) -> Sequence[Marshal]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT marshal_id, name
                FROM fire_marshals
                ORDER BY name, marshal_id
                """
            )
            return [Marshal(marshal_id=int(r["marshal_id"]), name=r["name"]) for r in fetchall(cur)]

    def delete_by_id(self, marshal_id: int) -> bool:
        # employees.marshal_id has no FK: the reference is left dangling on purpose.
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM fire_marshals WHERE marshal_id=%s", (int(marshal_id),))
            deleted = cur.rowcount > 0
        if deleted and self._feed:
            self._feed.publish_row(Table.MARSHALS, ChangeKind.DELETE, {}, old={"marshal_id": int(marshal_id)})
        return deleted
