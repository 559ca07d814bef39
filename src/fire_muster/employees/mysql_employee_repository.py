from __future__ import annotations

from typing import Optional, Sequence

from ..core.enums import ChangeKind, Table
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall
from ..realtime.feed import ChangeFeed
from .model import Employee
from .repository import EmployeeRepository


def _to_employee(r: dict) -> Employee:
    return Employee(
        employee_id=int(r["employee_id"]),
        name=r["name"],
        dept=r.get("dept"),
        marshal_id=int(r["marshal_id"]) if r.get("marshal_id") is not None else None,
    )


class MySQLEmployeeRepository(EmployeeRepository):
    def __init__(self, conn_factory: DatabaseConnection, feed: Optional[ChangeFeed] = None):
        self._conn_factory = conn_factory
        self._feed = feed

    def create(self, *, name: str, dept: Optional[str], marshal_id: Optional[int]) -> Employee:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO employees(name, dept, marshal_id)
                VALUES(%s,%s,%s)
                """,
                (name, dept, marshal_id),
            )
            employee = Employee(employee_id=int(cur.lastrowid), name=name, dept=dept, marshal_id=marshal_id)
        if self._feed:
            self._feed.publish_row(Table.EMPLOYEES, ChangeKind.INSERT, employee.to_dict())
        return employee

    def list_all(self) -> Sequence[Employee]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT employee_id, name, dept, marshal_id
                FROM employees
                ORDER BY name, employee_id
                """
            )
            return [_to_employee(r) for r in fetchall(cur)]

    def list_by_marshal(self, marshal_id: int) -> Sequence[Employee]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT employee_id, name, dept, marshal_id
                FROM employees
                WHERE marshal_id=%s
                ORDER BY name, employee_id
                """,
                (int(marshal_id),),
            )
            return [_to_employee(r) for r in fetchall(cur)]

    def delete_by_id(self, employee_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM employees WHERE employee_id=%s", (int(employee_id),))
            deleted = cur.rowcount > 0
        if deleted and self._feed:
            self._feed.publish_row(Table.EMPLOYEES, ChangeKind.DELETE, {}, old={"employee_id": int(employee_id)})
        return deleted
