from __future__ import annotations

import re
from pathlib import Path
from typing import Iterable, Sequence

import mysql.connector

from ..core.constants import DEPARTMENTS
from .connection import DBConfig

DEMO_MARSHALS = ("Alex Morgan", "Priya Shah", "Tom Becker")

# (name, dept, marshal name or None)
DEMO_EMPLOYEES = (
    ("Amelia Clarke", "Finance", "Alex Morgan"),
    ("Ben Osei", "Finance", "Alex Morgan"),
    ("Chloe Martin", "Marketing", "Alex Morgan"),
    ("Daniel Kim", "Technical", "Priya Shah"),
    ("Elena Rossi", "Technical", "Priya Shah"),
    ("Farah Hassan", "Customer Care", "Priya Shah"),
    ("George Lee", "Retail", "Tom Becker"),
    ("Hannah Novak", "ESG", "Tom Becker"),
    ("Ivan Petrov", "Credit", None),
)


def _connect(target: DBConfig, *, with_database: bool = True):
    kwargs = dict(
        host=target.host,
        port=target.port,
        user=target.user,
        password=target.password,
        use_pure=True,
    )
    if with_database:
        kwargs["database"] = target.database
    return mysql.connector.connect(**kwargs)


def _strip_create_db_and_use(sql: str) -> str:
    # Keep schema.sql compatible regardless of DB name.
    sql = re.sub(r"(?im)^\s*CREATE\s+DATABASE\b.*?;\s*$", "", sql)
    sql = re.sub(r"(?im)^\s*USE\b.*?;\s*$", "", sql)
    return sql


def _iter_sql_statements(sql: str) -> Iterable[str]:
    # Minimal SQL splitter for schema/seed files (handles ';' inside quotes, skips -- comments).
    buf: list[str] = []
    in_single = False
    in_double = False
    escape = False

    lines = [ln for ln in sql.splitlines() if not ln.lstrip().startswith("--")]
    for ch in "\n".join(lines):
        if escape:
            buf.append(ch)
            escape = False
            continue

        if ch == "\\":
            buf.append(ch)
            escape = True
            continue

        if ch == "'" and not in_double:
            in_single = not in_single
            buf.append(ch)
            continue

        if ch == '"' and not in_single:
            in_double = not in_double
            buf.append(ch)
            continue

        if ch == ";" and not in_single and not in_double:
            stmt = "".join(buf).strip()
            buf.clear()
            if stmt:
                yield stmt
            continue

        buf.append(ch)

    tail = "".join(buf).strip()
    if tail:
        yield tail


def _exec_sql(cur, sql: str) -> None:
    for stmt in _iter_sql_statements(sql):
        cur.execute(stmt)


def ensure_database_exists(db_config: dict) -> None:
    target = DBConfig.from_mapping(db_config)
    conn = _connect(target, with_database=False)
    try:
        cur = conn.cursor()
        cur.execute(
            f"CREATE DATABASE IF NOT EXISTS `{target.database}` CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci;"
        )
        conn.commit()
    finally:
        conn.close()


def apply_schema(db_config: dict, *, schema_path: str | Path) -> None:
    ensure_database_exists(db_config)
    sql = _strip_create_db_and_use(Path(schema_path).read_text(encoding="utf-8"))

    conn = _connect(DBConfig.from_mapping(db_config))
    try:
        cur = conn.cursor()
        _exec_sql(cur, sql)
        conn.commit()
    finally:
        conn.close()


def ensure_demo_roster(
    db_config: dict,
    *,
    marshals: Sequence[str] = DEMO_MARSHALS,
    employees: Sequence[tuple] = DEMO_EMPLOYEES,
) -> None:
    """Insert demo marshals and employees that are not there yet (matched by name)."""
    conn = _connect(DBConfig.from_mapping(db_config))
    try:
        cur = conn.cursor(dictionary=True)

        def marshal_id(name: str) -> int:
            cur.execute("SELECT marshal_id FROM fire_marshals WHERE name=%s", (name,))
            row = cur.fetchone()
            if row:
                return int(row["marshal_id"])
            cur.execute("INSERT INTO fire_marshals (name) VALUES (%s)", (name,))
            return int(cur.lastrowid)

        ids = {name: marshal_id(name) for name in marshals}

        for name, dept, marshal_name in employees:
            if dept and dept not in DEPARTMENTS:
                raise RuntimeError(f"Unknown department for demo employee {name}: {dept}")
            cur.execute("SELECT employee_id FROM employees WHERE name=%s", (name,))
            if cur.fetchone():
                continue
            cur.execute(
                "INSERT INTO employees (name, dept, marshal_id) VALUES (%s, %s, %s)",
                (name, dept, ids.get(marshal_name) if marshal_name else None),
            )

        conn.commit()
    finally:
        conn.close()


def list_tables(db_config: dict) -> list[str]:
    conn = _connect(DBConfig.from_mapping(db_config))
    try:
        cur = conn.cursor()
        cur.execute("SHOW TABLES")
        return [row[0] for row in cur.fetchall()]
    finally:
        conn.close()
