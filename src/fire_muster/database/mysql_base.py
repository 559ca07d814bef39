from __future__ import annotations

import logging
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Dict, List, Optional

import mysql.connector

from ..core.exceptions import StoreUnavailableError, WriteRejectedError
from .connection import DatabaseConnection

logger = logging.getLogger(__name__)


def translate_error(exc: mysql.connector.Error) -> Exception:
    """Map connector errors onto the domain error taxonomy."""
    if isinstance(exc, (mysql.connector.InterfaceError, mysql.connector.OperationalError)):
        return StoreUnavailableError(f"Store unavailable: {exc}")
    return WriteRejectedError(f"Store rejected the operation: {exc}")


@contextmanager
def db_cursor(conn_factory: DatabaseConnection, *, dictionary: bool = True):
    try:
        conn = conn_factory.connect()
    except mysql.connector.Error as exc:
        logger.error("Cannot connect to store: %s", exc)
        raise translate_error(exc) from exc

    try:
        cur = conn.cursor(dictionary=dictionary)
        try:
            yield conn, cur
            conn.commit()
        finally:
            cur.close()
    except mysql.connector.Error as exc:
        conn.rollback()
        logger.warning("Store operation failed: %s", exc)
        raise translate_error(exc) from exc
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def fetchone(cur) -> Optional[Dict[str, Any]]:
    row = cur.fetchone()
    return row if row else None


def fetchall(cur) -> List[Dict[str, Any]]:
    rows = cur.fetchall()
    return list(rows or [])


def normalize_mysql_datetime(value: Any) -> Optional[datetime]:
    """Normalize DATETIME values across connector implementations.

    mysql-connector can return DATETIME as datetime or as an ISO-like string
    (pure-python mode with ``raw`` cursors).
    """

    if value is None:
        return None

    if isinstance(value, datetime):
        return value

    if isinstance(value, (bytes, bytearray)):
        value = value.decode("utf-8")

    if isinstance(value, str):
        return datetime.fromisoformat(value.strip().replace(" ", "T", 1))

    raise TypeError(f"Unsupported MySQL DATETIME value type: {type(value)!r}")
