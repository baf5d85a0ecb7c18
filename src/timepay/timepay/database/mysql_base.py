from __future__ import annotations

import json
from contextlib import contextmanager
from datetime import time, timedelta
from decimal import Decimal
from typing import Any, Dict, List, Optional

import mysql.connector
from mysql.connector import errorcode

from ..common.datetime_utils import parse_hhmm
from ..core.exceptions import DuplicateError
from .connection import DatabaseConnection


@contextmanager
def db_cursor(
    conn_factory: DatabaseConnection,
    *,
    dictionary: bool = True,
    duplicate_message: str = "Record already exists",
):
    """Connection + cursor for one unit of work; commits on success, rolls back on error.

    Unique-key violations surface as ``DuplicateError(duplicate_message)``.
    """

    conn = conn_factory.connect()
    try:
        cur = conn.cursor(dictionary=dictionary)
        try:
            yield conn, cur
            conn.commit()
        finally:
            cur.close()
    except mysql.connector.IntegrityError as exc:
        conn.rollback()
        if exc.errno == errorcode.ER_DUP_ENTRY:
            raise DuplicateError(duplicate_message) from exc
        raise
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


def to_float(value: Any, default: float = 0.0) -> float:
    """DECIMAL columns come back as Decimal; domain objects use float."""
    if value is None:
        return default
    if isinstance(value, Decimal):
        return float(value)
    return float(value)


def dump_json(value: Any) -> Optional[str]:
    if value is None:
        return None
    return json.dumps(value)


def load_json(value: Any, default: Any = None) -> Any:
    if value is None or value == "":
        return default
    if isinstance(value, (bytes, bytearray)):
        value = value.decode("utf-8")
    if isinstance(value, str):
        return json.loads(value)
    return value


def in_clause(values) -> str:
    """Placeholder list for ``IN (...)``; callers must not pass an empty sequence."""
    return ", ".join(["%s"] * len(values))


def normalize_mysql_time(value: Any) -> Optional[time]:
    """TIME columns arrive as ``timedelta`` from the C extension, ``time`` or text otherwise."""

    if value is None or isinstance(value, time):
        return value
    if isinstance(value, timedelta):
        seconds = int(value.total_seconds()) % 86400
        return time(seconds // 3600, seconds % 3600 // 60, seconds % 60)
    if isinstance(value, (str, bytes)):
        text = value.decode("ascii") if isinstance(value, bytes) else value
        return parse_hhmm(text)
    raise TypeError(f"Unsupported TIME value: {value!r}")
