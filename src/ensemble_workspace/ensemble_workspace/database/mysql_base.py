from __future__ import annotations

import logging
from contextlib import contextmanager
from datetime import date, datetime, time, timedelta
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

import mysql.connector
from mysql.connector import errorcode

from ..common.datetime_utils import parse_hhmm
from ..core.exceptions import ConflictError, PersistenceError
from .connection import DatabaseConnection

logger = logging.getLogger(__name__)


@contextmanager
def db_cursor(
    conn_factory: DatabaseConnection,
    *,
    operation: str = "",
    entity_ids: Optional[Mapping[str, object]] = None,
    dictionary: bool = True,
):
    """Open a connection + cursor, commit on success, roll back on error.

    Driver errors are translated: duplicate keys become ``ConflictError``,
    everything else ``PersistenceError``. The driver exception stays chained.
    """

    try:
        conn = conn_factory.connect()
    except mysql.connector.Error as e:
        logger.error("Database connection failed during %s %s", operation, dict(entity_ids or {}))
        raise PersistenceError(
            "The database is unavailable", operation=operation, entity_ids=entity_ids
        ) from e

    try:
        cur = conn.cursor(dictionary=dictionary)
        try:
            yield conn, cur
            conn.commit()
        finally:
            cur.close()
    except mysql.connector.IntegrityError as e:
        conn.rollback()
        if e.errno == errorcode.ER_DUP_ENTRY:
            raise ConflictError(f"Duplicate record during {operation or 'write'}") from e
        logger.error("Integrity error during %s %s: %s", operation, dict(entity_ids or {}), e.msg)
        raise PersistenceError(
            "The database rejected the write", operation=operation, entity_ids=entity_ids
        ) from e
    except mysql.connector.Error as e:
        conn.rollback()
        logger.error("Database error during %s %s: %s", operation, dict(entity_ids or {}), e.msg)
        raise PersistenceError(
            "A database error occurred", operation=operation, entity_ids=entity_ids
        ) from e
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


def in_clause(column: str, values: Sequence[object]) -> Tuple[str, Tuple[object, ...]]:
    """Build ``column IN (%s, ...)`` with its parameters."""

    if not values:
        raise ValueError("in_clause needs at least one value")
    placeholders = ", ".join(["%s"] * len(values))
    return f"{column} IN ({placeholders})", tuple(values)


def update_clause(fields: Mapping[str, object]) -> Tuple[str, Tuple[object, ...]]:
    """Build ``a=%s, b=%s`` for an UPDATE from a partial field mapping."""

    if not fields:
        raise ValueError("update_clause needs at least one field")
    assignments = ", ".join(f"{name}=%s" for name in fields)
    return assignments, tuple(fields.values())


def normalize_mysql_time(value: Any) -> Optional[time]:
    """TIME columns come back as timedelta from the C extension and as str from some cursors."""

    if value is None or isinstance(value, time):
        return value
    if isinstance(value, timedelta):
        seconds = int(value.total_seconds()) % 86400
        return time(seconds // 3600, seconds % 3600 // 60, seconds % 60)
    if isinstance(value, str):
        return parse_hhmm(value, "TIME column")
    raise TypeError(f"Unsupported MySQL TIME value type: {type(value)!r}")


def normalize_mysql_date(value: Any) -> Optional[date]:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return datetime.strptime(str(value)[:10], "%Y-%m-%d").date()
