from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import List, Union

from .connection import DatabaseConnection

logger = logging.getLogger(__name__)

_DATABASE_DIRECTIVE_RE = re.compile(r"(?im)^\s*(?:CREATE\s+DATABASE|USE)\b[^;]*;[ \t]*$")
_SQL_TOKEN_RE = re.compile(r"""'(?:\\.|[^'\\])*'|"(?:\\.|[^"\\])*"|;|[^'";]+""", re.S)


def strip_database_directives(sql: str) -> str:
    """Drop CREATE DATABASE / USE lines so the configured database name wins."""
    return _DATABASE_DIRECTIVE_RE.sub("", sql)


def split_statements(sql: str) -> List[str]:
    """Split on top-level ';'. Quoted literals are kept whole and ``--`` comment lines skipped."""

    body = "\n".join(line for line in sql.splitlines() if not line.lstrip().startswith("--"))
    statements: List[str] = []
    current: List[str] = []
    for token in _SQL_TOKEN_RE.findall(body):
        if token != ";":
            current.append(token)
            continue
        stmt = "".join(current).strip()
        current = []
        if stmt:
            statements.append(stmt)

    tail = "".join(current).strip()
    if tail:
        statements.append(tail)
    return statements


def ensure_database_exists(conn_factory: DatabaseConnection) -> None:
    conn = conn_factory.connect(with_database=False)
    try:
        cur = conn.cursor()
        cur.execute(
            f"CREATE DATABASE IF NOT EXISTS `{conn_factory.config.database}` "
            "CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci"
        )
        conn.commit()
    finally:
        conn.close()


def apply_schema(conn_factory: DatabaseConnection, *, schema_path: Union[str, Path]) -> int:
    """Apply schema.sql (idempotent: CREATE TABLE IF NOT EXISTS). Returns statement count."""

    ensure_database_exists(conn_factory)
    sql = strip_database_directives(Path(schema_path).read_text(encoding="utf-8"))

    conn = conn_factory.connect()
    count = 0
    try:
        cur = conn.cursor()
        for stmt in split_statements(sql):
            cur.execute(stmt)
            count += 1
        conn.commit()
    finally:
        conn.close()

    logger.info("Schema applied (%d statements) to database '%s'", count, conn_factory.config.database)
    return count
