from __future__ import annotations

from datetime import date, datetime, time, timedelta

import mysql.connector
import pytest
from mysql.connector import errorcode

from ensemble_workspace.core.exceptions import ConflictError, PersistenceError
from ensemble_workspace.database.bootstrap import split_statements, strip_database_directives
from ensemble_workspace.database.mysql_base import (
    db_cursor,
    in_clause,
    normalize_mysql_date,
    normalize_mysql_time,
    update_clause,
)


class FakeCursor:
    def __init__(self):
        self.closed = False

    def close(self):
        self.closed = True


class FakeConnection:
    def __init__(self):
        self.cursor_obj = FakeCursor()
        self.committed = False
        self.rolled_back = False
        self.closed = False

    def cursor(self, dictionary=True):
        return self.cursor_obj

    def commit(self):
        self.committed = True

    def rollback(self):
        self.rolled_back = True

    def close(self):
        self.closed = True


class FakeFactory:
    def __init__(self, fail=False):
        self.conn = FakeConnection()
        self.fail = fail

    def connect(self, with_database=True):
        if self.fail:
            raise mysql.connector.Error(msg="Can't connect")
        return self.conn


def test_commit_and_close_on_success():
    factory = FakeFactory()
    with db_cursor(factory, operation="users.create"):
        pass

    assert factory.conn.committed and factory.conn.closed
    assert factory.conn.cursor_obj.closed


def test_duplicate_key_becomes_conflict():
    factory = FakeFactory()
    with pytest.raises(ConflictError):
        with db_cursor(factory, operation="memberships.create"):
            raise mysql.connector.IntegrityError(msg="Duplicate entry", errno=errorcode.ER_DUP_ENTRY)

    assert factory.conn.rolled_back and not factory.conn.committed


def test_other_driver_errors_become_persistence_errors():
    factory = FakeFactory()
    with pytest.raises(PersistenceError) as exc:
        with db_cursor(factory, operation="presences.update", entity_ids={"presence_id": "p1"}):
            raise mysql.connector.OperationalError(msg="Lost connection")

    assert exc.value.operation == "presences.update"
    assert exc.value.entity_ids == {"presence_id": "p1"}
    assert not exc.value.partial


def test_connection_failure_is_a_persistence_error():
    with pytest.raises(PersistenceError):
        with db_cursor(FakeFactory(fail=True), operation="teams.get"):
            pass


def test_sql_helpers():
    assert in_clause("team_id", ["a", "b"]) == ("team_id IN (%s, %s)", ("a", "b"))
    assert update_clause({"status": "late", "justification": None}) == ("status=%s, justification=%s", ("late", None))
    with pytest.raises(ValueError):
        in_clause("team_id", [])


@pytest.mark.parametrize(
    "value,expected",
    [
        (timedelta(hours=19, minutes=30), time(19, 30)),
        ("08:05:00", time(8, 5)),
        (time(7, 0), time(7, 0)),
        (None, None),
    ],
)
def test_normalize_mysql_time(value, expected):
    assert normalize_mysql_time(value) == expected


def test_normalize_mysql_date():
    assert normalize_mysql_date(datetime(2025, 1, 2, 10, 0)) == date(2025, 1, 2)
    assert normalize_mysql_date("2025-01-02") == date(2025, 1, 2)


def test_schema_splitter_ignores_quoted_semicolons():
    sql = """
    CREATE DATABASE IF NOT EXISTS ensemble;
    USE ensemble;
    -- comment; with semicolon
    CREATE TABLE a (note VARCHAR(10) DEFAULT 'x;y');
    CREATE TABLE b (id INT)
    """

    statements = split_statements(strip_database_directives(sql))

    assert statements == ["CREATE TABLE a (note VARCHAR(10) DEFAULT 'x;y')", "CREATE TABLE b (id INT)"]
