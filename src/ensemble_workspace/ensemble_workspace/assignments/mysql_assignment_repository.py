from __future__ import annotations

from datetime import date, datetime, time
from typing import Mapping, Optional, Sequence

from ..common.ids import new_id
from ..core.exceptions import NotFoundError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import (
    db_cursor,
    fetchall,
    fetchone,
    normalize_mysql_date,
    normalize_mysql_time,
    update_clause,
)
from .model import Assignment
from .repository import AssignmentRepository

_COLUMNS = """
    assignment_id, team_id, title, description, assignment_date, start_time, end_time,
    location, is_recurring, recurrence_pattern, created_by, created_at, updated_at
"""


def _to_assignment(row: dict) -> Assignment:
    return Assignment(
        assignment_id=row["assignment_id"],
        team_id=row["team_id"],
        title=row["title"],
        description=row.get("description"),
        assignment_date=normalize_mysql_date(row["assignment_date"]),
        start_time=normalize_mysql_time(row["start_time"]),
        end_time=normalize_mysql_time(row["end_time"]),
        location=row.get("location"),
        is_recurring=bool(row.get("is_recurring", False)),
        recurrence_pattern=row.get("recurrence_pattern"),
        created_by=row["created_by"],
        created_at=row.get("created_at"),
        updated_at=row.get("updated_at"),
    )


class MySQLAssignmentRepository(AssignmentRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create(
        self,
        *,
        team_id: str,
        title: str,
        assignment_date: date,
        start_time: time,
        end_time: time,
        created_by: str,
        description: Optional[str] = None,
        location: Optional[str] = None,
        is_recurring: bool = False,
        recurrence_pattern: Optional[str] = None,
    ) -> Assignment:
        now = datetime.now().replace(microsecond=0)
        assignment = Assignment(
            assignment_id=new_id("assignment"),
            team_id=team_id,
            title=title,
            description=description,
            assignment_date=assignment_date,
            start_time=start_time,
            end_time=end_time,
            location=location,
            is_recurring=is_recurring,
            recurrence_pattern=recurrence_pattern,
            created_by=created_by,
            created_at=now,
            updated_at=now,
        )
        with db_cursor(self._conn_factory, operation="assignments.create", entity_ids={"team_id": team_id}) as (_, cur):
            cur.execute(
                f"INSERT INTO assignments({_COLUMNS}) VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)",
                (
                    assignment.assignment_id,
                    assignment.team_id,
                    assignment.title,
                    assignment.description,
                    assignment.assignment_date,
                    assignment.start_time,
                    assignment.end_time,
                    assignment.location,
                    int(assignment.is_recurring),
                    assignment.recurrence_pattern,
                    assignment.created_by,
                    assignment.created_at,
                    assignment.updated_at,
                ),
            )
        return assignment

    def get_by_id(self, assignment_id: str) -> Optional[Assignment]:
        with db_cursor(
            self._conn_factory, operation="assignments.get_by_id", entity_ids={"assignment_id": assignment_id}
        ) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM assignments WHERE assignment_id=%s", (assignment_id,))
            row = fetchone(cur)
            return _to_assignment(row) if row else None

    def list_for_team(self, team_id: str, *, limit: int) -> Sequence[Assignment]:
        with db_cursor(self._conn_factory, operation="assignments.list_for_team", entity_ids={"team_id": team_id}) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM assignments
                WHERE team_id=%s
                ORDER BY assignment_date ASC, start_time ASC
                LIMIT %s
                """,
                (team_id, int(limit)),
            )
            return [_to_assignment(r) for r in fetchall(cur)]

    def list_single_from(self, team_id: str, *, start: datetime, limit: int) -> Sequence[Assignment]:
        with db_cursor(
            self._conn_factory, operation="assignments.list_single_from", entity_ids={"team_id": team_id}
        ) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM assignments
                WHERE team_id=%s AND is_recurring=0
                  AND (assignment_date > %s OR (assignment_date = %s AND start_time >= %s))
                ORDER BY assignment_date ASC, start_time ASC
                LIMIT %s
                """,
                (team_id, start.date(), start.date(), start.time().replace(microsecond=0), int(limit)),
            )
            return [_to_assignment(r) for r in fetchall(cur)]

    def list_recurring_for_team(self, team_id: str) -> Sequence[Assignment]:
        with db_cursor(
            self._conn_factory, operation="assignments.list_recurring_for_team", entity_ids={"team_id": team_id}
        ) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM assignments
                WHERE team_id=%s AND is_recurring=1
                ORDER BY assignment_date ASC, start_time ASC
                """,
                (team_id,),
            )
            return [_to_assignment(r) for r in fetchall(cur)]

    def update(self, assignment_id: str, fields: Mapping[str, object]) -> Assignment:
        values = {**fields, "updated_at": datetime.now().replace(microsecond=0)}
        assignments, params = update_clause(values)
        with db_cursor(
            self._conn_factory, operation="assignments.update", entity_ids={"assignment_id": assignment_id}
        ) as (_, cur):
            cur.execute(f"UPDATE assignments SET {assignments} WHERE assignment_id=%s", params + (assignment_id,))
            cur.execute(f"SELECT {_COLUMNS} FROM assignments WHERE assignment_id=%s", (assignment_id,))
            row = fetchone(cur)
        if not row:
            raise NotFoundError("Assignment not found")
        return _to_assignment(row)
