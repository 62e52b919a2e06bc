from __future__ import annotations

from datetime import datetime
from typing import Mapping, Optional, Sequence

from ..common.ids import new_id
from ..core.enums import Role
from ..core.exceptions import NotFoundError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, in_clause, update_clause
from .model import Membership
from .repository import MembershipRepository

_COLUMNS = "membership_id, team_id, user_id, role, is_active, joined_at"


def _to_membership(row: dict) -> Membership:
    return Membership(
        membership_id=row["membership_id"],
        team_id=row["team_id"],
        user_id=row["user_id"],
        role=Role(row["role"]),
        is_active=bool(row["is_active"]),
        joined_at=row["joined_at"],
    )


class MySQLMembershipRepository(MembershipRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create(self, *, team_id: str, user_id: str, role: Role, joined_at: datetime) -> Membership:
        membership = Membership(
            membership_id=new_id("member"),
            team_id=team_id,
            user_id=user_id,
            role=role,
            is_active=True,
            joined_at=joined_at.replace(microsecond=0),
        )
        with db_cursor(
            self._conn_factory,
            operation="memberships.create",
            entity_ids={"team_id": team_id, "user_id": user_id},
        ) as (_, cur):
            cur.execute(
                f"INSERT INTO memberships({_COLUMNS}) VALUES(%s,%s,%s,%s,1,%s)",
                (membership.membership_id, team_id, user_id, role.value, membership.joined_at),
            )
        return membership

    def get(self, *, team_id: str, user_id: str) -> Optional[Membership]:
        with db_cursor(
            self._conn_factory, operation="memberships.get", entity_ids={"team_id": team_id, "user_id": user_id}
        ) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM memberships WHERE team_id=%s AND user_id=%s", (team_id, user_id))
            row = fetchone(cur)
            return _to_membership(row) if row else None

    def list_for_user(self, user_id: str, *, active_only: bool = True) -> Sequence[Membership]:
        sql = f"SELECT {_COLUMNS} FROM memberships WHERE user_id=%s"
        if active_only:
            sql += " AND is_active=1"
        with db_cursor(self._conn_factory, operation="memberships.list_for_user", entity_ids={"user_id": user_id}) as (_, cur):
            cur.execute(sql + " ORDER BY joined_at ASC", (user_id,))
            return [_to_membership(r) for r in fetchall(cur)]

    def list_for_team(self, team_id: str, *, active_only: bool = True) -> Sequence[Membership]:
        sql = f"SELECT {_COLUMNS} FROM memberships WHERE team_id=%s"
        if active_only:
            sql += " AND is_active=1"
        with db_cursor(self._conn_factory, operation="memberships.list_for_team", entity_ids={"team_id": team_id}) as (_, cur):
            cur.execute(sql + " ORDER BY joined_at ASC", (team_id,))
            return [_to_membership(r) for r in fetchall(cur)]

    def count_active_by_team(self, team_ids: Sequence[str]) -> Mapping[str, int]:
        if not team_ids:
            return {}
        where, params = in_clause("team_id", list(team_ids))
        with db_cursor(self._conn_factory, operation="memberships.count_active_by_team") as (_, cur):
            cur.execute(
                f"SELECT team_id, COUNT(*) AS n FROM memberships WHERE {where} AND is_active=1 GROUP BY team_id",
                params,
            )
            counts = {r["team_id"]: int(r["n"]) for r in fetchall(cur)}
        return {team_id: counts.get(team_id, 0) for team_id in team_ids}

    def update(self, membership_id: str, fields: Mapping[str, object]) -> Membership:
        values = {k: (v.value if isinstance(v, Role) else v) for k, v in fields.items()}
        assignments, params = update_clause(values)
        with db_cursor(
            self._conn_factory, operation="memberships.update", entity_ids={"membership_id": membership_id}
        ) as (_, cur):
            cur.execute(f"UPDATE memberships SET {assignments} WHERE membership_id=%s", params + (membership_id,))
            cur.execute(f"SELECT {_COLUMNS} FROM memberships WHERE membership_id=%s", (membership_id,))
            row = fetchone(cur)
        if not row:
            raise NotFoundError("Membership not found")
        return _to_membership(row)
