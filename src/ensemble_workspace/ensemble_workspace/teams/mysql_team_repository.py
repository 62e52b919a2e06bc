from __future__ import annotations

from datetime import datetime
from typing import Mapping, Optional, Sequence

from ..common.ids import new_id
from ..core.exceptions import NotFoundError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, in_clause, update_clause
from .model import Organization, Team
from .repository import OrganizationRepository, TeamRepository

_TEAM_COLUMNS = """
    team_id, name, description, invitation_code, organization_id, created_by,
    is_active, created_at, updated_at
"""


def _to_team(row: dict) -> Team:
    return Team(
        team_id=row["team_id"],
        name=row["name"],
        description=row.get("description"),
        invitation_code=row["invitation_code"],
        organization_id=row["organization_id"],
        created_by=row["created_by"],
        is_active=bool(row.get("is_active", True)),
        created_at=row.get("created_at"),
        updated_at=row.get("updated_at"),
    )


def _to_org(row: dict) -> Organization:
    return Organization(
        org_id=row["org_id"],
        name=row["name"],
        created_by=row["created_by"],
        is_active=bool(row.get("is_active", True)),
        created_at=row.get("created_at"),
    )


class MySQLOrganizationRepository(OrganizationRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create(self, *, name: str, created_by: str) -> Organization:
        org = Organization(
            org_id=new_id("org"),
            name=name,
            created_by=created_by,
            created_at=datetime.now().replace(microsecond=0),
        )
        with db_cursor(self._conn_factory, operation="organizations.create", entity_ids={"user_id": created_by}) as (_, cur):
            cur.execute(
                "INSERT INTO organizations(org_id, name, created_by, is_active, created_at) VALUES(%s,%s,%s,1,%s)",
                (org.org_id, org.name, org.created_by, org.created_at),
            )
        return org

    def get_by_id(self, org_id: str) -> Optional[Organization]:
        with db_cursor(self._conn_factory, operation="organizations.get_by_id", entity_ids={"org_id": org_id}) as (_, cur):
            cur.execute(
                "SELECT org_id, name, created_by, is_active, created_at FROM organizations WHERE org_id=%s",
                (org_id,),
            )
            row = fetchone(cur)
            return _to_org(row) if row else None

    def update(self, org_id: str, fields: Mapping[str, object]) -> Organization:
        assignments, params = update_clause(fields)
        with db_cursor(self._conn_factory, operation="organizations.update", entity_ids={"org_id": org_id}) as (_, cur):
            cur.execute(f"UPDATE organizations SET {assignments} WHERE org_id=%s", params + (org_id,))
            cur.execute(
                "SELECT org_id, name, created_by, is_active, created_at FROM organizations WHERE org_id=%s",
                (org_id,),
            )
            row = fetchone(cur)
        if not row:
            raise NotFoundError("Organization not found")
        return _to_org(row)


class MySQLTeamRepository(TeamRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create(
        self,
        *,
        name: str,
        description: Optional[str],
        invitation_code: str,
        organization_id: str,
        created_by: str,
    ) -> Team:
        now = datetime.now().replace(microsecond=0)
        team = Team(
            team_id=new_id("team"),
            name=name,
            description=description,
            invitation_code=invitation_code,
            organization_id=organization_id,
            created_by=created_by,
            created_at=now,
            updated_at=now,
        )
        with db_cursor(
            self._conn_factory, operation="teams.create", entity_ids={"organization_id": organization_id}
        ) as (_, cur):
            cur.execute(
                """
                INSERT INTO teams(team_id, name, description, invitation_code, organization_id,
                                  created_by, is_active, created_at, updated_at)
                VALUES(%s,%s,%s,%s,%s,%s,1,%s,%s)
                """,
                (
                    team.team_id,
                    team.name,
                    team.description,
                    team.invitation_code,
                    team.organization_id,
                    team.created_by,
                    team.created_at,
                    team.updated_at,
                ),
            )
        return team

    def get_by_id(self, team_id: str) -> Optional[Team]:
        with db_cursor(self._conn_factory, operation="teams.get_by_id", entity_ids={"team_id": team_id}) as (_, cur):
            cur.execute(f"SELECT {_TEAM_COLUMNS} FROM teams WHERE team_id=%s", (team_id,))
            row = fetchone(cur)
            return _to_team(row) if row else None

    def get_by_invitation_code(self, invitation_code: str) -> Optional[Team]:
        with db_cursor(self._conn_factory, operation="teams.get_by_invitation_code") as (_, cur):
            cur.execute(
                f"SELECT {_TEAM_COLUMNS} FROM teams WHERE invitation_code=%s AND is_active=1 LIMIT 1",
                (invitation_code,),
            )
            row = fetchone(cur)
            return _to_team(row) if row else None

    def list_by_ids(self, team_ids: Sequence[str]) -> Sequence[Team]:
        if not team_ids:
            return []
        where, params = in_clause("team_id", list(team_ids))
        with db_cursor(self._conn_factory, operation="teams.list_by_ids") as (_, cur):
            cur.execute(f"SELECT {_TEAM_COLUMNS} FROM teams WHERE {where} ORDER BY name ASC, team_id ASC", params)
            return [_to_team(r) for r in fetchall(cur)]

    def update(self, team_id: str, fields: Mapping[str, object]) -> Team:
        values = {**fields, "updated_at": datetime.now().replace(microsecond=0)}
        assignments, params = update_clause(values)
        with db_cursor(self._conn_factory, operation="teams.update", entity_ids={"team_id": team_id}) as (_, cur):
            cur.execute(f"UPDATE teams SET {assignments} WHERE team_id=%s", params + (team_id,))
            cur.execute(f"SELECT {_TEAM_COLUMNS} FROM teams WHERE team_id=%s", (team_id,))
            row = fetchone(cur)
        if not row:
            raise NotFoundError("Team not found")
        return _to_team(row)
