from __future__ import annotations

from datetime import datetime
from typing import Mapping, Optional, Sequence

from ..common.ids import new_id
from ..core.enums import PresenceStatus
from ..core.exceptions import NotFoundError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, in_clause, update_clause
from .model import Presence
from .repository import PresenceRepository

_COLUMNS = """
    presence_id, assignment_id, user_id, status, justification, declared_by, declared_at,
    admin_override, admin_override_by, admin_override_at
"""


def _to_presence(row: dict) -> Presence:
    return Presence(
        presence_id=row["presence_id"],
        assignment_id=row["assignment_id"],
        user_id=row["user_id"],
        status=PresenceStatus(row["status"]),
        justification=row.get("justification"),
        declared_by=row["declared_by"],
        declared_at=row["declared_at"],
        admin_override=bool(row.get("admin_override", False)),
        admin_override_by=row.get("admin_override_by"),
        admin_override_at=row.get("admin_override_at"),
    )


class MySQLPresenceRepository(PresenceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get(self, *, assignment_id: str, user_id: str) -> Optional[Presence]:
        with db_cursor(
            self._conn_factory,
            operation="presences.get",
            entity_ids={"assignment_id": assignment_id, "user_id": user_id},
        ) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM presences WHERE assignment_id=%s AND user_id=%s",
                (assignment_id, user_id),
            )
            row = fetchone(cur)
            return _to_presence(row) if row else None

    def create(
        self,
        *,
        assignment_id: str,
        user_id: str,
        status: PresenceStatus,
        justification: Optional[str],
        declared_by: str,
        declared_at: datetime,
        admin_override: bool = False,
        admin_override_by: Optional[str] = None,
        admin_override_at: Optional[datetime] = None,
    ) -> Presence:
        presence = Presence(
            presence_id=new_id("presence"),
            assignment_id=assignment_id,
            user_id=user_id,
            status=status,
            justification=justification,
            declared_by=declared_by,
            declared_at=declared_at,
            admin_override=admin_override,
            admin_override_by=admin_override_by,
            admin_override_at=admin_override_at,
        )
        with db_cursor(
            self._conn_factory,
            operation="presences.create",
            entity_ids={"assignment_id": assignment_id, "user_id": user_id},
        ) as (_, cur):
            cur.execute(
                f"INSERT INTO presences({_COLUMNS}) VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)",
                (
                    presence.presence_id,
                    presence.assignment_id,
                    presence.user_id,
                    presence.status.value,
                    presence.justification,
                    presence.declared_by,
                    presence.declared_at,
                    int(presence.admin_override),
                    presence.admin_override_by,
                    presence.admin_override_at,
                ),
            )
        return presence

    def update(self, presence_id: str, fields: Mapping[str, object]) -> Presence:
        values = {k: (v.value if isinstance(v, PresenceStatus) else v) for k, v in fields.items()}
        assignments, params = update_clause(values)
        with db_cursor(self._conn_factory, operation="presences.update", entity_ids={"presence_id": presence_id}) as (_, cur):
            cur.execute(f"UPDATE presences SET {assignments} WHERE presence_id=%s", params + (presence_id,))
            cur.execute(f"SELECT {_COLUMNS} FROM presences WHERE presence_id=%s", (presence_id,))
            row = fetchone(cur)
        if not row:
            raise NotFoundError("Presence not found")
        return _to_presence(row)

    def list_for_user(self, user_id: str, assignment_ids: Sequence[str]) -> Sequence[Presence]:
        if not assignment_ids:
            return []
        where, params = in_clause("assignment_id", list(assignment_ids))
        with db_cursor(self._conn_factory, operation="presences.list_for_user", entity_ids={"user_id": user_id}) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM presences WHERE user_id=%s AND {where}", (user_id,) + params)
            return [_to_presence(r) for r in fetchall(cur)]

    def list_for_assignment(self, assignment_id: str) -> Sequence[Presence]:
        with db_cursor(
            self._conn_factory, operation="presences.list_for_assignment", entity_ids={"assignment_id": assignment_id}
        ) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM presences WHERE assignment_id=%s ORDER BY declared_at ASC",
                (assignment_id,),
            )
            return [_to_presence(r) for r in fetchall(cur)]
