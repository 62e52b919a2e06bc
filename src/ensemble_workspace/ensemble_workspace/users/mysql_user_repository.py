from __future__ import annotations

from datetime import datetime
from typing import Mapping, Optional

from ..common.ids import new_id
from ..core.exceptions import NotFoundError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone, update_clause
from .model import User
from .repository import UserRepository

_COLUMNS = """
    user_id, identity_id, email, display_name, first_name, last_name,
    phone, avatar_url, created_at, updated_at
"""


def _to_user(row: dict) -> User:
    return User(
        user_id=row["user_id"],
        identity_id=row["identity_id"],
        email=row["email"],
        display_name=row["display_name"],
        first_name=row.get("first_name"),
        last_name=row.get("last_name"),
        phone=row.get("phone"),
        avatar_url=row.get("avatar_url"),
        created_at=row.get("created_at"),
        updated_at=row.get("updated_at"),
    )


class MySQLUserRepository(UserRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, user_id: str) -> Optional[User]:
        with db_cursor(self._conn_factory, operation="users.get_by_id", entity_ids={"user_id": user_id}) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM users WHERE user_id=%s", (user_id,))
            row = fetchone(cur)
            return _to_user(row) if row else None

    def get_by_identity(self, identity_id: str) -> Optional[User]:
        with db_cursor(
            self._conn_factory, operation="users.get_by_identity", entity_ids={"identity_id": identity_id}
        ) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM users WHERE identity_id=%s", (identity_id,))
            row = fetchone(cur)
            return _to_user(row) if row else None

    def create(
        self,
        *,
        identity_id: str,
        email: str,
        display_name: str,
        first_name: Optional[str] = None,
        last_name: Optional[str] = None,
        avatar_url: Optional[str] = None,
    ) -> User:
        now = datetime.now().replace(microsecond=0)
        user = User(
            user_id=new_id("user"),
            identity_id=identity_id,
            email=email,
            display_name=display_name,
            first_name=first_name,
            last_name=last_name,
            avatar_url=avatar_url,
            created_at=now,
            updated_at=now,
        )
        with db_cursor(self._conn_factory, operation="users.create", entity_ids={"identity_id": identity_id}) as (_, cur):
            cur.execute(
                """
                INSERT INTO users(user_id, identity_id, email, display_name, first_name, last_name,
                                  avatar_url, created_at, updated_at)
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    user.user_id,
                    user.identity_id,
                    user.email,
                    user.display_name,
                    user.first_name,
                    user.last_name,
                    user.avatar_url,
                    user.created_at,
                    user.updated_at,
                ),
            )
        return user

    def update(self, user_id: str, fields: Mapping[str, object]) -> User:
        values = {**fields, "updated_at": datetime.now().replace(microsecond=0)}
        assignments, params = update_clause(values)
        with db_cursor(self._conn_factory, operation="users.update", entity_ids={"user_id": user_id}) as (_, cur):
            cur.execute(f"UPDATE users SET {assignments} WHERE user_id=%s", params + (user_id,))
            cur.execute(f"SELECT {_COLUMNS} FROM users WHERE user_id=%s", (user_id,))
            row = fetchone(cur)
        if not row:
            raise NotFoundError("User not found")
        return _to_user(row)
