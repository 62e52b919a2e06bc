from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..common.validators import optional_text, require_non_empty


@dataclass(frozen=True)
class Principal:
    """Authenticated identity handed over by the auth collaborator."""

    identity_id: str
    email: str
    display_name: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    avatar_url: Optional[str] = None

    @classmethod
    def from_claims(cls, claims: dict) -> "Principal":
        """Build a validated principal from loosely-typed auth claims.

        Raises ValidationError when the identity id or email is missing.
        """
        return cls(
            identity_id=require_non_empty(claims.get("id") or claims.get("identity_id"), "Identity id"),
            email=require_non_empty(claims.get("email"), "Email"),
            display_name=optional_text(claims.get("display_name") or claims.get("displayName")),
            first_name=optional_text(claims.get("first_name") or claims.get("firstName")),
            last_name=optional_text(claims.get("last_name") or claims.get("lastName")),
            avatar_url=optional_text(claims.get("avatar_url") or claims.get("avatarUrl")),
        )


@dataclass(frozen=True)
class User:
    """Domain entity: User.

    Plain data object; no storage access here.
    """

    user_id: str
    identity_id: str
    email: str
    display_name: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = None
    avatar_url: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
