from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import Role


@dataclass(frozen=True)
class Organization:
    org_id: str
    name: str
    created_by: str
    is_active: bool = True
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class Team:
    team_id: str
    name: str
    invitation_code: str
    organization_id: str
    created_by: str
    description: Optional[str] = None
    is_active: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass(frozen=True)
class Membership:
    membership_id: str
    team_id: str
    user_id: str
    role: Role
    is_active: bool
    joined_at: datetime


@dataclass(frozen=True)
class UserTeam:
    """A team as seen by one user: their role and the active head count."""

    team: Team
    user_role: Role
    member_count: int = 0

    @property
    def team_id(self) -> str:
        return self.team.team_id

    @property
    def name(self) -> str:
        return self.team.name
