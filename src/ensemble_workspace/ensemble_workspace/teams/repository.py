from __future__ import annotations

from datetime import datetime
from typing import Mapping, Optional, Protocol, Sequence

from ..core.enums import Role
from .model import Membership, Organization, Team


class OrganizationRepository(Protocol):
    def create(self, *, name: str, created_by: str) -> Organization:
        raise NotImplementedError

    def get_by_id(self, org_id: str) -> Optional[Organization]:
        raise NotImplementedError

    def update(self, org_id: str, fields: Mapping[str, object]) -> Organization:
        raise NotImplementedError


class TeamRepository(Protocol):
    """Teams keyed by id; ``invitation_code`` is unique (create raises ConflictError)."""

    def create(
        self,
        *,
        name: str,
        description: Optional[str],
        invitation_code: str,
        organization_id: str,
        created_by: str,
    ) -> Team:
        raise NotImplementedError

    def get_by_id(self, team_id: str) -> Optional[Team]:
        raise NotImplementedError

    def get_by_invitation_code(self, invitation_code: str) -> Optional[Team]:
        """Exact match on the stored (uppercase) code, active teams only."""

        raise NotImplementedError

    def list_by_ids(self, team_ids: Sequence[str]) -> Sequence[Team]:
        """Batched lookup (``IN`` filter), ordered by name."""

        raise NotImplementedError

    def update(self, team_id: str, fields: Mapping[str, object]) -> Team:
        raise NotImplementedError


class MembershipRepository(Protocol):
    """At most one row per (team, user); ``create`` raises ConflictError on a duplicate."""

    def create(self, *, team_id: str, user_id: str, role: Role, joined_at: datetime) -> Membership:
        raise NotImplementedError

    def get(self, *, team_id: str, user_id: str) -> Optional[Membership]:
        """The (team, user) row whatever its active flag."""

        raise NotImplementedError

    def list_for_user(self, user_id: str, *, active_only: bool = True) -> Sequence[Membership]:
        raise NotImplementedError

    def list_for_team(self, team_id: str, *, active_only: bool = True) -> Sequence[Membership]:
        raise NotImplementedError

    def count_active_by_team(self, team_ids: Sequence[str]) -> Mapping[str, int]:
        raise NotImplementedError

    def update(self, membership_id: str, fields: Mapping[str, object]) -> Membership:
        raise NotImplementedError
