from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, List, Optional

from ..common.datetime_utils import now_local
from ..common.validators import optional_text, require_non_empty
from ..core.constants import MAX_INVITATION_CODE_ATTEMPTS, NAME_MAX_LENGTH
from ..core.enums import Capability, Role
from ..core.exceptions import (
    AuthorizationError,
    ConflictError,
    DomainError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)
from ..core.permissions import MANAGER_ROLES, require_capability
from ..users.model import User
from .invitation import generate_invitation_code, is_well_formed, normalize_invitation_code
from .model import Membership, Organization, Team, UserTeam
from .repository import MembershipRepository, OrganizationRepository, TeamRepository

logger = logging.getLogger(__name__)


class TeamService:
    """Use cases: create/join teams and manage memberships.

    ``require_team_admin`` keeps at least one active team_admin/super_admin in
    every team: removing the last one is rejected.
    """

    def __init__(
        self,
        teams: TeamRepository,
        memberships: MembershipRepository,
        organizations: OrganizationRepository,
        *,
        require_team_admin: bool = True,
        code_generator: Callable[[], str] = generate_invitation_code,
        max_code_attempts: int = MAX_INVITATION_CODE_ATTEMPTS,
    ):
        self._teams = teams
        self._memberships = memberships
        self._organizations = organizations
        self._require_team_admin = bool(require_team_admin)
        self._code_generator = code_generator
        self._max_code_attempts = int(max_code_attempts)

    def get_team(self, team_id: str) -> Team:
        team = self._teams.get_by_id(team_id)
        if not team or not team.is_active:
            raise NotFoundError("Team not found")
        return team

    # --- creation (organization -> team -> admin membership) ---

    def create_team(
        self,
        *,
        user: User,
        name: str,
        description: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> Team:
        name = require_non_empty(name, "Team name")
        if len(name) > NAME_MAX_LENGTH:
            raise ValidationError(f"Team name must be at most {NAME_MAX_LENGTH} characters")
        description = optional_text(description, "Description")
        now = now or now_local()

        suffix = "'s organization"
        owner = user.display_name[: NAME_MAX_LENGTH - len(suffix)]
        org = self._organizations.create(name=f"{owner}{suffix}", created_by=user.user_id)

        try:
            team = self._create_with_unique_code(
                name=name,
                description=description,
                organization_id=org.org_id,
                created_by=user.user_id,
            )
        except Exception as e:
            self._compensate(operation="create_team", org=org, team=None, cause=e)
            raise

        try:
            self._memberships.create(team_id=team.team_id, user_id=user.user_id, role=Role.TEAM_ADMIN, joined_at=now)
        except Exception as e:
            self._compensate(operation="create_team", org=org, team=team, cause=e)
            raise

        logger.info("Team %s created by user %s", team.team_id, user.user_id)
        return team

    def _create_with_unique_code(self, *, name: str, description: Optional[str], organization_id: str, created_by: str) -> Team:
        for attempt in range(1, self._max_code_attempts + 1):
            code = self._code_generator()
            if self._teams.get_by_invitation_code(code) is not None:
                logger.warning("Invitation code collision (attempt %d/%d)", attempt, self._max_code_attempts)
                continue
            try:
                return self._teams.create(
                    name=name,
                    description=description,
                    invitation_code=code,
                    organization_id=organization_id,
                    created_by=created_by,
                )
            except ConflictError:
                # Lost a race on the unique index, or the code belongs to a retired team.
                logger.warning("Invitation code rejected by storage (attempt %d/%d)", attempt, self._max_code_attempts)

        raise ConflictError("Could not generate a unique invitation code, please try again")

    def _compensate(self, *, operation: str, org: Organization, team: Optional[Team], cause: Exception) -> None:
        """Retire the records written before a failed step so no orphan team stays joinable."""

        entity_ids = {"org_id": org.org_id}
        if team is not None:
            entity_ids["team_id"] = team.team_id
        logger.error("%s failed after partial writes %s; compensating", operation, entity_ids)

        try:
            if team is not None:
                self._teams.update(team.team_id, {"is_active": False})
            self._organizations.update(org.org_id, {"is_active": False})
        except DomainError as e:
            logger.error("Compensation for %s failed (%s), records left behind: %s", operation, e, entity_ids)
            raise PersistenceError(
                "Team creation failed and could not be fully rolled back",
                operation=operation,
                entity_ids=entity_ids,
                partial=True,
            ) from cause

    # --- joining ---

    def join_team(self, *, user: User, invitation_code: str, now: Optional[datetime] = None) -> Team:
        code = normalize_invitation_code(invitation_code)
        now = now or now_local()

        team = self._teams.get_by_invitation_code(code) if is_well_formed(code) else None
        if not team:
            raise NotFoundError("This invitation code does not exist or has expired")

        existing = self._memberships.get(team_id=team.team_id, user_id=user.user_id)
        if existing and existing.is_active:
            logger.warning("User %s tried to join team %s twice", user.user_id, team.team_id)
            raise ConflictError("You are already a member of this team")

        if existing:
            self._memberships.update(
                existing.membership_id,
                {"is_active": True, "role": Role.MEMBER, "joined_at": now.replace(microsecond=0)},
            )
        else:
            self._memberships.create(team_id=team.team_id, user_id=user.user_id, role=Role.MEMBER, joined_at=now)

        logger.info("User %s joined team %s", user.user_id, team.team_id)
        return team

    # --- reads ---

    def list_memberships(self, user_id: str) -> List[Membership]:
        return list(self._memberships.list_for_user(user_id, active_only=True))

    def list_teams_for_user(self, user_id: str) -> List[UserTeam]:
        memberships = self.list_memberships(user_id)
        if not memberships:
            return []

        role_by_team = {m.team_id: m.role for m in memberships}
        teams = [t for t in self._teams.list_by_ids(list(role_by_team)) if t.is_active]
        counts = self._memberships.count_active_by_team([t.team_id for t in teams])

        return [
            UserTeam(team=t, user_role=role_by_team[t.team_id], member_count=counts.get(t.team_id, 0))
            for t in teams
        ]

    def needs_onboarding(self, user_id: str) -> bool:
        return not self.list_teams_for_user(user_id)

    def is_active_member(self, *, team_id: str, user_id: str) -> bool:
        membership = self._memberships.get(team_id=team_id, user_id=user_id)
        return bool(membership and membership.is_active)

    def member_count(self, team_id: str) -> int:
        return self._memberships.count_active_by_team([team_id]).get(team_id, 0)

    def list_members(self, *, current_role: Role, team_id: str) -> List[Membership]:
        require_capability(current_role, Capability.VIEW_ASSIGNMENTS)
        return list(self._memberships.list_for_team(team_id, active_only=True))

    def role_for(self, *, team_id: str, user_id: str) -> Role:
        """Effective role of a user in a team.

        An active super_admin membership anywhere in the team's organization
        grants super_admin here too.
        """

        team = self.get_team(team_id)
        own = self._memberships.get(team_id=team_id, user_id=user_id)
        if own and own.is_active and own.role == Role.SUPER_ADMIN:
            return Role.SUPER_ADMIN

        elevated_team_ids = [
            m.team_id
            for m in self._memberships.list_for_user(user_id, active_only=True)
            if m.role == Role.SUPER_ADMIN
        ]
        if elevated_team_ids:
            for other in self._teams.list_by_ids(elevated_team_ids):
                if other.organization_id == team.organization_id:
                    return Role.SUPER_ADMIN

        if own and own.is_active:
            return own.role
        raise AuthorizationError("You are not a member of this team")

    def invitation_code_for(self, *, current_role: Role, team_id: str) -> str:
        require_capability(current_role, Capability.VIEW_INVITATION_CODE)
        return self.get_team(team_id).invitation_code

    # --- removal ---

    def remove_membership(
        self,
        *,
        current_role: Role,
        acting_user_id: str,
        team_id: str,
        user_id: str,
    ) -> Membership:
        leaving_self = acting_user_id == user_id
        if not leaving_self:
            require_capability(current_role, Capability.MANAGE_MEMBERS)

        target = self._memberships.get(team_id=team_id, user_id=user_id)
        if not target or not target.is_active:
            raise NotFoundError("Membership not found")

        if target.role == Role.SUPER_ADMIN and not leaving_self and current_role != Role.SUPER_ADMIN:
            raise AuthorizationError("Only a super admin can remove a super admin")

        if self._require_team_admin and target.role in MANAGER_ROLES:
            managers = [m for m in self._memberships.list_for_team(team_id, active_only=True) if m.role in MANAGER_ROLES]
            if len(managers) <= 1:
                logger.warning("Refused to remove the last admin %s of team %s", user_id, team_id)
                raise ConflictError("A team must keep at least one administrator")

        removed = self._memberships.update(target.membership_id, {"is_active": False})
        logger.info("Membership of user %s in team %s deactivated by %s", user_id, team_id, acting_user_id)
        return removed
