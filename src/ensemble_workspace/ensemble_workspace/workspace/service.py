from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import List, Optional

from ..assignments.model import Assignment
from ..assignments.service import AssignmentService
from ..common.datetime_utils import now_local
from ..core.enums import Role
from ..core.exceptions import NotFoundError
from ..core.permissions import can_manage_team
from ..presences.model import UNDECLARED, PresenceResult
from ..presences.service import PresenceService
from ..teams.model import UserTeam
from ..teams.service import TeamService
from ..users.model import Principal, User
from ..users.service import IdentityResolver


@dataclass(frozen=True)
class WorkspaceState:
    """What a freshly signed-in user sees: their teams and which one is selected."""

    user: User
    teams: List[UserTeam] = field(default_factory=list)
    current_team: Optional[UserTeam] = None

    @property
    def needs_onboarding(self) -> bool:
        return not self.teams


@dataclass(frozen=True)
class AgendaItem:
    assignment: Assignment
    presence: PresenceResult


@dataclass(frozen=True)
class Agenda:
    items: List[AgendaItem]
    member_count: int
    role: Role

    @property
    def upcoming_count(self) -> int:
        return len(self.items)

    @property
    def can_manage(self) -> bool:
        return can_manage_team(self.role)


class WorkspaceService:
    def __init__(
        self,
        identity: IdentityResolver,
        teams: TeamService,
        assignments: AssignmentService,
        presences: PresenceService,
    ):
        self._identity = identity
        self._teams = teams
        self._assignments = assignments
        self._presences = presences

    def load(self, principal: Principal) -> WorkspaceState:
        user = self._identity.ensure_user(principal)
        teams = self._teams.list_teams_for_user(user.user_id)
        return WorkspaceState(user=user, teams=teams, current_team=teams[0] if teams else None)

    def select_team(self, state: WorkspaceState, team_id: str) -> WorkspaceState:
        for team in state.teams:
            if team.team_id == team_id:
                return replace(state, current_team=team)
        raise NotFoundError("You are not a member of this team")

    def agenda(
        self,
        *,
        team_id: str,
        user_id: str,
        window_size: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> Agenda:
        role = self._teams.role_for(team_id=team_id, user_id=user_id)
        upcoming = self._assignments.list_upcoming(team_id=team_id, window_size=window_size, now=now or now_local())

        by_assignment = {
            p.assignment_id: p
            for p in self._presences.list_presences(
                assignment_ids=[a.assignment_id for a in upcoming], user_id=user_id
            )
        }
        items = [AgendaItem(assignment=a, presence=by_assignment.get(a.assignment_id, UNDECLARED)) for a in upcoming]
        return Agenda(items=items, member_count=self._teams.member_count(team_id), role=role)
