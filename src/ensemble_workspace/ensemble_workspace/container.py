from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .assignments.mysql_assignment_repository import MySQLAssignmentRepository
from .assignments.repository import AssignmentRepository
from .assignments.service import AssignmentService
from .core.constants import DEFAULT_UPCOMING_WINDOW
from .core.enums import OverridePolicy
from .database.connection import DBConfig, DatabaseConnection
from .presences.mysql_presence_repository import MySQLPresenceRepository
from .presences.repository import PresenceRepository
from .presences.service import PresenceService
from .teams.mysql_membership_repository import MySQLMembershipRepository
from .teams.mysql_team_repository import MySQLOrganizationRepository, MySQLTeamRepository
from .teams.repository import MembershipRepository, OrganizationRepository, TeamRepository
from .teams.service import TeamService
from .users.mysql_user_repository import MySQLUserRepository
from .users.repository import UserRepository
from .users.service import IdentityResolver, UserService
from .workspace.service import WorkspaceService


@dataclass(frozen=True)
class Container:
    users_repo: UserRepository
    organizations_repo: OrganizationRepository
    teams_repo: TeamRepository
    memberships_repo: MembershipRepository
    assignments_repo: AssignmentRepository
    presences_repo: PresenceRepository

    identity_resolver: IdentityResolver
    user_service: UserService
    team_service: TeamService
    assignment_service: AssignmentService
    presence_service: PresenceService
    workspace_service: WorkspaceService

    upcoming_window: int = DEFAULT_UPCOMING_WINDOW
    conn: Optional[DatabaseConnection] = None


def wire(
    *,
    users_repo: UserRepository,
    organizations_repo: OrganizationRepository,
    teams_repo: TeamRepository,
    memberships_repo: MembershipRepository,
    assignments_repo: AssignmentRepository,
    presences_repo: PresenceRepository,
    upcoming_window: int = DEFAULT_UPCOMING_WINDOW,
    require_team_admin: bool = True,
    override_policy: OverridePolicy = OverridePolicy.CLEAR,
    conn: Optional[DatabaseConnection] = None,
) -> Container:
    """Build services on top of any set of repositories (MySQL or in-memory)."""

    identity_resolver = IdentityResolver(users_repo)
    user_service = UserService(users_repo)
    team_service = TeamService(
        teams_repo,
        memberships_repo,
        organizations_repo,
        require_team_admin=require_team_admin,
    )
    assignment_service = AssignmentService(assignments_repo, default_window=upcoming_window)
    presence_service = PresenceService(presences_repo, assignments_repo, override_policy=override_policy)
    workspace_service = WorkspaceService(identity_resolver, team_service, assignment_service, presence_service)

    return Container(
        users_repo=users_repo,
        organizations_repo=organizations_repo,
        teams_repo=teams_repo,
        memberships_repo=memberships_repo,
        assignments_repo=assignments_repo,
        presences_repo=presences_repo,
        identity_resolver=identity_resolver,
        user_service=user_service,
        team_service=team_service,
        assignment_service=assignment_service,
        presence_service=presence_service,
        workspace_service=workspace_service,
        upcoming_window=int(upcoming_window),
        conn=conn,
    )


def build_container(
    *,
    db_config: dict,
    upcoming_window: int = DEFAULT_UPCOMING_WINDOW,
    require_team_admin: bool = True,
    override_policy: str = OverridePolicy.CLEAR.value,
) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_dict(db_config))

    return wire(
        users_repo=MySQLUserRepository(conn),
        organizations_repo=MySQLOrganizationRepository(conn),
        teams_repo=MySQLTeamRepository(conn),
        memberships_repo=MySQLMembershipRepository(conn),
        assignments_repo=MySQLAssignmentRepository(conn),
        presences_repo=MySQLPresenceRepository(conn),
        upcoming_window=upcoming_window,
        require_team_admin=require_team_admin,
        override_policy=OverridePolicy(override_policy),
        conn=conn,
    )
