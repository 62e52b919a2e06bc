from __future__ import annotations

from dataclasses import replace
from datetime import datetime
from itertools import count
from typing import Mapping, Optional, Sequence

import pytest

from ensemble_workspace.assignments.model import Assignment
from ensemble_workspace.container import wire
from ensemble_workspace.core.enums import OverridePolicy, Role
from ensemble_workspace.core.exceptions import ConflictError, NotFoundError, PersistenceError
from ensemble_workspace.presences.model import Presence
from ensemble_workspace.teams.model import Membership, Organization, Team
from ensemble_workspace.users.model import Principal, User

_ids = count(1)


def _next_id(prefix: str) -> str:
    return f"{prefix}_{next(_ids)}"


class InMemoryUsers:
    def __init__(self):
        self.rows: dict[str, User] = {}

    def get_by_id(self, user_id):
        return self.rows.get(user_id)

    def get_by_identity(self, identity_id):
        return next((u for u in self.rows.values() if u.identity_id == identity_id), None)

    def create(self, *, identity_id, email, display_name, first_name=None, last_name=None, avatar_url=None):
        if self.get_by_identity(identity_id):
            raise ConflictError("Duplicate record during users.create")
        user = User(
            user_id=_next_id("user"),
            identity_id=identity_id,
            email=email,
            display_name=display_name,
            first_name=first_name,
            last_name=last_name,
            avatar_url=avatar_url,
        )
        self.rows[user.user_id] = user
        return user

    def update(self, user_id, fields: Mapping[str, object]):
        if user_id not in self.rows:
            raise NotFoundError("User not found")
        self.rows[user_id] = replace(self.rows[user_id], **fields)
        return self.rows[user_id]


class InMemoryOrganizations:
    def __init__(self):
        self.rows: dict[str, Organization] = {}
        self.fail_updates = False

    def create(self, *, name, created_by):
        if len(name) > 255:
            raise PersistenceError("Data too long for column name", operation="organizations.create")
        org = Organization(org_id=_next_id("org"), name=name, created_by=created_by)
        self.rows[org.org_id] = org
        return org

    def get_by_id(self, org_id):
        return self.rows.get(org_id)

    def update(self, org_id, fields):
        if self.fail_updates:
            raise PersistenceError("down", operation="organizations.update")
        self.rows[org_id] = replace(self.rows[org_id], **fields)
        return self.rows[org_id]


class InMemoryTeams:
    def __init__(self):
        self.rows: dict[str, Team] = {}

    def create(self, *, name, description, invitation_code, organization_id, created_by):
        if any(t.invitation_code == invitation_code for t in self.rows.values()):
            raise ConflictError("Duplicate record during teams.create")
        team = Team(
            team_id=_next_id("team"),
            name=name,
            description=description,
            invitation_code=invitation_code,
            organization_id=organization_id,
            created_by=created_by,
        )
        self.rows[team.team_id] = team
        return team

    def get_by_id(self, team_id):
        return self.rows.get(team_id)

    def get_by_invitation_code(self, invitation_code):
        return next(
            (t for t in self.rows.values() if t.invitation_code == invitation_code and t.is_active),
            None,
        )

    def list_by_ids(self, team_ids: Sequence[str]):
        return sorted((self.rows[i] for i in team_ids if i in self.rows), key=lambda t: (t.name, t.team_id))

    def update(self, team_id, fields):
        self.rows[team_id] = replace(self.rows[team_id], **fields)
        return self.rows[team_id]


class InMemoryMemberships:
    def __init__(self):
        self.rows: dict[str, Membership] = {}
        self.fail_creates = False

    def create(self, *, team_id, user_id, role, joined_at):
        if self.fail_creates:
            raise PersistenceError("down", operation="memberships.create")
        if self.get(team_id=team_id, user_id=user_id):
            raise ConflictError("Duplicate record during memberships.create")
        m = Membership(
            membership_id=_next_id("member"),
            team_id=team_id,
            user_id=user_id,
            role=Role(role),
            is_active=True,
            joined_at=joined_at,
        )
        self.rows[m.membership_id] = m
        return m

    def get(self, *, team_id, user_id):
        return next((m for m in self.rows.values() if m.team_id == team_id and m.user_id == user_id), None)

    def list_for_user(self, user_id, *, active_only=True):
        return [m for m in self.rows.values() if m.user_id == user_id and (m.is_active or not active_only)]

    def list_for_team(self, team_id, *, active_only=True):
        return [m for m in self.rows.values() if m.team_id == team_id and (m.is_active or not active_only)]

    def count_active_by_team(self, team_ids):
        return {t: len(self.list_for_team(t)) for t in team_ids}

    def update(self, membership_id, fields):
        values = {k: (Role(v) if k == "role" else v) for k, v in fields.items()}
        self.rows[membership_id] = replace(self.rows[membership_id], **values)
        return self.rows[membership_id]


class InMemoryAssignments:
    def __init__(self):
        self.rows: dict[str, Assignment] = {}
        self.last_limit: Optional[int] = None

    def create(self, *, team_id, created_by, **fields):
        a = Assignment(assignment_id=_next_id("assignment"), team_id=team_id, created_by=created_by, **fields)
        self.rows[a.assignment_id] = a
        return a

    def get_by_id(self, assignment_id):
        return self.rows.get(assignment_id)

    def _ordered(self, team_id):
        items = [a for a in self.rows.values() if a.team_id == team_id]
        return sorted(items, key=lambda a: (a.assignment_date, a.start_time))

    def list_for_team(self, team_id, *, limit):
        self.last_limit = limit
        return self._ordered(team_id)[:limit]

    def list_single_from(self, team_id, *, start, limit):
        return [a for a in self._ordered(team_id) if not a.is_recurring and a.starts_at >= start][:limit]

    def list_recurring_for_team(self, team_id):
        return [a for a in self._ordered(team_id) if a.is_recurring]

    def update(self, assignment_id, fields):
        self.rows[assignment_id] = replace(self.rows[assignment_id], **fields)
        return self.rows[assignment_id]


class InMemoryPresences:
    def __init__(self):
        self.rows: dict[str, Presence] = {}
        self.batched_calls: list[tuple[str, list[str]]] = []

    def get(self, *, assignment_id, user_id):
        return next(
            (p for p in self.rows.values() if p.assignment_id == assignment_id and p.user_id == user_id),
            None,
        )

    def create(self, *, assignment_id, user_id, **fields):
        if self.get(assignment_id=assignment_id, user_id=user_id):
            raise ConflictError("Duplicate record during presences.create")
        p = Presence(presence_id=_next_id("presence"), assignment_id=assignment_id, user_id=user_id, **fields)
        self.rows[p.presence_id] = p
        return p

    def update(self, presence_id, fields):
        self.rows[presence_id] = replace(self.rows[presence_id], **fields)
        return self.rows[presence_id]

    def list_for_user(self, user_id, assignment_ids):
        self.batched_calls.append((user_id, list(assignment_ids)))
        return [p for p in self.rows.values() if p.user_id == user_id and p.assignment_id in assignment_ids]

    def list_for_assignment(self, assignment_id):
        return [p for p in self.rows.values() if p.assignment_id == assignment_id]


@pytest.fixture
def now():
    return datetime(2025, 1, 1, 9, 30)


@pytest.fixture
def make_container():
    def _make(*, require_team_admin=True, override_policy=OverridePolicy.CLEAR):
        return wire(
            users_repo=InMemoryUsers(),
            organizations_repo=InMemoryOrganizations(),
            teams_repo=InMemoryTeams(),
            memberships_repo=InMemoryMemberships(),
            assignments_repo=InMemoryAssignments(),
            presences_repo=InMemoryPresences(),
            require_team_admin=require_team_admin,
            override_policy=override_policy,
        )

    return _make


@pytest.fixture
def container(make_container):
    return make_container()


@pytest.fixture
def make_user(container):
    def _make(name: str):
        principal = Principal(identity_id=f"auth|{name}", email=f"{name}@example.org", display_name=name.title())
        return container.identity_resolver.ensure_user(principal)

    return _make


@pytest.fixture
def alice(make_user):
    return make_user("alice")


@pytest.fixture
def bob(make_user):
    return make_user("bob")


@pytest.fixture
def team(container, alice):
    """A team created by alice (team_admin)."""
    return container.team_service.create_team(user=alice, name="Chorale Saint-Martin", description="Sunday choir")
