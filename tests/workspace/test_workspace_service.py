from __future__ import annotations

import pytest

from ensemble_workspace.auth.session import SessionContext
from ensemble_workspace.core.enums import PresenceStatus, Role
from ensemble_workspace.core.exceptions import AuthorizationError, NotFoundError
from ensemble_workspace.presences.model import UNDECLARED
from ensemble_workspace.users.model import Principal


def test_new_user_needs_onboarding(container):
    state = container.workspace_service.load(Principal(identity_id="auth|new", email="new@example.org"))

    assert state.needs_onboarding
    assert state.current_team is None


def test_load_selects_first_team(container, alice, team):
    state = container.workspace_service.load(Principal(identity_id=alice.identity_id, email=alice.email))

    assert state.user.user_id == alice.user_id
    assert state.current_team.team_id == team.team_id

    with pytest.raises(NotFoundError):
        container.workspace_service.select_team(state, "team_unknown")


def test_agenda_pairs_assignments_with_presence(container, alice, bob, team, now):
    container.team_service.join_team(user=bob, invitation_code=team.invitation_code)
    created = [
        container.assignment_service.create_assignment(
            current_role=Role.TEAM_ADMIN,
            team_id=team.team_id,
            created_by=alice.user_id,
            fields={"title": title, "assignment_date": day, "start_time": "10:00", "end_time": "12:00"},
        )
        for title, day in (("Past", "2024-12-31"), ("Next", "2025-01-02"), ("Later", "2025-01-09"))
    ]
    container.presence_service.declare(
        assignment_id=created[1].assignment_id, user_id=bob.user_id, status="late", now=now
    )

    agenda = container.workspace_service.agenda(team_id=team.team_id, user_id=bob.user_id, now=now)

    assert [item.assignment.title for item in agenda.items] == ["Next", "Later"]
    assert agenda.items[0].presence.status == PresenceStatus.LATE
    assert agenda.items[1].presence is UNDECLARED
    assert agenda.member_count == 2
    assert agenda.upcoming_count == 2
    assert agenda.role == Role.MEMBER and not agenda.can_manage
    assert len(container.presences_repo.batched_calls) == 1


def test_agenda_for_outsider(container, bob, team, now):
    with pytest.raises(AuthorizationError):
        container.workspace_service.agenda(team_id=team.team_id, user_id=bob.user_id, now=now)


class FakeAuthProvider:
    def __init__(self, principal=None):
        self.principal = principal
        self.callbacks = []
        self.logins = 0

    def current_principal(self):
        return self.principal

    def on_principal_change(self, callback):
        self.callbacks.append(callback)
        return lambda: self.callbacks.remove(callback)

    def login(self):
        self.logins += 1

    def logout(self):
        self.principal = None
        for cb in list(self.callbacks):
            cb(None)


def test_session_context_follows_provider():
    provider = FakeAuthProvider()
    session = SessionContext(provider)
    seen = []
    unsubscribe = session.subscribe(seen.append)

    assert not session.is_authenticated

    principal = Principal(identity_id="auth|1", email="a@example.org")
    provider.callbacks[0](principal)
    assert session.principal == principal
    assert seen == [principal]

    unsubscribe()
    session.logout()
    assert session.principal is None
    assert seen == [principal]

    session.login()
    assert provider.logins == 1

    session.close()
    assert provider.callbacks == []
