from __future__ import annotations

from datetime import datetime

import pytest

from ensemble_workspace.core.enums import OverridePolicy, PresenceStatus, Role
from ensemble_workspace.core.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from ensemble_workspace.presences.model import UNDECLARED, Presence, status_label
from ensemble_workspace.presences.service import PresenceService
from ensemble_workspace.users.model import Principal


@pytest.fixture
def assignment(container, alice, team):
    return container.assignment_service.create_assignment(
        current_role=Role.TEAM_ADMIN,
        team_id=team.team_id,
        created_by=alice.user_id,
        fields={"title": "Rehearsal", "assignment_date": "2025-01-02", "start_time": "19:00", "end_time": "21:00"},
    )


def test_undeclared_is_distinct_from_absent(container, bob, assignment):
    result = container.presence_service.status_for(assignment_id=assignment.assignment_id, user_id=bob.user_id)

    assert result is UNDECLARED
    assert result != PresenceStatus.ABSENT
    assert status_label(result) == "undeclared"


def test_declare_twice_keeps_one_record(container, bob, assignment, now):
    svc = container.presence_service
    first = svc.declare(assignment_id=assignment.assignment_id, user_id=bob.user_id, status="present", now=now)
    second = svc.declare(
        assignment_id=assignment.assignment_id, user_id=bob.user_id, status="ABSENT", justification=" sick ", now=now
    )

    assert len(container.presences_repo.rows) == 1
    assert second.presence_id == first.presence_id
    assert second.status == PresenceStatus.ABSENT
    assert second.justification == "sick"


def test_declare_validation(container, bob, assignment):
    svc = container.presence_service
    with pytest.raises(ValidationError):
        svc.declare(assignment_id=assignment.assignment_id, user_id=bob.user_id, status="maybe")
    with pytest.raises(NotFoundError):
        svc.declare(assignment_id="missing", user_id=bob.user_id, status="present")
    with pytest.raises(AuthorizationError):
        svc.declare(assignment_id=assignment.assignment_id, user_id=bob.user_id, status="present", acting_user_id="other")


def test_declare_recovers_from_concurrent_create(container, bob, assignment, now):
    existing = container.presences_repo.create(
        assignment_id=assignment.assignment_id,
        user_id=bob.user_id,
        status=PresenceStatus.ABSENT,
        declared_by=bob.user_id,
        declared_at=now,
    )

    class RacingPresences:
        def __init__(self, inner):
            self._inner = inner
            self._hidden = True

        def get(self, **kwargs):
            if self._hidden:
                self._hidden = False
                return None
            return self._inner.get(**kwargs)

        def create(self, **kwargs):
            return self._inner.create(**kwargs)

        def update(self, presence_id, fields):
            return self._inner.update(presence_id, fields)

    svc = PresenceService(RacingPresences(container.presences_repo), container.assignments_repo)
    result = svc.declare(assignment_id=assignment.assignment_id, user_id=bob.user_id, status="late", now=now)

    assert result.presence_id == existing.presence_id
    assert result.status == PresenceStatus.LATE


def test_override_then_declare_clears_override(container, alice, bob, assignment, now):
    svc = container.presence_service
    overridden = svc.override(
        current_role=Role.TEAM_ADMIN,
        assignment_id=assignment.assignment_id,
        user_id=bob.user_id,
        status="late",
        acting_admin_id=alice.user_id,
        now=now,
    )
    assert overridden.admin_override
    assert overridden.admin_override_by == alice.user_id
    assert overridden.admin_override_at == now

    later = datetime(2025, 1, 1, 10, 0)
    declared = svc.declare(assignment_id=assignment.assignment_id, user_id=bob.user_id, status="present", now=later)

    assert declared.status == PresenceStatus.PRESENT
    assert declared.declared_by == bob.user_id
    assert declared.declared_at == later
    assert (declared.admin_override, declared.admin_override_by, declared.admin_override_at) == (False, None, None)


def test_override_lock_policy_refuses_self_declaration(make_container, now):
    container = make_container(override_policy=OverridePolicy.LOCK)
    alice = container.identity_resolver.ensure_user(Principal(identity_id="auth|a", email="a@example.org"))
    bob = container.identity_resolver.ensure_user(Principal(identity_id="auth|b", email="b@example.org"))
    team = container.team_service.create_team(user=alice, name="Choir")
    assignment = container.assignment_service.create_assignment(
        current_role=Role.TEAM_ADMIN,
        team_id=team.team_id,
        created_by=alice.user_id,
        fields={"title": "Mass", "assignment_date": "2025-01-05", "start_time": "10:00", "end_time": "11:30"},
    )
    svc = container.presence_service
    svc.override(
        current_role=Role.TEAM_ADMIN,
        assignment_id=assignment.assignment_id,
        user_id=bob.user_id,
        status="absent",
        acting_admin_id=alice.user_id,
        now=now,
    )

    with pytest.raises(ConflictError):
        svc.declare(assignment_id=assignment.assignment_id, user_id=bob.user_id, status="present", now=now)

    stored = svc.status_for(assignment_id=assignment.assignment_id, user_id=bob.user_id)
    assert isinstance(stored, Presence)
    assert stored.status == PresenceStatus.ABSENT and stored.admin_override


def test_member_cannot_override(container, alice, bob, assignment):
    with pytest.raises(AuthorizationError):
        container.presence_service.override(
            current_role=Role.MEMBER,
            assignment_id=assignment.assignment_id,
            user_id=alice.user_id,
            status="absent",
            acting_admin_id=bob.user_id,
        )


def test_list_presences_is_one_batched_read(container, alice, bob, team, assignment, now):
    other = container.assignment_service.create_assignment(
        current_role=Role.TEAM_ADMIN,
        team_id=team.team_id,
        created_by=alice.user_id,
        fields={"title": "Concert", "assignment_date": "2025-01-09", "start_time": "20:00", "end_time": "22:00"},
    )
    svc = container.presence_service
    svc.declare(assignment_id=assignment.assignment_id, user_id=bob.user_id, status="present", now=now)
    svc.declare(assignment_id=other.assignment_id, user_id=alice.user_id, status="late", now=now)

    found = svc.list_presences(assignment_ids=[assignment.assignment_id, other.assignment_id], user_id=bob.user_id)

    assert [p.assignment_id for p in found] == [assignment.assignment_id]
    assert len(container.presences_repo.batched_calls) == 1
    assert svc.list_presences(assignment_ids=[], user_id=bob.user_id) == []


def test_list_for_assignment_requires_manager(container, bob, assignment, now):
    svc = container.presence_service
    svc.declare(assignment_id=assignment.assignment_id, user_id=bob.user_id, status="present", now=now)

    assert len(svc.list_for_assignment(current_role=Role.TEAM_ADMIN, assignment_id=assignment.assignment_id)) == 1
    with pytest.raises(AuthorizationError):
        svc.list_for_assignment(current_role=Role.MEMBER, assignment_id=assignment.assignment_id)
