from __future__ import annotations

import pytest

from ensemble_workspace.core.enums import Capability, Role
from ensemble_workspace.core.exceptions import AuthorizationError
from ensemble_workspace.core.permissions import (
    can_manage_team,
    capabilities_for,
    has_capability,
    require_capability,
)


@pytest.mark.parametrize(
    "role,expected",
    [(Role.SUPER_ADMIN, True), (Role.TEAM_ADMIN, True), (Role.MEMBER, False), (None, False)],
)
def test_can_manage_team(role, expected):
    assert can_manage_team(role) is expected


def test_member_capabilities():
    assert capabilities_for(Role.MEMBER) == {Capability.VIEW_ASSIGNMENTS, Capability.DECLARE_PRESENCE}
    assert not has_capability(Role.MEMBER, Capability.OVERRIDE_PRESENCE)


def test_only_super_admin_manages_all_teams():
    assert has_capability(Role.SUPER_ADMIN, Capability.MANAGE_ALL_TEAMS)
    assert not has_capability(Role.TEAM_ADMIN, Capability.MANAGE_ALL_TEAMS)


def test_require_capability_raises():
    require_capability(Role.TEAM_ADMIN, Capability.MANAGE_MEMBERS)
    with pytest.raises(AuthorizationError):
        require_capability(Role.MEMBER, Capability.MANAGE_MEMBERS)
    with pytest.raises(AuthorizationError):
        require_capability(None, Capability.VIEW_ASSIGNMENTS)
