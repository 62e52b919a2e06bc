"""Role -> capability mapping.

Pure functions only; services call ``require_capability`` at the point of
mutation so a hidden UI affordance is never the only gate.
"""

from __future__ import annotations

from typing import FrozenSet, Optional

from .enums import Capability, Role
from .exceptions import AuthorizationError

_MEMBER_CAPABILITIES: FrozenSet[Capability] = frozenset(
    {
        Capability.VIEW_ASSIGNMENTS,
        Capability.DECLARE_PRESENCE,
    }
)

_TEAM_ADMIN_CAPABILITIES: FrozenSet[Capability] = _MEMBER_CAPABILITIES | frozenset(
    {
        Capability.MANAGE_MEMBERS,
        Capability.MANAGE_ASSIGNMENTS,
        Capability.MANAGE_REPERTOIRE,
        Capability.VIEW_INVITATION_CODE,
        Capability.OVERRIDE_PRESENCE,
    }
)

_CAPABILITIES = {
    Role.SUPER_ADMIN: frozenset(Capability),
    Role.TEAM_ADMIN: _TEAM_ADMIN_CAPABILITIES,
    Role.MEMBER: _MEMBER_CAPABILITIES,
}

MANAGER_ROLES = frozenset({Role.SUPER_ADMIN, Role.TEAM_ADMIN})


def capabilities_for(role: Optional[Role]) -> FrozenSet[Capability]:
    if role is None:
        return frozenset()
    return _CAPABILITIES[Role(role)]


def has_capability(role: Optional[Role], capability: Capability) -> bool:
    return capability in capabilities_for(role)


def can_manage_team(role: Optional[Role]) -> bool:
    return role is not None and Role(role) in MANAGER_ROLES


def require_capability(role: Optional[Role], capability: Capability) -> None:
    if not has_capability(role, capability):
        raise AuthorizationError("You do not have permission to perform this action")
