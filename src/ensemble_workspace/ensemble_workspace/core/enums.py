from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Membership role, ordered from most to least privileged."""

    SUPER_ADMIN = "super_admin"
    TEAM_ADMIN = "team_admin"
    MEMBER = "member"


class Capability(str, Enum):
    MANAGE_MEMBERS = "manage_members"
    MANAGE_ASSIGNMENTS = "manage_assignments"
    MANAGE_REPERTOIRE = "manage_repertoire"
    VIEW_INVITATION_CODE = "view_invitation_code"
    OVERRIDE_PRESENCE = "override_presence"
    VIEW_ASSIGNMENTS = "view_assignments"
    DECLARE_PRESENCE = "declare_presence"
    MANAGE_ALL_TEAMS = "manage_all_teams"


class PresenceStatus(str, Enum):
    """Attendance status a member (or an admin) can record."""

    PRESENT = "present"
    ABSENT = "absent"
    LATE = "late"


class OverridePolicy(str, Enum):
    """What a self-declaration does to a record an admin has overridden.

    CLEAR: the declaration wins and the override fields are cleared together.
    LOCK: the declaration is rejected while the override stands.
    """

    CLEAR = "clear"
    LOCK = "lock"


class RecurrenceFrequency(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
