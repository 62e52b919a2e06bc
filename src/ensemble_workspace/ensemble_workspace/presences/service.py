from __future__ import annotations

import logging
from datetime import datetime
from typing import List, Mapping, Optional, Sequence

from ..assignments.repository import AssignmentRepository
from ..common.datetime_utils import now_local
from ..common.validators import optional_text
from ..core.enums import Capability, OverridePolicy, PresenceStatus, Role
from ..core.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from ..core.permissions import require_capability
from .model import UNDECLARED, Presence, PresenceResult
from .repository import PresenceRepository

logger = logging.getLogger(__name__)

_CLEARED_OVERRIDE = {"admin_override": False, "admin_override_by": None, "admin_override_at": None}


def parse_status(value: object) -> PresenceStatus:
    try:
        return PresenceStatus(str(value or "").strip().lower())
    except ValueError:
        raise ValidationError("Status must be one of: present, absent, late")


class PresenceService:
    """Use cases: declare, override and read attendance per (assignment, user).

    ``override_policy`` decides what a self-declaration does to a record an
    admin has overridden (see OverridePolicy).
    """

    def __init__(
        self,
        presences: PresenceRepository,
        assignments: AssignmentRepository,
        *,
        override_policy: OverridePolicy = OverridePolicy.CLEAR,
    ):
        self._presences = presences
        self._assignments = assignments
        self._override_policy = OverridePolicy(override_policy)

    def _require_assignment(self, assignment_id: str) -> None:
        if not self._assignments.get_by_id(assignment_id):
            raise NotFoundError("Assignment not found")

    def _upsert(self, *, assignment_id: str, user_id: str, fields: Mapping[str, object], admin: bool) -> Presence:
        existing = self._presences.get(assignment_id=assignment_id, user_id=user_id)

        if existing is None:
            try:
                return self._presences.create(assignment_id=assignment_id, user_id=user_id, **fields)
            except ConflictError:
                # A concurrent first declaration won the insert; update that row instead.
                existing = self._presences.get(assignment_id=assignment_id, user_id=user_id)
                if existing is None:
                    raise

        changes = dict(fields)
        if existing.admin_override and not admin:
            if self._override_policy == OverridePolicy.LOCK:
                logger.warning(
                    "Self-declaration by %s on assignment %s refused: admin override in place",
                    user_id,
                    assignment_id,
                )
                raise ConflictError("An administrator has already set your presence for this assignment")
            changes.update(_CLEARED_OVERRIDE)

        return self._presences.update(existing.presence_id, changes)

    def declare(
        self,
        *,
        assignment_id: str,
        user_id: str,
        status: object,
        justification: Optional[str] = None,
        acting_user_id: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> Presence:
        acting_user_id = acting_user_id or user_id
        if acting_user_id != user_id:
            raise AuthorizationError("You can only declare your own presence")

        status = parse_status(status)
        self._require_assignment(assignment_id)
        now = (now or now_local()).replace(microsecond=0)

        fields = {
            "status": status,
            "justification": optional_text(justification, "Justification"),
            "declared_by": acting_user_id,
            "declared_at": now,
        }
        presence = self._upsert(assignment_id=assignment_id, user_id=user_id, fields=fields, admin=False)
        logger.info("Presence of %s on assignment %s set to %s", user_id, assignment_id, status.value)
        return presence

    def override(
        self,
        *,
        current_role: Role,
        assignment_id: str,
        user_id: str,
        status: object,
        acting_admin_id: str,
        justification: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> Presence:
        require_capability(current_role, Capability.OVERRIDE_PRESENCE)

        status = parse_status(status)
        self._require_assignment(assignment_id)
        now = (now or now_local()).replace(microsecond=0)

        fields = {
            "status": status,
            "justification": optional_text(justification, "Justification"),
            "declared_by": acting_admin_id,
            "declared_at": now,
            "admin_override": True,
            "admin_override_by": acting_admin_id,
            "admin_override_at": now,
        }
        presence = self._upsert(assignment_id=assignment_id, user_id=user_id, fields=fields, admin=True)
        logger.info(
            "Presence of %s on assignment %s overridden to %s by %s",
            user_id,
            assignment_id,
            status.value,
            acting_admin_id,
        )
        return presence

    def status_for(self, *, assignment_id: str, user_id: str) -> PresenceResult:
        presence = self._presences.get(assignment_id=assignment_id, user_id=user_id)
        return presence if presence is not None else UNDECLARED

    def list_presences(self, *, assignment_ids: Sequence[str], user_id: str) -> List[Presence]:
        ids = list(dict.fromkeys(assignment_ids))
        if not ids:
            return []
        return list(self._presences.list_for_user(user_id, ids))

    def list_for_assignment(self, *, current_role: Role, assignment_id: str) -> List[Presence]:
        require_capability(current_role, Capability.MANAGE_ASSIGNMENTS)
        self._require_assignment(assignment_id)
        return list(self._presences.list_for_assignment(assignment_id))
