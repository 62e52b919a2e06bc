from __future__ import annotations

from datetime import datetime
from typing import Mapping, Optional, Protocol, Sequence

from ..core.enums import PresenceStatus
from .model import Presence


class PresenceRepository(Protocol):
    """At most one row per (assignment, user); ``create`` raises ConflictError on a duplicate."""

    def get(self, *, assignment_id: str, user_id: str) -> Optional[Presence]:
        raise NotImplementedError

    def create(
        self,
        *,
        assignment_id: str,
        user_id: str,
        status: PresenceStatus,
        justification: Optional[str],
        declared_by: str,
        declared_at: datetime,
        admin_override: bool = False,
        admin_override_by: Optional[str] = None,
        admin_override_at: Optional[datetime] = None,
    ) -> Presence:
        raise NotImplementedError

    def update(self, presence_id: str, fields: Mapping[str, object]) -> Presence:
        raise NotImplementedError

    def list_for_user(self, user_id: str, assignment_ids: Sequence[str]) -> Sequence[Presence]:
        """One batched query (``assignment_id IN (...)``)."""

        raise NotImplementedError

    def list_for_assignment(self, assignment_id: str) -> Sequence[Presence]:
        raise NotImplementedError
