from __future__ import annotations

import logging
from datetime import datetime
from typing import List, Mapping, Optional

from ..common.datetime_utils import now_local, parse_hhmm, parse_iso_date
from ..common.validators import optional_text, require_non_empty
from ..core.constants import DEFAULT_UPCOMING_WINDOW, MAX_OCCURRENCE_WINDOW
from ..core.enums import Capability, Role
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from ..core.permissions import can_manage_team, require_capability
from . import recurrence
from .model import Assignment, Occurrence
from .repository import AssignmentRepository

logger = logging.getLogger(__name__)

_EDITABLE_FIELDS = (
    "title",
    "description",
    "assignment_date",
    "start_time",
    "end_time",
    "location",
    "is_recurring",
    "recurrence_pattern",
)


def _as_bool(value: object) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "on"}
    return bool(value)


class AssignmentService:
    def __init__(self, assignments: AssignmentRepository, *, default_window: int = DEFAULT_UPCOMING_WINDOW):
        self._assignments = assignments
        self._default_window = int(default_window)

    def get(self, assignment_id: str) -> Assignment:
        assignment = self._assignments.get_by_id(assignment_id)
        if not assignment:
            raise NotFoundError("Assignment not found")
        return assignment

    @staticmethod
    def _validate(fields: Mapping[str, object]) -> dict:
        unknown = set(fields) - set(_EDITABLE_FIELDS)
        if unknown:
            raise ValidationError(f"Unknown assignment fields: {', '.join(sorted(unknown))}")

        title = require_non_empty(fields.get("title"), "Title")
        assignment_date = parse_iso_date(fields.get("assignment_date"))
        start_time = parse_hhmm(fields.get("start_time"), "Start time")
        end_time = parse_hhmm(fields.get("end_time"), "End time")
        if end_time <= start_time:
            raise ValidationError("End time must be after start time")

        is_recurring = _as_bool(fields.get("is_recurring", False))
        pattern = None
        if is_recurring:
            pattern = recurrence.parse_pattern(fields.get("recurrence_pattern")).to_json()

        return {
            "title": title,
            "description": optional_text(fields.get("description"), "Description"),
            "assignment_date": assignment_date,
            "start_time": start_time,
            "end_time": end_time,
            "location": optional_text(fields.get("location"), "Location"),
            "is_recurring": is_recurring,
            "recurrence_pattern": pattern,
        }

    def create_assignment(
        self,
        *,
        current_role: Role,
        team_id: str,
        created_by: str,
        fields: Mapping[str, object],
    ) -> Assignment:
        if not can_manage_team(current_role):
            raise AuthorizationError("Only team administrators can create assignments")

        values = self._validate(fields)
        assignment = self._assignments.create(team_id=team_id, created_by=created_by, **values)
        logger.info("Assignment %s created in team %s by %s", assignment.assignment_id, team_id, created_by)
        return assignment

    def update_assignment(
        self,
        *,
        current_role: Role,
        assignment_id: str,
        fields: Mapping[str, object],
    ) -> Assignment:
        require_capability(current_role, Capability.MANAGE_ASSIGNMENTS)
        current = self.get(assignment_id)

        merged: dict = {
            "title": current.title,
            "description": current.description,
            "assignment_date": current.assignment_date,
            "start_time": current.start_time,
            "end_time": current.end_time,
            "location": current.location,
            "is_recurring": current.is_recurring,
            "recurrence_pattern": current.recurrence_pattern,
        }
        merged.update(fields)
        values = self._validate(merged)

        changes = {
            name: value
            for name, value in values.items()
            if getattr(current, name) != value
        }
        if not changes:
            return current

        updated = self._assignments.update(assignment_id, changes)
        logger.info("Assignment %s updated (%s)", assignment_id, ", ".join(sorted(changes)))
        return updated

    def _window(self, window_size: Optional[int]) -> int:
        size = self._default_window if window_size is None else int(window_size)
        if size < 1 or size > MAX_OCCURRENCE_WINDOW:
            raise ValidationError(f"Window size must be between 1 and {MAX_OCCURRENCE_WINDOW}")
        return size

    def list_upcoming(
        self,
        *,
        team_id: str,
        window_size: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> List[Assignment]:
        """Fetch the first ``window_size`` assignments by (date, start), then keep the ones not started yet.

        The bound applies before the filter, so fewer than ``window_size``
        results can come back even when later assignments exist.
        """

        now = now or now_local()
        fetched = self._assignments.list_for_team(team_id, limit=self._window(window_size))
        return [a for a in fetched if a.is_upcoming(now)]

    def expand_occurrences(
        self,
        assignment: Assignment,
        *,
        start: Optional[datetime] = None,
        window_size: Optional[int] = None,
    ) -> List[Occurrence]:
        return recurrence.expand(assignment, start=start or now_local(), limit=self._window(window_size))

    def list_upcoming_occurrences(
        self,
        *,
        team_id: str,
        window_size: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> List[Occurrence]:
        """Next ``window_size`` occurrences from ``now``: one-off assignments plus expanded templates.

        Unlike ``list_upcoming`` the one-off rows are fetched from ``now`` onwards,
        so past assignments never crowd out future ones.
        """

        now = now or now_local()
        limit = self._window(window_size)

        occurrences: List[Occurrence] = []
        for assignment in self._assignments.list_single_from(team_id, start=now, limit=limit):
            occurrences.extend(recurrence.expand(assignment, start=now, limit=1))
        for template in self._assignments.list_recurring_for_team(team_id):
            occurrences.extend(recurrence.expand(template, start=now, limit=limit))

        occurrences.sort(key=lambda o: (o.starts_at, o.assignment_id))
        return occurrences[:limit]
