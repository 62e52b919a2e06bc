from __future__ import annotations

from datetime import date, datetime, time
from typing import Mapping, Optional, Protocol, Sequence

from .model import Assignment


class AssignmentRepository(Protocol):
    def create(
        self,
        *,
        team_id: str,
        title: str,
        assignment_date: date,
        start_time: time,
        end_time: time,
        created_by: str,
        description: Optional[str] = None,
        location: Optional[str] = None,
        is_recurring: bool = False,
        recurrence_pattern: Optional[str] = None,
    ) -> Assignment:
        raise NotImplementedError

    def get_by_id(self, assignment_id: str) -> Optional[Assignment]:
        raise NotImplementedError

    def list_for_team(self, team_id: str, *, limit: int) -> Sequence[Assignment]:
        """Ordered by (assignment_date, start_time) ascending, at most ``limit`` rows."""

        raise NotImplementedError

    def list_single_from(self, team_id: str, *, start: datetime, limit: int) -> Sequence[Assignment]:
        """Non-recurring rows starting at or after ``start``, ordered like ``list_for_team``."""

        raise NotImplementedError

    def list_recurring_for_team(self, team_id: str) -> Sequence[Assignment]:
        raise NotImplementedError

    def update(self, assignment_id: str, fields: Mapping[str, object]) -> Assignment:
        raise NotImplementedError
