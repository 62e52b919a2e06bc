from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time
from typing import Optional

from ..common.datetime_utils import combine_local


@dataclass(frozen=True)
class Assignment:
    """A time-boxed team activity (rehearsal, concert, ...).

    When ``is_recurring`` is set the row is a template: concrete dates come
    from expanding ``recurrence_pattern`` at read time.
    """

    assignment_id: str
    team_id: str
    title: str
    assignment_date: date
    start_time: time
    end_time: time
    created_by: str
    description: Optional[str] = None
    location: Optional[str] = None
    is_recurring: bool = False
    recurrence_pattern: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def starts_at(self) -> datetime:
        return combine_local(self.assignment_date, self.start_time)

    def is_upcoming(self, now: datetime) -> bool:
        return self.starts_at >= now


@dataclass(frozen=True)
class Occurrence:
    assignment_id: str
    title: str
    occurrence_date: date
    start_time: time
    end_time: time
    location: Optional[str] = None
    is_template: bool = False

    @property
    def starts_at(self) -> datetime:
        return combine_local(self.occurrence_date, self.start_time)
