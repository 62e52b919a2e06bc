"""Recurrence patterns for assignment templates.

Patterns are stored as JSON text, e.g.::

    {"freq": "weekly", "interval": 1, "by_weekday": ["TU", "TH"], "until": "2025-06-30"}

Expansion is read-time only and always bounded by a window size.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime, time
from itertools import islice
from typing import List, Mapping, Optional, Tuple, Union

from dateutil import rrule

from ..common.datetime_utils import format_date, parse_iso_date
from ..core.enums import RecurrenceFrequency
from ..core.exceptions import ValidationError
from .model import Assignment, Occurrence

_FREQUENCIES = {
    RecurrenceFrequency.DAILY: rrule.DAILY,
    RecurrenceFrequency.WEEKLY: rrule.WEEKLY,
    RecurrenceFrequency.MONTHLY: rrule.MONTHLY,
}

_WEEKDAYS = {
    "MO": rrule.MO,
    "TU": rrule.TU,
    "WE": rrule.WE,
    "TH": rrule.TH,
    "FR": rrule.FR,
    "SA": rrule.SA,
    "SU": rrule.SU,
}


@dataclass(frozen=True)
class RecurrenceRule:
    freq: RecurrenceFrequency
    interval: int = 1
    by_weekday: Tuple[str, ...] = field(default_factory=tuple)
    count: Optional[int] = None
    until: Optional[str] = None

    def to_json(self) -> str:
        data: dict = {"freq": self.freq.value, "interval": self.interval}
        if self.by_weekday:
            data["by_weekday"] = list(self.by_weekday)
        if self.count is not None:
            data["count"] = self.count
        if self.until is not None:
            data["until"] = self.until
        return json.dumps(data, sort_keys=True)


def parse_pattern(raw: Union[str, Mapping, None]) -> RecurrenceRule:
    """Validate a pattern given as JSON text or an already-decoded mapping."""

    if raw is None or (isinstance(raw, str) and not raw.strip()):
        raise ValidationError("A recurrence pattern is required for recurring assignments")

    if isinstance(raw, str):
        try:
            data = json.loads(raw)
        except ValueError:
            raise ValidationError("Recurrence pattern is not valid JSON")
    elif isinstance(raw, Mapping):
        data = dict(raw)
    else:
        raise ValidationError("Recurrence pattern must be an object")

    if not isinstance(data, dict):
        raise ValidationError("Recurrence pattern must be an object")

    try:
        freq = RecurrenceFrequency(str(data.get("freq", "")).lower())
    except ValueError:
        raise ValidationError("Recurrence frequency must be daily, weekly or monthly")

    interval = data.get("interval", 1)
    if not isinstance(interval, int) or isinstance(interval, bool) or interval < 1:
        raise ValidationError("Recurrence interval must be a positive integer")

    weekdays = data.get("by_weekday") or ()
    if not isinstance(weekdays, (list, tuple)):
        raise ValidationError("by_weekday must be a list of weekday codes")
    by_weekday = tuple(str(d).upper() for d in weekdays)
    bad = [d for d in by_weekday if d not in _WEEKDAYS]
    if bad:
        raise ValidationError(f"Unknown weekday(s) in recurrence pattern: {', '.join(bad)}")

    count = data.get("count")
    if count is not None and (not isinstance(count, int) or isinstance(count, bool) or count < 1):
        raise ValidationError("Recurrence count must be a positive integer")

    until = data.get("until")
    if until is not None:
        until = format_date(parse_iso_date(until))
    if count is not None and until is not None:
        raise ValidationError("Recurrence pattern cannot set both count and until")

    return RecurrenceRule(freq=freq, interval=interval, by_weekday=by_weekday, count=count, until=until)


def _build_set(assignment: Assignment, rule: RecurrenceRule) -> rrule.rruleset:
    kwargs: dict = {"dtstart": assignment.starts_at, "interval": rule.interval}
    if rule.by_weekday:
        kwargs["byweekday"] = [_WEEKDAYS[d] for d in rule.by_weekday]
    if rule.count is not None:
        kwargs["count"] = rule.count
    if rule.until is not None:
        kwargs["until"] = datetime.combine(parse_iso_date(rule.until), time.max)

    rset = rrule.rruleset()
    rset.rrule(rrule.rrule(_FREQUENCIES[rule.freq], **kwargs))
    # The template date always counts, even when it falls outside by_weekday.
    rset.rdate(assignment.starts_at)
    return rset


def expand(assignment: Assignment, *, start: datetime, limit: int) -> List[Occurrence]:
    """Concrete occurrences at or after ``start``, at most ``limit`` of them."""

    if not assignment.is_recurring:
        if assignment.starts_at >= start and limit > 0:
            return [_occurrence(assignment, assignment.starts_at)]
        return []

    rule = parse_pattern(assignment.recurrence_pattern)
    rset = _build_set(assignment, rule)
    return [_occurrence(assignment, dt) for dt in islice(rset.xafter(start, inc=True), limit)]


def _occurrence(assignment: Assignment, dt: datetime) -> Occurrence:
    return Occurrence(
        assignment_id=assignment.assignment_id,
        title=assignment.title,
        occurrence_date=dt.date(),
        start_time=assignment.start_time,
        end_time=assignment.end_time,
        location=assignment.location,
        is_template=dt == assignment.starts_at,
    )
