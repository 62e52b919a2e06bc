from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Union

from ..core.enums import PresenceStatus


@dataclass(frozen=True)
class Presence:
    """One member's attendance declaration for one assignment.

    (assignment_id, user_id) is the natural key; ``presence_id`` is only the
    storage handle. The three admin override fields are always set or
    cleared together.
    """

    presence_id: str
    assignment_id: str
    user_id: str
    status: PresenceStatus
    declared_by: str
    declared_at: datetime
    justification: Optional[str] = None
    admin_override: bool = False
    admin_override_by: Optional[str] = None
    admin_override_at: Optional[datetime] = None


class Undeclared:
    """Marker for "no declaration yet"; never equal to any PresenceStatus."""

    _instance: Optional["Undeclared"] = None

    def __new__(cls) -> "Undeclared":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "UNDECLARED"


UNDECLARED = Undeclared()

PresenceResult = Union[Presence, Undeclared]

UNDECLARED_LABEL = "undeclared"


def status_label(result: PresenceResult) -> str:
    if isinstance(result, Presence):
        return result.status.value
    return UNDECLARED_LABEL
