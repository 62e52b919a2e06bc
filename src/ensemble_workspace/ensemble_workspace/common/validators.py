from __future__ import annotations

from typing import Optional

from ..core.exceptions import ValidationError


def _as_text(value: object, field_name: str) -> Optional[str]:
    if value is None or isinstance(value, str):
        return value
    raise ValidationError(f"{field_name} must be text")


def require_non_empty(value: object, field_name: str) -> str:
    value = _as_text(value, field_name)
    if not value or not value.strip():
        raise ValidationError(f"{field_name} is required")
    return value.strip()


def optional_text(value: object, field_name: str = "Value") -> Optional[str]:
    """Trim free text; blank becomes None."""
    value = _as_text(value, field_name)
    if value is None:
        return None
    value = value.strip()
    return value or None
