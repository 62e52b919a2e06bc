"""Invitation code generation and normalization."""

from __future__ import annotations

import re
import secrets

from ..core.constants import INVITATION_CODE_ALPHABET, INVITATION_CODE_LENGTH
from ..core.exceptions import ValidationError

_CODE_RE = re.compile(rf"^[{INVITATION_CODE_ALPHABET}]{{{INVITATION_CODE_LENGTH}}}$")


def generate_invitation_code() -> str:
    """Uniform draw of INVITATION_CODE_LENGTH characters from the fixed alphabet."""
    return "".join(secrets.choice(INVITATION_CODE_ALPHABET) for _ in range(INVITATION_CODE_LENGTH))


def normalize_invitation_code(raw: object) -> str:
    if raw is not None and not isinstance(raw, str):
        raise ValidationError("Invitation code must be text")
    code = (raw or "").strip().upper()
    if not code:
        raise ValidationError("Invitation code is required")
    return code


def is_well_formed(code: str) -> bool:
    return bool(_CODE_RE.match(code or ""))
