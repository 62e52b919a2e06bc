from __future__ import annotations

import uuid


def new_id(prefix: str) -> str:
    """Opaque storage id, e.g. ``team_3f2a9c...``."""
    return f"{prefix}_{uuid.uuid4().hex}"
