from __future__ import annotations

import logging
from typing import Mapping, Optional

from ..common.validators import optional_text, require_non_empty
from ..core.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from .model import Principal, User
from .repository import UserRepository

logger = logging.getLogger(__name__)

_PROFILE_FIELDS = ("display_name", "first_name", "last_name", "phone", "avatar_url")


class IdentityResolver:
    """Use case: map an authenticated principal to a stable User (create-if-absent)."""

    def __init__(self, users: UserRepository):
        self._users = users

    def ensure_user(self, principal: Principal) -> User:
        if not isinstance(principal, Principal):
            raise ValidationError("A validated principal is required")
        identity_id = require_non_empty(principal.identity_id, "Identity id")
        email = require_non_empty(principal.email, "Email")

        existing = self._users.get_by_identity(identity_id)
        if existing:
            return existing

        try:
            user = self._users.create(
                identity_id=identity_id,
                email=email,
                display_name=optional_text(principal.display_name) or email,
                first_name=optional_text(principal.first_name),
                last_name=optional_text(principal.last_name),
                avatar_url=optional_text(principal.avatar_url),
            )
        except ConflictError:
            # Another request created the same identity first.
            winner = self._users.get_by_identity(identity_id)
            if winner is None:
                raise
            return winner

        logger.info("Created user %s for identity %s", user.user_id, identity_id)
        return user


class UserService:
    """Use case: read and edit user profiles."""

    def __init__(self, users: UserRepository):
        self._users = users

    def get(self, user_id: str) -> User:
        user = self._users.get_by_id(user_id)
        if not user:
            raise NotFoundError("User not found")
        return user

    def update_profile(self, *, current_user_id: str, user_id: str, fields: Mapping[str, object]) -> User:
        if current_user_id != user_id:
            raise AuthorizationError("Only the user can edit their own profile")

        unknown = set(fields) - set(_PROFILE_FIELDS)
        if unknown:
            raise ValidationError(f"Unknown profile fields: {', '.join(sorted(unknown))}")

        changes: dict[str, Optional[str]] = {}
        for name, value in fields.items():
            if name == "display_name":
                changes[name] = require_non_empty(value, "Display name")
            else:
                changes[name] = optional_text(value, name)

        user = self.get(user_id)
        if not changes:
            return user
        return self._users.update(user_id, changes)
