from __future__ import annotations

from typing import Mapping, Optional, Protocol

from .model import User


class UserRepository(Protocol):
    """Repository interface for User.

    Note (DIP): the service layer depends on this interface, not on a concrete DB.
    ``identity_id`` is unique; ``create`` raises ConflictError on a duplicate.
    """

    def get_by_id(self, user_id: str) -> Optional[User]:
        raise NotImplementedError

    def get_by_identity(self, identity_id: str) -> Optional[User]:
        raise NotImplementedError

    def create(
        self,
        *,
        identity_id: str,
        email: str,
        display_name: str,
        first_name: Optional[str] = None,
        last_name: Optional[str] = None,
        avatar_url: Optional[str] = None,
    ) -> User:
        raise NotImplementedError

    def update(self, user_id: str, fields: Mapping[str, object]) -> User:
        raise NotImplementedError
