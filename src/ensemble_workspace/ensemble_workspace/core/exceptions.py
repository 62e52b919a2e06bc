from __future__ import annotations

from typing import Mapping, Optional


class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is missing or malformed."""


class NotFoundError(DomainError):
    """Raised when a referenced team, assignment or invitation code does not exist."""


class ConflictError(DomainError):
    """Raised when a uniqueness invariant would be violated."""


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""


class PersistenceError(DomainError):
    """Raised when the storage layer fails.

    Carries the operation name and the entity ids involved so the failure can
    be logged and shown without digging through the driver exception.
    ``partial`` is set when earlier writes of the same operation could not be
    compensated.
    """

    def __init__(
        self,
        message: str,
        *,
        operation: str = "",
        entity_ids: Optional[Mapping[str, object]] = None,
        partial: bool = False,
    ):
        super().__init__(message)
        self.operation = operation
        self.entity_ids = dict(entity_ids or {})
        self.partial = partial


class AuthenticationError(DomainError):
    """Raised when a request carries no authenticated principal."""
