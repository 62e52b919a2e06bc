from __future__ import annotations

import pytest

from ensemble_workspace.core.exceptions import AuthorizationError, ConflictError, ValidationError
from ensemble_workspace.users.model import Principal, User
from ensemble_workspace.users.service import IdentityResolver, UserService


def test_ensure_user_creates_once_and_is_stable(container):
    principal = Principal(identity_id="auth|42", email="claire@example.org", display_name="Claire")

    first = container.identity_resolver.ensure_user(principal)
    second = container.identity_resolver.ensure_user(principal)

    assert first.user_id == second.user_id
    assert len(container.users_repo.rows) == 1


def test_display_name_defaults_to_email(container):
    user = container.identity_resolver.ensure_user(Principal(identity_id="auth|7", email="x@example.org"))
    assert user.display_name == "x@example.org"


def test_ensure_user_rejects_missing_email(container):
    with pytest.raises(ValidationError):
        container.identity_resolver.ensure_user(Principal(identity_id="auth|7", email="  "))


def test_ensure_user_recovers_from_concurrent_create():
    winner = User(user_id="user_1", identity_id="auth|1", email="a@example.org", display_name="A")

    class RacingUsers:
        def __init__(self):
            self.lookups = 0

        def get_by_identity(self, identity_id):
            self.lookups += 1
            return None if self.lookups == 1 else winner

        def create(self, **kwargs):
            raise ConflictError("Duplicate record during users.create")

    resolver = IdentityResolver(RacingUsers())
    user = resolver.ensure_user(Principal(identity_id="auth|1", email="a@example.org"))

    assert user is winner


def test_principal_from_claims_accepts_camel_case():
    principal = Principal.from_claims({"id": "auth|9", "email": "e@example.org", "displayName": "Eve"})
    assert principal.display_name == "Eve"

    with pytest.raises(ValidationError):
        Principal.from_claims({"email": "e@example.org"})


def test_update_profile_only_for_self(container, alice, bob):
    svc: UserService = container.user_service

    updated = svc.update_profile(current_user_id=alice.user_id, user_id=alice.user_id, fields={"phone": " 0612 ", "display_name": "Al"})
    assert updated.phone == "0612"
    assert updated.display_name == "Al"

    with pytest.raises(AuthorizationError):
        svc.update_profile(current_user_id=bob.user_id, user_id=alice.user_id, fields={"phone": "1"})

    with pytest.raises(ValidationError):
        svc.update_profile(current_user_id=alice.user_id, user_id=alice.user_id, fields={"email": "new@example.org"})

    with pytest.raises(ValidationError):
        svc.update_profile(current_user_id=alice.user_id, user_id=alice.user_id, fields={"display_name": ""})

    with pytest.raises(ValidationError):
        svc.update_profile(current_user_id=alice.user_id, user_id=alice.user_id, fields={"phone": 612})
