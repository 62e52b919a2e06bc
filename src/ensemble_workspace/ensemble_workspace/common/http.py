"""Helpers shared by the JSON controllers."""

from __future__ import annotations

import dataclasses
import logging
from datetime import date, datetime, time
from enum import Enum
from typing import Any

from flask import Flask, jsonify, request

from ..core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    DomainError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)
from ..presences.model import Undeclared
from ..users.model import Principal

logger = logging.getLogger(__name__)

IDENTITY_ID_HEADER = "X-Identity-Id"
IDENTITY_EMAIL_HEADER = "X-Identity-Email"
IDENTITY_NAME_HEADER = "X-Identity-Name"

_STATUS_BY_ERROR = (
    (ValidationError, 400, "validation_error"),
    (AuthenticationError, 401, "authentication_error"),
    (AuthorizationError, 403, "authorization_error"),
    (NotFoundError, 404, "not_found"),
    (ConflictError, 409, "conflict"),
    (PersistenceError, 503, "persistence_error"),
)


def principal_from_request() -> Principal:
    """Principal asserted by the upstream auth gateway through trusted headers."""

    identity_id = (request.headers.get(IDENTITY_ID_HEADER) or "").strip()
    email = (request.headers.get(IDENTITY_EMAIL_HEADER) or "").strip()
    if not identity_id or not email:
        raise AuthenticationError("Please sign in to continue")
    return Principal.from_claims(
        {
            "id": identity_id,
            "email": email,
            "display_name": request.headers.get(IDENTITY_NAME_HEADER),
        }
    )


def json_body() -> dict:
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def to_jsonable(value: Any) -> Any:
    if isinstance(value, Undeclared):
        return None
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, date):
        return value.strftime("%Y-%m-%d")
    if isinstance(value, time):
        return value.strftime("%H:%M")
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {f.name: to_jsonable(getattr(value, f.name)) for f in dataclasses.fields(value)}
    if isinstance(value, dict):
        return {k: to_jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_jsonable(v) for v in value]
    return value


def int_arg(name: str, default: int) -> int:
    raw = request.args.get(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValidationError(f"{name} must be an integer")


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(DomainError)
    def handle_domain_error(e: DomainError):
        for error_type, status, kind in _STATUS_BY_ERROR:
            if isinstance(e, error_type):
                break
        else:
            status, kind = 400, "domain_error"

        if isinstance(e, PersistenceError):
            logger.error(
                "Persistence failure on %s %s %s (partial=%s)",
                request.method,
                request.path,
                e.entity_ids,
                e.partial,
            )
            body = {"error": kind, "message": str(e), "operation": e.operation, "partial": e.partial}
        else:
            body = {"error": kind, "message": str(e)}
        return jsonify(body), status
