from __future__ import annotations

from flask import Flask, jsonify

from ..common.http import json_body, principal_from_request, to_jsonable
from ..container import Container
from .model import User


def current_user(container: Container) -> User:
    return container.identity_resolver.ensure_user(principal_from_request())


def register(app: Flask, container: Container) -> None:
    @app.route("/api/me", methods=["GET"], endpoint="me")
    def me():
        return jsonify(to_jsonable(current_user(container)))

    @app.route("/api/me", methods=["PATCH"], endpoint="me_update")
    def me_update():
        user = current_user(container)
        updated = container.user_service.update_profile(
            current_user_id=user.user_id,
            user_id=user.user_id,
            fields=json_body(),
        )
        return jsonify(to_jsonable(updated))
