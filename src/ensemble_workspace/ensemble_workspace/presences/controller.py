from __future__ import annotations

from flask import Flask, jsonify

from ..common.http import json_body, to_jsonable
from ..container import Container
from ..core.exceptions import NotFoundError
from ..users.controller import current_user
from .model import status_label


def register(app: Flask, container: Container) -> None:
    teams = container.team_service
    assignments = container.assignment_service
    presences = container.presence_service

    @app.route("/api/assignments/<assignment_id>/presence", methods=["GET"], endpoint="my_presence")
    def my_presence(assignment_id: str):
        user = current_user(container)
        assignment = assignments.get(assignment_id)
        teams.role_for(team_id=assignment.team_id, user_id=user.user_id)
        result = presences.status_for(assignment_id=assignment_id, user_id=user.user_id)
        return jsonify({"status": status_label(result), "presence": to_jsonable(result)})

    @app.route("/api/assignments/<assignment_id>/presence", methods=["PUT"], endpoint="declare_presence")
    def declare_presence(assignment_id: str):
        user = current_user(container)
        assignment = assignments.get(assignment_id)
        teams.role_for(team_id=assignment.team_id, user_id=user.user_id)
        body = json_body()
        presence = presences.declare(
            assignment_id=assignment_id,
            user_id=user.user_id,
            status=body.get("status"),
            justification=body.get("justification"),
            acting_user_id=user.user_id,
        )
        return jsonify(to_jsonable(presence))

    @app.route("/api/assignments/<assignment_id>/presences", methods=["GET"], endpoint="assignment_presences")
    def assignment_presences(assignment_id: str):
        user = current_user(container)
        assignment = assignments.get(assignment_id)
        role = teams.role_for(team_id=assignment.team_id, user_id=user.user_id)
        return jsonify(to_jsonable(presences.list_for_assignment(current_role=role, assignment_id=assignment_id)))

    @app.route(
        "/api/assignments/<assignment_id>/presences/<user_id>/override",
        methods=["PUT"],
        endpoint="override_presence",
    )
    def override_presence(assignment_id: str, user_id: str):
        admin = current_user(container)
        assignment = assignments.get(assignment_id)
        role = teams.role_for(team_id=assignment.team_id, user_id=admin.user_id)
        if not teams.is_active_member(team_id=assignment.team_id, user_id=user_id):
            raise NotFoundError("This user is not a member of the team")

        body = json_body()
        presence = presences.override(
            current_role=role,
            assignment_id=assignment_id,
            user_id=user_id,
            status=body.get("status"),
            justification=body.get("justification"),
            acting_admin_id=admin.user_id,
        )
        return jsonify(to_jsonable(presence))
