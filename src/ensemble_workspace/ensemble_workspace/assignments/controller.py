from __future__ import annotations

from flask import Flask, jsonify

from ..common.http import int_arg, json_body, to_jsonable
from ..container import Container
from ..users.controller import current_user


def register(app: Flask, container: Container) -> None:
    teams = container.team_service
    assignments = container.assignment_service

    @app.route("/api/teams/<team_id>/assignments", methods=["POST"], endpoint="create_assignment")
    def create_assignment(team_id: str):
        user = current_user(container)
        # Role comes from storage on every write, never from the client.
        role = teams.role_for(team_id=team_id, user_id=user.user_id)
        assignment = assignments.create_assignment(
            current_role=role,
            team_id=team_id,
            created_by=user.user_id,
            fields=json_body(),
        )
        return jsonify(to_jsonable(assignment)), 201

    @app.route("/api/teams/<team_id>/assignments/upcoming", methods=["GET"], endpoint="upcoming_assignments")
    def upcoming_assignments(team_id: str):
        user = current_user(container)
        teams.role_for(team_id=team_id, user_id=user.user_id)
        window = int_arg("window", container.upcoming_window)
        return jsonify(to_jsonable(assignments.list_upcoming(team_id=team_id, window_size=window)))

    @app.route("/api/teams/<team_id>/occurrences", methods=["GET"], endpoint="upcoming_occurrences")
    def upcoming_occurrences(team_id: str):
        user = current_user(container)
        teams.role_for(team_id=team_id, user_id=user.user_id)
        window = int_arg("window", container.upcoming_window)
        return jsonify(to_jsonable(assignments.list_upcoming_occurrences(team_id=team_id, window_size=window)))

    @app.route("/api/assignments/<assignment_id>", methods=["GET"], endpoint="get_assignment")
    def get_assignment(assignment_id: str):
        user = current_user(container)
        assignment = assignments.get(assignment_id)
        teams.role_for(team_id=assignment.team_id, user_id=user.user_id)
        return jsonify(to_jsonable(assignment))

    @app.route("/api/assignments/<assignment_id>", methods=["PATCH"], endpoint="update_assignment")
    def update_assignment(assignment_id: str):
        user = current_user(container)
        assignment = assignments.get(assignment_id)
        role = teams.role_for(team_id=assignment.team_id, user_id=user.user_id)
        updated = assignments.update_assignment(current_role=role, assignment_id=assignment_id, fields=json_body())
        return jsonify(to_jsonable(updated))
