from __future__ import annotations

from flask import Flask, jsonify

from ..common.http import json_body, to_jsonable
from ..container import Container
from ..users.controller import current_user


def register(app: Flask, container: Container) -> None:
    teams = container.team_service

    @app.route("/api/me/teams", methods=["GET"], endpoint="my_teams")
    def my_teams():
        user = current_user(container)
        user_teams = teams.list_teams_for_user(user.user_id)
        return jsonify(
            {
                "needs_onboarding": not user_teams,
                "teams": [
                    {
                        "team_id": ut.team.team_id,
                        "name": ut.team.name,
                        "description": ut.team.description,
                        "user_role": ut.user_role.value,
                        "member_count": ut.member_count,
                    }
                    for ut in user_teams
                ],
            }
        )

    @app.route("/api/teams", methods=["POST"], endpoint="create_team")
    def create_team():
        user = current_user(container)
        body = json_body()
        team = teams.create_team(user=user, name=body.get("name", ""), description=body.get("description"))
        return jsonify(to_jsonable(team)), 201

    @app.route("/api/teams/join", methods=["POST"], endpoint="join_team")
    def join_team():
        user = current_user(container)
        team = teams.join_team(user=user, invitation_code=json_body().get("invitation_code", ""))
        return jsonify({"team_id": team.team_id, "name": team.name}), 201

    @app.route("/api/teams/<team_id>/members", methods=["GET"], endpoint="team_members")
    def team_members(team_id: str):
        user = current_user(container)
        role = teams.role_for(team_id=team_id, user_id=user.user_id)
        return jsonify(to_jsonable(teams.list_members(current_role=role, team_id=team_id)))

    @app.route("/api/teams/<team_id>/invitation-code", methods=["GET"], endpoint="team_invitation_code")
    def team_invitation_code(team_id: str):
        user = current_user(container)
        role = teams.role_for(team_id=team_id, user_id=user.user_id)
        return jsonify({"invitation_code": teams.invitation_code_for(current_role=role, team_id=team_id)})

    @app.route("/api/teams/<team_id>/members/<user_id>/remove", methods=["POST"], endpoint="remove_member")
    def remove_member(team_id: str, user_id: str):
        user = current_user(container)
        role = teams.role_for(team_id=team_id, user_id=user.user_id)
        membership = teams.remove_membership(
            current_role=role,
            acting_user_id=user.user_id,
            team_id=team_id,
            user_id=user_id,
        )
        return jsonify(to_jsonable(membership))
