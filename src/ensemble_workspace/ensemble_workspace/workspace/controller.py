from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.http import int_arg, principal_from_request, to_jsonable
from ..container import Container
from ..presences.model import status_label


def register(app: Flask, container: Container) -> None:
    workspace = container.workspace_service

    @app.route("/api/me/workspace", methods=["GET"], endpoint="my_workspace")
    def my_workspace():
        state = workspace.load(principal_from_request())
        team_id = request.args.get("team_id")
        if team_id:
            state = workspace.select_team(state, team_id)

        body = {
            "user": to_jsonable(state.user),
            "needs_onboarding": state.needs_onboarding,
            "teams": [{"team_id": t.team_id, "name": t.name, "user_role": t.user_role.value} for t in state.teams],
            "current_team_id": state.current_team.team_id if state.current_team else None,
            "agenda": None,
        }
        if state.current_team is not None:
            agenda = workspace.agenda(
                team_id=state.current_team.team_id,
                user_id=state.user.user_id,
                window_size=int_arg("window", container.upcoming_window),
            )
            body["agenda"] = {
                "role": agenda.role.value,
                "can_manage": agenda.can_manage,
                "member_count": agenda.member_count,
                "upcoming_count": agenda.upcoming_count,
                "items": [
                    {
                        "assignment": to_jsonable(item.assignment),
                        "presence_status": status_label(item.presence),
                        "presence": to_jsonable(item.presence),
                    }
                    for item in agenda.items
                ],
            }
        return jsonify(body)
