from __future__ import annotations

from typing import Optional

from flask import Flask, request

from ..common.datetime_utils import today_key
from ..common.validators import parse_entity_id
from ..common.web import current_user, ok
from ..container import Container
from ..core.enums import Role
from ..core.exceptions import AuthorizationError, ValidationError
from ..users.model import User


def _team_arg() -> Optional[int]:
    raw_team = request.args.get("teamId")
    return parse_entity_id(raw_team, "Invalid team ID") if raw_team else None


def _own_team(manager: User) -> int:
    if manager.team_id is None:
        raise AuthorizationError("Manager must be assigned to a team")
    return manager.team_id


def register(app: Flask, container: Container) -> None:
    @app.route("/api/reports/monthly", methods=["GET"], endpoint="monthly_report")
    def monthly_report():
        user = current_user(container.users_repo)
        month = request.args.get("month") or today_key()[:7]

        if user.role == Role.ADMIN:
            team_id = _team_arg()
        elif user.role == Role.MANAGER:
            team_id = _own_team(user)
        else:
            raise AuthorizationError("Insufficient permissions")

        report = container.report_service.build_monthly_summary(month=month, team_id=team_id)
        return ok("OK", month=report.month, summary=report.summary)

    @app.route("/api/timesheet/team", methods=["GET"], endpoint="team_timesheet")
    def team_timesheet():
        user = current_user(container.users_repo)
        month = request.args.get("month") or today_key()[:7]

        if user.role == Role.ADMIN:
            team_id = _team_arg()
            if team_id is None:
                raise ValidationError("Team ID is required")
        elif user.role == Role.MANAGER:
            team_id = _own_team(user)
        else:
            raise AuthorizationError("Insufficient permissions")

        sheet = container.timesheet_service.build_timesheet(month=month, team_id=team_id)
        return ok("OK", **sheet)

    @app.route("/api/timesheet/company", methods=["GET"], endpoint="company_timesheet")
    def company_timesheet():
        user = current_user(container.users_repo)
        if user.role != Role.ADMIN:
            raise AuthorizationError("Admin access required")

        month = request.args.get("month") or today_key()[:7]
        sheet = container.timesheet_service.build_timesheet(month=month)
        return ok("OK", **sheet)

    @app.route("/api/attendance/today-activity", methods=["GET"], endpoint="today_activity")
    def today_activity():
        user = current_user(container.users_repo)

        if user.role == Role.ADMIN:
            scope = request.args.get("scope") or "company"
            team_id = _team_arg()
        elif user.role == Role.MANAGER:
            # Managers only ever see their own team.
            scope, team_id = "team", _own_team(user)
        else:
            raise AuthorizationError("Insufficient permissions")

        activity = container.timesheet_service.get_today_activity(scope=scope, team_id=team_id)
        return ok("OK", **activity)
