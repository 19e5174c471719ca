from __future__ import annotations

from flask import Flask, request

from ..common.datetime_utils import today_key
from ..common.web import current_user, json_body, ok
from ..container import Container


def register(app: Flask, container: Container) -> None:
    @app.route("/api/attendance/check-in", methods=["POST"], endpoint="check_in")
    def check_in():
        user = current_user(container.users_repo)
        record = container.attendance_service.check_in(user_id=user.user_id)
        return ok("Checked in successfully", 201, attendance=record.to_dict())

    @app.route("/api/attendance/check-out", methods=["POST"], endpoint="check_out")
    def check_out():
        user = current_user(container.users_repo)
        record = container.attendance_service.check_out(user_id=user.user_id)
        return ok("Checked out successfully", attendance=record.to_dict())

    @app.route("/api/attendance/today", methods=["GET"], endpoint="attendance_today")
    def attendance_today():
        user = current_user(container.users_repo)
        record = container.attendance_service.get_today_record(user_id=user.user_id)
        return ok("OK", attendance=record.to_dict() if record else None)

    @app.route("/api/attendance/me", methods=["GET"], endpoint="my_attendance")
    def my_attendance():
        user = current_user(container.users_repo)
        month = request.args.get("month") or today_key()[:7]
        items = container.attendance_service.get_monthly_history(user_id=user.user_id, month=month)
        return ok("OK", month=month, items=items)

    @app.route(
        "/api/admin/attendance/<attendance_id>/force-checkout",
        methods=["POST"],
        endpoint="force_checkout",
    )
    def force_checkout(attendance_id: str):
        admin = current_user(container.users_repo)
        record = container.attendance_service.force_checkout(
            actor=admin,
            attendance_id=attendance_id,
            check_out_at=json_body().get("checkOutAt"),
        )
        return ok("Forced checkout successful", attendance=record.to_dict())
