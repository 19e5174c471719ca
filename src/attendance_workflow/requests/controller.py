from __future__ import annotations

from flask import Flask, request

from ..common.web import current_user, ok
from ..container import Container


def register(app: Flask, container: Container) -> None:
    @app.route("/api/requests", methods=["POST"], endpoint="create_request")
    def create_request():
        user = current_user(container.users_repo)
        created = container.request_service.create_request(user_id=user.user_id, payload=request.get_json(silent=True))
        return ok("Request submitted", 201, request=created.to_dict())

    @app.route("/api/requests/me", methods=["GET"], endpoint="my_requests")
    def my_requests():
        user = current_user(container.users_repo)
        items = container.request_service.list_my_requests(user_id=user.user_id, status=request.args.get("status"))
        return ok("OK", items=[r.to_dict() for r in items])

    @app.route("/api/requests/pending", methods=["GET"], endpoint="pending_requests")
    def pending_requests():
        approver = current_user(container.users_repo)
        items = container.request_service.list_pending(approver=approver)
        return ok("OK", items=[r.to_dict() for r in items])

    @app.route("/api/requests/<request_id>/approve", methods=["POST"], endpoint="approve_request")
    def approve_request(request_id: str):
        approver = current_user(container.users_repo)
        approved = container.request_service.approve_request(request_id=request_id, approver=approver)
        return ok("Request approved", request=approved.to_dict())

    @app.route("/api/requests/<request_id>/reject", methods=["POST"], endpoint="reject_request")
    def reject_request(request_id: str):
        approver = current_user(container.users_repo)
        rejected = container.request_service.reject_request(request_id=request_id, approver=approver)
        return ok("Request rejected", request=rejected.to_dict())

    @app.route("/api/requests/<request_id>", methods=["DELETE"], endpoint="cancel_request")
    def cancel_request(request_id: str):
        user = current_user(container.users_repo)
        container.request_service.cancel_request(user_id=user.user_id, request_id=request_id)
        return ok("Request cancelled")
