"""Glue shared by the JSON controllers."""

from __future__ import annotations

import logging
from typing import Any

from flask import Flask, jsonify, request, session
from werkzeug.exceptions import HTTPException

from ..core.exceptions import AuthenticationError, DomainError
from ..users.model import User
from ..users.repository import UserRepository

logger = logging.getLogger(__name__)


def current_user(users: UserRepository) -> User:
    """The caller identity stored in the Flask session by the auth layer."""
    user_id = session.get("user_id")
    if user_id is None:
        raise AuthenticationError("Authentication required")
    user = users.get_by_id(int(user_id))
    if user is None or not user.is_active:
        raise AuthenticationError("Authentication required")
    return user


def json_body() -> dict[str, Any]:
    body = request.get_json(silent=True)
    return body if isinstance(body, dict) else {}


def ok(message: str, status: int = 200, **payload: Any):
    return jsonify({"success": True, "message": message, **payload}), status


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(DomainError)
    def handle_domain_error(e: DomainError):
        return jsonify({"success": False, "message": str(e)}), e.status_code

    @app.errorhandler(HTTPException)
    def handle_http_error(e: HTTPException):
        return jsonify({"success": False, "message": e.description}), e.code

    @app.errorhandler(Exception)
    def handle_unexpected(e: Exception):
        logger.exception("Unhandled error", extra={"path": request.path, "method": request.method})
        return jsonify({"success": False, "message": "Internal server error"}), 500
