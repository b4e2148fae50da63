from __future__ import annotations

import logging
from functools import wraps
from typing import Any, Optional

from flask import Flask, current_app, g, jsonify, request, session
from werkzeug.exceptions import HTTPException

from ..core.enums import Role
from ..core.exceptions import DomainError
from ..users.model import User

logger = logging.getLogger(__name__)

# operation_logs.ip_address
_IP_MAX_LENGTH = 64


def error_response(message: str, status: int):
    return jsonify({"success": False, "message": message}), status


def _load_session_user() -> Optional[User]:
    """Re-read the signed-in user so role changes and deactivation apply immediately."""
    if "user_id" not in session:
        return None
    users = current_app.extensions["container"].users_repo
    user = users.get_by_id(int(session["user_id"]))
    if not user or not user.is_active:
        logger.info("Dropping session of unavailable user_id=%s", session.get("user_id"))
        session.clear()
        return None
    session["role"] = user.role.value
    g.current_user = user
    return user


def login_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if _load_session_user() is None:
            return error_response("Please sign in to continue", 401)
        return view(*args, **kwargs)

    return wrapper


def roles_required(*roles: Role):
    allowed = set(roles)

    def decorator(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            user = _load_session_user()
            if user is None:
                return error_response("Please sign in to continue", 401)
            if user.role not in allowed:
                return error_response("You do not have permission", 403)
            return view(*args, **kwargs)

        return wrapper

    return decorator


admin_required = roles_required(Role.ADMIN)
approver_required = roles_required(Role.ADMIN, Role.APPROVER)


def current_user_id() -> int:
    return int(session["user_id"])


def current_role() -> Role:
    user = g.get("current_user")
    return user.role if user is not None else Role(session.get("role"))


def json_body() -> dict[str, Any]:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def client_ip() -> str | None:
    # X-Forwarded-For is "client, proxy1, proxy2"
    forwarded = request.headers.get("X-Forwarded-For", "")
    ip = forwarded.split(",")[0].strip() or request.remote_addr
    return ip[:_IP_MAX_LENGTH] if ip else None


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(DomainError)
    def handle_domain_error(e: DomainError):
        return error_response(str(e), e.status_code)

    @app.errorhandler(HTTPException)
    def handle_http_error(e: HTTPException):
        return error_response(e.description or e.name, e.code or 500)

    @app.errorhandler(Exception)
    def handle_unexpected(e: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.path)
        if bool(app.config.get("DEBUG", False)):
            return error_response(f"Internal error: {e}", 500)
        return error_response("Internal server error", 500)
