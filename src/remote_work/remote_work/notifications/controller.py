from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.validators import parse_bool
from ..common.web import current_user_id, login_required
from ..container import Container


def register(app: Flask, container: Container) -> None:
    @app.route("/api/v1/notifications", methods=["GET"], endpoint="notifications")
    @login_required
    def notifications():
        items = container.notification_service.list_for_user(
            user_id=current_user_id(),
            unread_only=parse_bool(request.args.get("unread_only")),
        )
        return jsonify({"notifications": items})

    @app.route("/api/v1/notifications/unread_count", methods=["GET"], endpoint="notifications_unread_count")
    @login_required
    def notifications_unread_count():
        return jsonify({"count": container.notification_service.unread_count(user_id=current_user_id())})

    @app.route("/api/v1/notifications/<int:notification_id>/read", methods=["POST"], endpoint="notification_read")
    @login_required
    def notification_read(notification_id: int):
        container.notification_service.mark_read(user_id=current_user_id(), notification_id=notification_id)
        return jsonify({"success": True})

    @app.route("/api/v1/notifications/read_all", methods=["POST"], endpoint="notifications_read_all")
    @login_required
    def notifications_read_all():
        n = container.notification_service.mark_all_read(user_id=current_user_id())
        return jsonify({"success": True, "updated": n})
