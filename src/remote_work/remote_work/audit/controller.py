from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.web import admin_required, current_role
from ..container import Container


def register(app: Flask, container: Container) -> None:
    @app.route("/api/v1/admin/operation_logs", methods=["GET"], endpoint="operation_logs")
    @admin_required
    def operation_logs():
        query = container.audit_service.build_query(
            action_type=request.args.get("action_type"),
            user_id=request.args.get("user_id"),
            start_date=request.args.get("start_date"),
            end_date=request.args.get("end_date"),
            page=request.args.get("page"),
            per_page=request.args.get("per_page"),
        )
        return jsonify(container.audit_service.list_logs(current_role=current_role(), query=query))
