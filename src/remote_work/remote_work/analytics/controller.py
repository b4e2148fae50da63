from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.web import admin_required, current_role, current_user_id, login_required
from ..container import Container


def register(app: Flask, container: Container) -> None:
    @app.route("/api/v1/dashboard", methods=["GET"], endpoint="dashboard")
    @login_required
    def dashboard():
        return jsonify(container.analytics_service.dashboard(user_id=current_user_id()))

    @app.route("/api/v1/admin/usage_stats", methods=["GET"], endpoint="usage_stats")
    @admin_required
    def usage_stats():
        return jsonify(container.analytics_service.usage_stats(current_role=current_role()))

    @app.route("/api/v1/admin/department_trend", methods=["GET"], endpoint="department_trend")
    @admin_required
    def department_trend():
        return jsonify(
            container.analytics_service.department_trend(
                current_role=current_role(),
                department_id=request.args.get("department_id"),
                months=request.args.get("months"),
            )
        )

    @app.route("/api/v1/admin/monthly_comparison", methods=["GET"], endpoint="monthly_comparison")
    @admin_required
    def monthly_comparison():
        return jsonify(
            container.analytics_service.monthly_comparison(
                current_role=current_role(),
                month=request.args.get("month"),
            )
        )
