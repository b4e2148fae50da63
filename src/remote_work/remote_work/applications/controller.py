from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.web import approver_required, client_ip, current_user_id, json_body, login_required
from ..container import Container


def register(app: Flask, container: Container) -> None:
    @app.route("/api/v1/applications", methods=["GET"], endpoint="my_applications")
    @login_required
    def my_applications():
        rows = container.application_service.list_my_applications(
            user_id=current_user_id(),
            status=request.args.get("status"),
            month=request.args.get("month"),
        )
        return jsonify({"applications": rows})

    @app.route("/api/v1/applications", methods=["POST"], endpoint="application_create")
    @login_required
    def application_create():
        data = json_body()
        application_id = container.application_service.create_application(
            user_id=current_user_id(),
            work_date=data.get("date"),
            work_option=data.get("work_option"),
            reason=data.get("reason", ""),
            start_time=data.get("start_time"),
            end_time=data.get("end_time"),
            break_minutes=data.get("break_time"),
            is_special=data.get("is_special", False),
            special_reason=data.get("special_reason"),
            is_overtime=data.get("is_overtime", False),
            overtime_reason=data.get("overtime_reason"),
            overtime_end=data.get("overtime_end"),
            project=data.get("project"),
            ip_address=client_ip(),
        )
        row = container.application_service.get_application(viewer_id=current_user_id(), application_id=application_id)
        return jsonify({"success": True, "application": row}), 201

    @app.route("/api/v1/applications/calendar", methods=["GET"], endpoint="application_calendar")
    @login_required
    def application_calendar():
        return jsonify(
            container.application_service.calendar(viewer_id=current_user_id(), month=request.args.get("month"))
        )

    @app.route("/api/v1/applications/<int:application_id>", methods=["GET"], endpoint="application_detail")
    @login_required
    def application_detail(application_id: int):
        return jsonify(
            container.application_service.get_application(viewer_id=current_user_id(), application_id=application_id)
        )

    @app.route("/api/v1/applications/<int:application_id>/cancel", methods=["POST"], endpoint="application_cancel")
    @login_required
    def application_cancel(application_id: int):
        container.application_service.cancel_application(
            user_id=current_user_id(),
            application_id=application_id,
            ip_address=client_ip(),
        )
        return jsonify({"success": True})

    # ---- approvals ----
    @app.route("/api/v1/approvals/pending", methods=["GET"], endpoint="approvals_pending")
    @approver_required
    def approvals_pending():
        return jsonify({"applications": container.approval_service.list_pending(approver_id=current_user_id())})

    @app.route("/api/v1/approvals/pending/count", methods=["GET"], endpoint="approvals_pending_count")
    @approver_required
    def approvals_pending_count():
        return jsonify({"count": container.approval_service.pending_count(approver_id=current_user_id())})

    @app.route("/api/v1/applications/<int:application_id>/approve", methods=["POST"], endpoint="application_approve")
    @approver_required
    def application_approve(application_id: int):
        container.approval_service.approve(
            approver_id=current_user_id(),
            application_id=application_id,
            comment=json_body().get("comment"),
            ip_address=client_ip(),
        )
        return jsonify({"success": True})

    @app.route("/api/v1/applications/<int:application_id>/reject", methods=["POST"], endpoint="application_reject")
    @approver_required
    def application_reject(application_id: int):
        container.approval_service.reject(
            approver_id=current_user_id(),
            application_id=application_id,
            comment=json_body().get("comment"),
            ip_address=client_ip(),
        )
        return jsonify({"success": True})

    @app.route("/api/v1/admin/applications", methods=["GET"], endpoint="admin_applications")
    @approver_required
    def admin_applications():
        rows = container.application_service.list_applications(
            viewer_id=current_user_id(),
            status=request.args.get("status"),
            filter_by_user=request.args.get("filter_by_user"),
            filter_by_month=request.args.get("filter_by_month"),
            sort_by=request.args.get("sort_by"),
            sort_order=request.args.get("sort_order"),
        )
        return jsonify({"applications": rows})
