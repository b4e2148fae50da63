from __future__ import annotations

from flask import Flask, jsonify

from ..common.web import admin_required, client_ip, current_role, current_user_id, json_body
from ..container import Container


def register(app: Flask, container: Container) -> None:
    @app.route("/api/v1/admin/user_info_changes", methods=["GET"], endpoint="personnel_changes")
    @admin_required
    def personnel_changes():
        rows = container.personnel_service.list_changes(current_role=current_role())
        return jsonify({"user_info_changes": list(rows)})

    @app.route("/api/v1/admin/user_info_changes", methods=["POST"], endpoint="personnel_change_create")
    @admin_required
    def personnel_change_create():
        data = json_body()
        change_id = container.personnel_service.create_change(
            current_role=current_role(),
            actor_id=current_user_id(),
            user_id=data.get("user_id"),
            effective_date=data.get("effective_date"),
            new_department_id=data.get("new_department_id"),
            new_role=data.get("new_role") or data.get("new_role_id"),
            new_manager_id=data.get("new_manager_id"),
            ip_address=client_ip(),
        )
        return jsonify({"success": True, "id": change_id}), 201

    @app.route("/api/v1/admin/user_info_changes/<int:change_id>", methods=["DELETE"], endpoint="personnel_change_delete")
    @admin_required
    def personnel_change_delete(change_id: int):
        container.personnel_service.delete_change(
            current_role=current_role(),
            actor_id=current_user_id(),
            change_id=change_id,
            ip_address=client_ip(),
        )
        return jsonify({"success": True})

    @app.route("/api/v1/admin/user_info_changes/apply", methods=["POST"], endpoint="personnel_changes_apply")
    @admin_required
    def personnel_changes_apply():
        n = container.personnel_service.apply_due(actor_id=current_user_id())
        return jsonify({"success": True, "applied": n})
