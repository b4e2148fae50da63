from __future__ import annotations

from flask import Flask, jsonify, request, session

from ..common.validators import parse_bool, parse_int
from ..common.web import (
    admin_required,
    client_ip,
    current_role,
    current_user_id,
    error_response,
    json_body,
    login_required,
)
from ..container import Container

_USER_FIELDS = (
    "name",
    "email",
    "employee_number",
    "role",
    "department_id",
    "group_id",
    "manager_id",
    "position",
    "hired_date",
    "is_caregiver",
    "has_child_under_elementary",
)


def _user_fields(data: dict) -> dict:
    fields = {k: data.get(k) for k in _USER_FIELDS}
    # the admin form sends role_id
    if fields["role"] is None and data.get("role_id") is not None:
        fields["role"] = data.get("role_id")
    return fields


def register(app: Flask, container: Container) -> None:
    # ---- auth ----
    @app.route("/auth/sign_in", methods=["POST"], endpoint="sign_in")
    def sign_in():
        data = json_body()
        s_user = container.auth_service.authenticate(
            data.get("email", ""),
            data.get("password", ""),
            ip_address=client_ip(),
        )

        session.clear()
        session.permanent = parse_bool(data.get("remember_me", True))
        session["user_id"] = s_user.user_id
        session["name"] = s_user.name
        session["role"] = s_user.role.value
        session["department_id"] = s_user.department_id

        return jsonify(
            {
                "success": True,
                "user": {
                    "id": s_user.user_id,
                    "name": s_user.name,
                    "email": s_user.email,
                    "role": s_user.role.value,
                    "department_id": s_user.department_id,
                },
            }
        )

    @app.route("/auth/sign_out", methods=["DELETE"], endpoint="sign_out")
    def sign_out():
        if "user_id" in session:
            container.auth_service.sign_out(user_id=current_user_id(), ip_address=client_ip())
        session.clear()
        return jsonify({"success": True})

    @app.route("/auth/me", methods=["GET"], endpoint="me")
    @login_required
    def me():
        return jsonify({"user": container.profile_service.get_profile(user_id=current_user_id())})

    # ---- activation ----
    @app.route("/api/v1/activation/check", methods=["POST"], endpoint="activation_check")
    def activation_check():
        data = json_body()
        user = container.auth_service.check_activation(
            email=data.get("email", ""),
            employee_number=data.get("employee_number", ""),
        )
        return jsonify({"success": True, "user": user})

    @app.route("/api/v1/activation/setup", methods=["POST"], endpoint="activation_setup")
    def activation_setup():
        data = json_body()
        container.auth_service.setup_account(
            email=data.get("email", ""),
            employee_number=data.get("employee_number", ""),
            password=data.get("password", ""),
            password_confirmation=data.get("password_confirmation"),
        )
        return jsonify({"success": True, "message": "Account activated. Please sign in."})

    # ---- profile ----
    @app.route("/api/v1/profile", methods=["GET"], endpoint="profile")
    @login_required
    def profile():
        return jsonify(container.profile_service.get_profile(user_id=current_user_id()))

    @app.route("/api/v1/profile", methods=["PUT"], endpoint="profile_update")
    @login_required
    def profile_update():
        data = json_body()
        container.profile_service.update_profile(
            user_id=current_user_id(),
            name=data.get("name", ""),
            email=data.get("email"),
            address=data.get("address"),
            phone_number=data.get("phone_number"),
        )
        session["name"] = (data.get("name") or "").strip() or session.get("name")
        return jsonify({"success": True})

    @app.route("/api/v1/profile/transport_routes", methods=["GET"], endpoint="transport_routes")
    @login_required
    def transport_routes():
        return jsonify({"transport_routes": container.profile_service.list_routes(user_id=current_user_id())})

    @app.route("/api/v1/profile/transport_routes", methods=["POST"], endpoint="transport_route_create")
    @login_required
    def transport_route_create():
        data = json_body()
        route_id = container.profile_service.add_route(
            user_id=current_user_id(),
            departure_station=data.get("departure_station", ""),
            via_station=data.get("via_station"),
            arrival_station=data.get("arrival_station", ""),
            transport_type=data.get("transport_type", ""),
            fare=data.get("fare"),
        )
        return jsonify({"success": True, "id": route_id}), 201

    @app.route("/api/v1/profile/transport_routes/<int:route_id>", methods=["DELETE"], endpoint="transport_route_delete")
    @login_required
    def transport_route_delete(route_id: int):
        container.profile_service.delete_route(user_id=current_user_id(), route_id=route_id)
        return jsonify({"success": True})

    # ---- admin: users ----
    @app.route("/api/v1/admin/users", methods=["GET"], endpoint="admin_users")
    @admin_required
    def admin_users():
        return jsonify({"users": list(container.user_service.list_admin_view(current_role=current_role()))})

    @app.route("/api/v1/admin/users", methods=["POST"], endpoint="admin_user_create")
    @admin_required
    def admin_user_create():
        data = json_body()
        user_id = container.user_service.create_user(
            current_role=current_role(),
            actor_id=current_user_id(),
            fields=_user_fields(data),
            password=data.get("password"),
            password_confirmation=data.get("password_confirmation"),
            ip_address=client_ip(),
        )
        return jsonify({"success": True, "id": user_id}), 201

    @app.route("/api/v1/admin/users/<int:user_id>", methods=["GET"], endpoint="admin_user_detail")
    @admin_required
    def admin_user_detail(user_id: int):
        return jsonify(container.user_service.get_user(current_role=current_role(), user_id=user_id))

    @app.route("/api/v1/admin/users/<int:user_id>", methods=["PUT"], endpoint="admin_user_update")
    @admin_required
    def admin_user_update(user_id: int):
        data = json_body()
        container.user_service.update_user(
            current_role=current_role(),
            actor_id=current_user_id(),
            user_id=user_id,
            fields=_user_fields(data),
            password=data.get("password"),
            password_confirmation=data.get("password_confirmation"),
            ip_address=client_ip(),
        )
        return jsonify({"success": True})

    @app.route("/api/v1/admin/users/<int:user_id>", methods=["DELETE"], endpoint="admin_user_delete")
    @admin_required
    def admin_user_delete(user_id: int):
        container.user_service.delete_user(
            current_role=current_role(),
            actor_id=current_user_id(),
            user_id=user_id,
            ip_address=client_ip(),
        )
        return jsonify({"success": True})

    @app.route("/api/v1/admin/users/import", methods=["POST"], endpoint="admin_user_import")
    @admin_required
    def admin_user_import():
        upload = request.files.get("file")
        if upload is not None:
            csv_text = upload.read().decode("utf-8-sig")
        else:
            csv_text = json_body().get("csv") or request.get_data(as_text=True)
        if not csv_text:
            return error_response("CSV file is required", 400)

        result = container.user_service.import_users(
            current_role=current_role(),
            actor_id=current_user_id(),
            csv_text=csv_text,
            ip_address=client_ip(),
        )
        return jsonify({"success": True, **result.to_dict()})

    # ---- departments / groups / roles ----
    @app.route("/api/v1/departments", methods=["GET"], endpoint="departments")
    @login_required
    def departments():
        return jsonify({"departments": container.department_service.list_departments()})

    @app.route("/api/v1/departments", methods=["POST"], endpoint="department_create")
    @admin_required
    def department_create():
        dept_id = container.department_service.create_department(
            current_role=current_role(),
            name=json_body().get("name", ""),
        )
        return jsonify({"success": True, "id": dept_id}), 201

    @app.route("/api/v1/departments/<int:department_id>", methods=["PUT"], endpoint="department_update")
    @admin_required
    def department_update(department_id: int):
        container.department_service.rename_department(
            current_role=current_role(),
            department_id=department_id,
            name=json_body().get("name", ""),
        )
        return jsonify({"success": True})

    @app.route("/api/v1/departments/<int:department_id>", methods=["DELETE"], endpoint="department_delete")
    @admin_required
    def department_delete(department_id: int):
        container.department_service.delete_department(current_role=current_role(), department_id=department_id)
        return jsonify({"success": True})

    @app.route("/api/v1/groups", methods=["GET"], endpoint="groups")
    @login_required
    def groups():
        department_id = parse_int(request.args.get("department_id"), "department_id", allow_none=True)
        return jsonify({"groups": container.department_service.list_groups(department_id=department_id)})

    @app.route("/api/v1/groups", methods=["POST"], endpoint="group_create")
    @admin_required
    def group_create():
        data = json_body()
        group_id = container.department_service.create_group(
            current_role=current_role(),
            name=data.get("name", ""),
            department_id=data.get("department_id"),
        )
        return jsonify({"success": True, "id": group_id}), 201

    @app.route("/api/v1/roles", methods=["GET"], endpoint="roles")
    @login_required
    def roles():
        return jsonify({"roles": container.department_service.list_roles()})
