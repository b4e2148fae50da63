from __future__ import annotations

import pytest

from src.remote_work.remote_work.core.enums import Role
from src.remote_work.remote_work.core.exceptions import AuthorizationError, NotFoundError, ValidationError
from src.remote_work.remote_work.users.service import DepartmentService


def test_profile_shows_assignment(container):
    profile = container.profile_service.get_profile(user_id=3)

    assert profile["department"] == {"id": 2, "name": "開発部"}
    assert profile["group"] == {"id": 1, "name": "バックエンド"}
    assert profile["manager"] == {"id": 2, "name": "Approver"}
    assert profile["role"] == {"id": 3, "name": "applicant"}
    assert profile["transport_routes"] == []


def test_update_profile(container, repos):
    service = container.profile_service

    service.update_profile(user_id=3, name="Applicant", email="NEW3@example.com", address="Tokyo", phone_number=" ")
    user = repos["users_repo"].get_by_id(3)
    assert (user.email, user.address, user.phone_number) == ("new3@example.com", "Tokyo", None)

    with pytest.raises(ValidationError):
        service.update_profile(user_id=3, name="Applicant", email="user2@example.com")
    with pytest.raises(ValidationError):
        service.update_profile(user_id=3, name="")


def test_transport_routes_belong_to_their_owner(container):
    service = container.profile_service
    route_id = service.add_route(
        user_id=3, departure_station="渋谷", arrival_station="品川", transport_type="train", fare="200"
    )

    assert service.list_routes(user_id=3) == [
        {
            "id": route_id,
            "departure_station": "渋谷",
            "via_station": "",
            "arrival_station": "品川",
            "transport_type": "train",
            "fare": 200,
        }
    ]
    with pytest.raises(ValidationError):
        service.add_route(user_id=3, departure_station="渋谷", arrival_station="品川", transport_type="train", fare=-1)
    with pytest.raises(NotFoundError):
        service.delete_route(user_id=4, route_id=route_id)

    service.delete_route(user_id=3, route_id=route_id)
    assert service.list_routes(user_id=3) == []


def test_department_lifecycle(container):
    service = container.department_service

    dept_id = service.create_department(current_role=Role.ADMIN, name="経理部")
    with pytest.raises(ValidationError):
        service.create_department(current_role=Role.ADMIN, name="経理部")

    service.rename_department(current_role=Role.ADMIN, department_id=dept_id, name="財務部")
    assert {"id": dept_id, "name": "財務部"} in service.list_departments()

    service.delete_department(current_role=Role.ADMIN, department_id=dept_id)
    assert all(d["id"] != dept_id for d in service.list_departments())


def test_department_with_users_cannot_be_deleted(container):
    with pytest.raises(ValidationError):
        container.department_service.delete_department(current_role=Role.ADMIN, department_id=2)
    with pytest.raises(NotFoundError):
        container.department_service.delete_department(current_role=Role.ADMIN, department_id=99)


def test_groups_are_unique_per_department(container):
    service = container.department_service

    service.create_group(current_role=Role.ADMIN, name="フロントエンド", department_id="2")
    with pytest.raises(ValidationError):
        service.create_group(current_role=Role.ADMIN, name="バックエンド", department_id=2)
    service.create_group(current_role=Role.ADMIN, name="バックエンド", department_id=3)

    assert [g["name"] for g in service.list_groups(department_id=2)] == ["バックエンド", "フロントエンド"]


def test_only_admin_edits_departments(container):
    with pytest.raises(AuthorizationError):
        container.department_service.create_department(current_role=Role.APPROVER, name="X")


def test_role_catalogue():
    assert DepartmentService.list_roles() == [
        {"id": 1, "name": "admin"},
        {"id": 2, "name": "approver"},
        {"id": 3, "name": "applicant"},
    ]
