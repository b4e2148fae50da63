from __future__ import annotations

import io
import logging
from dataclasses import dataclass
from datetime import date
from typing import Optional

import pandas as pd
from werkzeug.security import check_password_hash, generate_password_hash

from ..audit.service import AuditService
from ..common.datetime_utils import parse_optional_date
from ..common.validators import (
    optional_text,
    parse_bool,
    parse_int,
    require_email,
    require_non_empty,
    require_password_pair,
)
from ..core.constants import PASSWORD_MIN_LENGTH
from ..core.enums import OperationAction, Role
from ..core.exceptions import AuthenticationError, AuthorizationError, NotFoundError, ValidationError
from .department_repository import DepartmentRepository, GroupRepository
from .model import ImportResult, TransportRoute, User, UserDraft
from .repository import TransportRouteRepository, UserRepository

logger = logging.getLogger(__name__)

_BAD_CREDENTIALS = "Invalid email or password"

IMPORT_COLUMNS = ("name", "email", "employee_number", "department", "role")


@dataclass(frozen=True)
class SessionUser:
    """What we store into Flask session after login."""

    user_id: int
    name: str
    email: str
    role: Role
    department_id: int


def parse_role(value) -> Role:
    """Accept a role name ('approver') or its numeric id (2)."""
    v = str(value if value is not None else "").strip().lower()
    if not v:
        raise ValidationError("Role is required")
    try:
        if v.isdigit():
            return Role.from_id(int(v))
        return Role(v)
    except ValueError:
        raise ValidationError(f"Unknown role: {value}")


def _require_admin(current_role: Role) -> None:
    if current_role != Role.ADMIN:
        raise AuthorizationError("Only administrators can manage users")


def _route_dict(r: TransportRoute) -> dict:
    return {
        "id": r.route_id,
        "departure_station": r.departure_station,
        "via_station": r.via_station or "",
        "arrival_station": r.arrival_station,
        "transport_type": r.transport_type,
        "fare": r.fare,
    }


class AuthService:
    """Use case: sign in, and first-time account activation."""

    def __init__(self, users: UserRepository, audit: AuditService):
        self._users = users
        self._audit = audit

    def authenticate(self, email: str, password: str, *, ip_address: Optional[str] = None) -> SessionUser:
        user = self._users.get_by_email((email or "").strip().lower())
        if not user or not user.is_active or not user.is_activated:
            logger.warning("Rejected sign-in for %s", email)
            raise AuthenticationError(_BAD_CREDENTIALS)

        try:
            ok = check_password_hash(user.password_hash, password or "")
        except (TypeError, ValueError):
            # corrupted or placeholder hashes
            ok = False

        if not ok:
            logger.warning("Rejected sign-in for %s", email)
            raise AuthenticationError(_BAD_CREDENTIALS)

        self._audit.record(user_id=user.user_id, action=OperationAction.LOGIN, ip_address=ip_address)
        return SessionUser(
            user_id=user.user_id,
            name=user.name,
            email=user.email,
            role=user.role,
            department_id=user.department_id,
        )

    def sign_out(self, *, user_id: int, ip_address: Optional[str] = None) -> None:
        self._audit.record(user_id=user_id, action=OperationAction.LOGOUT, ip_address=ip_address)

    def _pending_activation(self, email: str, employee_number: str) -> User:
        email = require_email(email)
        employee_number = require_non_empty(employee_number, "Employee number")

        user = self._users.get_by_email(email)
        if not user or user.employee_number != employee_number:
            raise ValidationError("No user matches this email and employee number")
        if user.is_activated:
            raise ValidationError("This account has already been activated")
        return user

    def check_activation(self, *, email: str, employee_number: str) -> dict:
        user = self._pending_activation(email, employee_number)
        return {"name": user.name, "email": user.email}

    def setup_account(
        self,
        *,
        email: str,
        employee_number: str,
        password: str,
        password_confirmation: Optional[str],
    ) -> None:
        user = self._pending_activation(email, employee_number)
        require_password_pair(password, password_confirmation or "", min_len=PASSWORD_MIN_LENGTH)

        if not self._users.set_password(user.user_id, generate_password_hash(password)):
            raise ValidationError("Account activation failed")
        logger.info("Activated account user_id=%s", user.user_id)


class UserService:
    """Use case: manage users (admin)."""

    def __init__(
        self,
        users: UserRepository,
        departments: DepartmentRepository,
        groups: GroupRepository,
        audit: AuditService,
    ):
        self._users = users
        self._departments = departments
        self._groups = groups
        self._audit = audit

    def build_draft(
        self,
        *,
        name: str,
        email: str,
        employee_number: str,
        role,
        department_id,
        group_id=None,
        manager_id=None,
        position: Optional[str] = None,
        hired_date=None,
        is_caregiver=False,
        has_child_under_elementary=False,
        user_id: Optional[int] = None,
    ) -> UserDraft:
        """Validate admin input; `user_id` is the user being edited, if any."""
        name = require_non_empty(name, "Name")
        email = require_email(email)
        employee_number = require_non_empty(employee_number, "Employee number")
        role_value = role if isinstance(role, Role) else parse_role(role)

        dept_id = parse_int(department_id, "Department")
        if not self._departments.get_by_id(dept_id):
            raise ValidationError("Department does not exist")

        grp_id = parse_int(group_id, "Group", allow_none=True)
        if grp_id is not None:
            group = self._groups.get_by_id(grp_id)
            if not group:
                raise ValidationError("Group does not exist")
            if group.department_id != dept_id:
                raise ValidationError("Group does not belong to the department")

        mgr_id = parse_int(manager_id, "Manager", allow_none=True)
        if mgr_id is not None:
            if user_id is not None and mgr_id == user_id:
                raise ValidationError("A user cannot be their own manager")
            manager = self._users.get_by_id(mgr_id)
            if not manager:
                raise ValidationError("Manager does not exist")
            if not manager.role.can_approve:
                raise ValidationError("Manager must be an approver or administrator")

        hired = hired_date if isinstance(hired_date, date) else parse_optional_date(hired_date, "Hired date")

        existing = self._users.get_by_email(email)
        if existing and existing.user_id != user_id:
            raise ValidationError("Email is already registered")
        existing = self._users.get_by_employee_number(employee_number)
        if existing and existing.user_id != user_id:
            raise ValidationError("Employee number is already registered")

        return UserDraft(
            name=name,
            email=email,
            employee_number=employee_number,
            role=role_value,
            department_id=dept_id,
            group_id=grp_id,
            manager_id=mgr_id,
            position=optional_text(position),
            hired_date=hired,
            is_caregiver=parse_bool(is_caregiver),
            has_child_under_elementary=parse_bool(has_child_under_elementary),
        )

    @staticmethod
    def _password_hash(password: Optional[str], confirmation: Optional[str]) -> Optional[str]:
        if not password:
            return None
        require_password_pair(password, confirmation or "", min_len=PASSWORD_MIN_LENGTH)
        return generate_password_hash(password)

    def list_admin_view(self, *, current_role: Role):
        _require_admin(current_role)
        return self._users.list_admin_view()

    def get_user(self, *, current_role: Role, user_id: int) -> dict:
        _require_admin(current_role)
        for row in self._users.list_admin_view():
            if row["id"] == user_id:
                return row
        raise NotFoundError("User not found")

    def create_user(
        self,
        *,
        current_role: Role,
        actor_id: int,
        fields: dict,
        password: Optional[str] = None,
        password_confirmation: Optional[str] = None,
        ip_address: Optional[str] = None,
    ) -> int:
        _require_admin(current_role)
        draft = self.build_draft(**fields)
        password_hash = self._password_hash(password, password_confirmation)

        user_id = self._users.create_user(draft, password_hash=password_hash)
        logger.info("Created user user_id=%s email=%s", user_id, draft.email)
        self._audit.record(
            user_id=actor_id,
            action=OperationAction.CREATE_USER,
            target_type="user",
            target_id=user_id,
            details=draft.email,
            ip_address=ip_address,
        )
        return user_id

    def update_user(
        self,
        *,
        current_role: Role,
        actor_id: int,
        user_id: int,
        fields: dict,
        password: Optional[str] = None,
        password_confirmation: Optional[str] = None,
        ip_address: Optional[str] = None,
    ) -> None:
        _require_admin(current_role)
        if not self._users.get_by_id(user_id):
            raise NotFoundError("User not found")

        draft = self.build_draft(**fields, user_id=user_id)
        password_hash = self._password_hash(password, password_confirmation)
        if not self._users.update_user(user_id, draft, password_hash=password_hash):
            raise ValidationError("Updating the user failed")

        self._audit.record(
            user_id=actor_id,
            action=OperationAction.UPDATE_USER,
            target_type="user",
            target_id=user_id,
            details=draft.email,
            ip_address=ip_address,
        )

    def delete_user(self, *, current_role: Role, actor_id: int, user_id: int, ip_address: Optional[str] = None) -> None:
        _require_admin(current_role)
        if actor_id == user_id:
            raise ValidationError("You cannot delete your own account")

        user = self._users.get_by_id(user_id)
        if not user:
            raise NotFoundError("User not found")
        if user.role == Role.ADMIN:
            raise ValidationError("Administrator accounts cannot be deleted")

        if not self._users.delete_by_id(user_id):
            raise ValidationError("Deleting the user failed")

        logger.info("Deleted user user_id=%s", user_id)
        self._audit.record(
            user_id=actor_id,
            action=OperationAction.DELETE_USER,
            target_type="user",
            target_id=user_id,
            details=user.email,
            ip_address=ip_address,
        )

    def import_users(
        self,
        *,
        current_role: Role,
        actor_id: int,
        csv_text: str,
        ip_address: Optional[str] = None,
    ) -> ImportResult:
        """Create users from CSV; every valid row is kept even when others fail."""
        _require_admin(current_role)

        try:
            df = pd.read_csv(
                io.StringIO((csv_text or "").lstrip("\ufeff")),
                dtype=str,
                keep_default_na=False,
                skip_blank_lines=False,
            ).fillna("")
        except pd.errors.EmptyDataError:
            raise ValidationError("CSV file is empty")
        except pd.errors.ParserError as e:
            raise ValidationError(f"CSV could not be parsed: {e}")

        df.columns = [str(c).strip() for c in df.columns]
        missing = [c for c in IMPORT_COLUMNS if c not in df.columns]
        if missing:
            raise ValidationError(f"CSV is missing column(s): {', '.join(missing)}")

        success = 0
        errors: list[str] = []
        for idx, raw in df.iterrows():
            # header is line 1
            line_no = int(idx) + 2
            row = {k: str(v).strip() for k, v in raw.items()}
            if not any(row.values()):
                continue
            try:
                department = self._departments.get_by_name(row["department"])
                if not department:
                    raise ValidationError(f"Unknown department: {row['department']}")
                draft = self.build_draft(
                    name=row["name"],
                    email=row["email"],
                    employee_number=row["employee_number"],
                    role=row["role"],
                    department_id=department.department_id,
                    hired_date=row.get("hired_date") or None,
                )
                self._users.create_user(draft, password_hash=None)
                success += 1
            except ValidationError as e:
                errors.append(f"Line {line_no}: {e}")

        logger.info("Imported users: %d created, %d failed", success, len(errors))
        self._audit.record(
            user_id=actor_id,
            action=OperationAction.IMPORT_USERS,
            target_type="user",
            details=f"success={success} errors={len(errors)}",
            ip_address=ip_address,
        )
        return ImportResult(success_count=success, errors=tuple(errors))


class ProfileService:
    """Use case: a user's own profile and commuting routes."""

    def __init__(
        self,
        users: UserRepository,
        departments: DepartmentRepository,
        groups: GroupRepository,
        routes: TransportRouteRepository,
    ):
        self._users = users
        self._departments = departments
        self._groups = groups
        self._routes = routes

    def _user(self, user_id: int) -> User:
        user = self._users.get_by_id(user_id)
        if not user:
            raise NotFoundError("User not found")
        return user

    def get_profile(self, *, user_id: int) -> dict:
        user = self._user(user_id)
        department = self._departments.get_by_id(user.department_id)
        group = self._groups.get_by_id(user.group_id) if user.group_id else None
        manager = self._users.get_by_id(user.manager_id) if user.manager_id else None
        return {
            "id": user.user_id,
            "name": user.name,
            "email": user.email,
            "employee_number": user.employee_number,
            "role": {"id": user.role.role_id, "name": user.role.value},
            "department": {"id": user.department_id, "name": department.name if department else "-"},
            "group": {"id": group.group_id, "name": group.name} if group else None,
            "manager": {"id": manager.user_id, "name": manager.name} if manager else None,
            "position": user.position or "",
            "hired_date": user.hired_date.isoformat() if user.hired_date else None,
            "is_caregiver": user.is_caregiver,
            "has_child_under_elementary": user.has_child_under_elementary,
            "address": user.address or "",
            "phone_number": user.phone_number or "",
            "transport_routes": [_route_dict(r) for r in self._routes.list_for_user(user_id)],
        }

    def update_profile(
        self,
        *,
        user_id: int,
        name: str,
        email: Optional[str] = None,
        address: Optional[str] = None,
        phone_number: Optional[str] = None,
    ) -> None:
        user = self._user(user_id)
        name = require_non_empty(name, "Name")
        new_email = require_email(email) if email else user.email
        if new_email != user.email:
            other = self._users.get_by_email(new_email)
            if other and other.user_id != user_id:
                raise ValidationError("Email is already registered")

        self._users.update_profile(
            user_id,
            name=name,
            email=new_email,
            address=optional_text(address),
            phone_number=optional_text(phone_number),
        )

    def list_routes(self, *, user_id: int) -> list[dict]:
        return [_route_dict(r) for r in self._routes.list_for_user(user_id)]

    def add_route(
        self,
        *,
        user_id: int,
        departure_station: str,
        arrival_station: str,
        transport_type: str,
        fare,
        via_station: Optional[str] = None,
    ) -> int:
        return self._routes.create(
            user_id=user_id,
            departure_station=require_non_empty(departure_station, "Departure station"),
            via_station=optional_text(via_station),
            arrival_station=require_non_empty(arrival_station, "Arrival station"),
            transport_type=require_non_empty(transport_type, "Transport type"),
            fare=parse_int(fare, "Fare", minimum=0),
        )

    def delete_route(self, *, user_id: int, route_id: int) -> None:
        route = self._routes.get_by_id(route_id)
        if not route or route.user_id != user_id:
            raise NotFoundError("Route not found")
        self._routes.delete(route_id)


class DepartmentService:
    """Use case: departments, groups and the role catalogue."""

    def __init__(self, departments: DepartmentRepository, groups: GroupRepository, users: UserRepository):
        self._departments = departments
        self._groups = groups
        self._users = users

    def list_departments(self) -> list[dict]:
        return [{"id": d.department_id, "name": d.name} for d in self._departments.list_all()]

    def _unique_name(self, name: str, *, department_id: Optional[int] = None) -> str:
        name = require_non_empty(name, "Department name")
        existing = self._departments.get_by_name(name)
        if existing and existing.department_id != department_id:
            raise ValidationError("Department name already exists")
        return name

    def create_department(self, *, current_role: Role, name: str) -> int:
        _require_admin(current_role)
        return self._departments.create(self._unique_name(name))

    def rename_department(self, *, current_role: Role, department_id: int, name: str) -> None:
        _require_admin(current_role)
        if not self._departments.get_by_id(department_id):
            raise NotFoundError("Department not found")
        self._departments.rename(department_id, self._unique_name(name, department_id=department_id))

    def delete_department(self, *, current_role: Role, department_id: int) -> None:
        _require_admin(current_role)
        if not self._departments.get_by_id(department_id):
            raise NotFoundError("Department not found")
        if self._users.count_in_department(department_id) > 0:
            raise ValidationError("Department still has users")
        self._departments.delete(department_id)

    def list_groups(self, *, department_id: Optional[int] = None) -> list[dict]:
        return [
            {"id": g.group_id, "name": g.name, "department_id": g.department_id}
            for g in self._groups.list_all(department_id=department_id)
        ]

    def create_group(self, *, current_role: Role, name: str, department_id) -> int:
        _require_admin(current_role)
        name = require_non_empty(name, "Group name")
        dept_id = parse_int(department_id, "Department")
        if not self._departments.get_by_id(dept_id):
            raise ValidationError("Department does not exist")
        if any(g.name == name for g in self._groups.list_all(department_id=dept_id)):
            raise ValidationError("Group name already exists in this department")
        return self._groups.create(name=name, department_id=dept_id)

    @staticmethod
    def list_roles() -> list[dict]:
        return [{"id": r.role_id, "name": r.value} for r in Role]
