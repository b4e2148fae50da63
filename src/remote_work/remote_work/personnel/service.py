from __future__ import annotations

import logging
from datetime import date
from typing import Optional

from ..audit.service import AuditService
from ..common.datetime_utils import now_local, parse_iso_date
from ..common.validators import parse_int
from ..core.enums import OperationAction, Role
from ..core.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from ..notifications.service import NotificationService
from ..users.department_repository import DepartmentRepository
from ..users.repository import UserRepository
from ..users.service import parse_role
from .model import PersonnelChange
from .repository import PersonnelChangeRepository

logger = logging.getLogger(__name__)


def _require_admin(current_role: Role) -> None:
    if current_role != Role.ADMIN:
        raise AuthorizationError("Only administrators can manage personnel changes")


class PersonnelService:
    """Use case: schedule department/role/manager changes and apply them when due."""

    def __init__(
        self,
        changes: PersonnelChangeRepository,
        users: UserRepository,
        departments: DepartmentRepository,
        notifications: NotificationService,
        audit: AuditService,
    ):
        self._changes = changes
        self._users = users
        self._departments = departments
        self._notifications = notifications
        self._audit = audit

    def list_changes(self, *, current_role: Role):
        _require_admin(current_role)
        return self._changes.list_admin_view()

    def create_change(
        self,
        *,
        current_role: Role,
        actor_id: int,
        user_id,
        effective_date,
        new_department_id=None,
        new_role=None,
        new_manager_id=None,
        today: Optional[date] = None,
        ip_address: Optional[str] = None,
    ) -> int:
        _require_admin(current_role)
        today = today or now_local().date()

        uid = parse_int(user_id, "User")
        user = self._users.get_by_id(uid)
        if not user:
            raise NotFoundError("User not found")

        if effective_date is None or (isinstance(effective_date, str) and not effective_date.strip()):
            raise ValidationError("Effective date is required")
        eff = effective_date if isinstance(effective_date, date) else parse_iso_date(str(effective_date), "Effective date")
        if eff < today:
            raise ValidationError("Effective date cannot be in the past")

        dept_id = parse_int(new_department_id, "Department", allow_none=True)
        role = parse_role(new_role) if new_role not in (None, "") else None
        manager_id = parse_int(new_manager_id, "Manager", allow_none=True)
        if dept_id is None and role is None and manager_id is None:
            raise ValidationError("Specify at least one of department, role or manager")

        if dept_id is not None and not self._departments.get_by_id(dept_id):
            raise ValidationError("Department does not exist")
        if manager_id is not None:
            if manager_id == uid:
                raise ValidationError("A user cannot be their own manager")
            manager = self._users.get_by_id(manager_id)
            if not manager or not manager.role.can_approve:
                raise ValidationError("Manager must be an existing approver or administrator")

        change_id = self._changes.create(
            user_id=uid,
            old_department_id=user.department_id,
            new_department_id=dept_id,
            old_role=user.role,
            new_role=role,
            new_manager_id=manager_id,
            effective_date=eff,
            created_by=actor_id,
        )
        logger.info("Personnel change %s scheduled for user_id=%s on %s", change_id, uid, eff)
        self._audit.record(
            user_id=actor_id,
            action=OperationAction.CREATE_PERSONNEL_CHANGE,
            target_type="personnel_change",
            target_id=change_id,
            details=f"user_id={uid} effective={eff.isoformat()}",
            ip_address=ip_address,
        )
        return change_id

    def delete_change(
        self,
        *,
        current_role: Role,
        actor_id: int,
        change_id: int,
        ip_address: Optional[str] = None,
    ) -> None:
        _require_admin(current_role)
        change = self._changes.get_by_id(change_id)
        if not change:
            raise NotFoundError("Personnel change not found")
        if change.is_applied or not self._changes.delete_unapplied(change_id):
            raise ConflictError("Applied personnel changes cannot be deleted")

        self._audit.record(
            user_id=actor_id,
            action=OperationAction.DELETE_PERSONNEL_CHANGE,
            target_type="personnel_change",
            target_id=change_id,
            ip_address=ip_address,
        )

    def _check_still_valid(self, change: PersonnelChange) -> None:
        """Department and manager may have been deleted or demoted since scheduling."""
        if change.new_department_id is not None and not self._departments.get_by_id(change.new_department_id):
            raise ValidationError(f"department {change.new_department_id} no longer exists")
        if change.new_manager_id is not None:
            manager = self._users.get_by_id(change.new_manager_id)
            if not manager or not manager.is_active or not manager.role.can_approve:
                raise ValidationError(f"manager {change.new_manager_id} is no longer an active approver")

    def _apply_one(self, change: PersonnelChange, *, actor_id: Optional[int]) -> bool:
        user = self._users.get_by_id(change.user_id)
        if not user:
            raise ValidationError(f"user {change.user_id} is gone")
        self._check_still_valid(change)

        self._users.update_assignment(
            user.user_id,
            department_id=change.new_department_id or user.department_id,
            role=change.new_role or user.role,
            manager_id=change.new_manager_id if change.new_manager_id is not None else user.manager_id,
        )
        if not self._changes.mark_applied(change.change_id):
            return False

        logger.info("Applied personnel change %s to user_id=%s", change.change_id, user.user_id)
        self._notifications.notify(
            [user.user_id],
            f"Your personnel change effective {change.effective_date.isoformat()} has been applied",
            "/profile",
        )
        self._audit.record(
            user_id=actor_id,
            action=OperationAction.APPLY_PERSONNEL_CHANGE,
            target_type="personnel_change",
            target_id=change.change_id,
            details=f"user_id={user.user_id}",
        )
        return True

    def apply_due(self, *, today: Optional[date] = None, actor_id: Optional[int] = None) -> int:
        """Apply every unapplied change effective on or before `today`, oldest first.

        A change that can no longer be applied stays unapplied and is retried
        on the next run; it never blocks the changes after it.
        """
        today = today or now_local().date()
        applied = 0

        for change in self._changes.list_due(today=today):
            try:
                if self._apply_one(change, actor_id=actor_id):
                    applied += 1
            except ValidationError as e:
                logger.warning("Skipping personnel change %s: %s", change.change_id, e)
            except Exception:
                logger.exception("Applying personnel change %s failed", change.change_id)

        return applied
