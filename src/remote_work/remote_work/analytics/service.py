from __future__ import annotations

from datetime import date
from typing import Optional

from ..applications.approval_service import ApprovalService
from ..applications.repository import ApplicationRepository
from ..common.datetime_utils import add_months, iter_months_back, month_bounds, month_key, now_local, parse_month, week_bounds
from ..common.validators import parse_int
from ..core.constants import DEFAULT_TREND_MONTHS, DEFAULT_WEEKLY_LIMIT, RECENT_PENDING_LIMIT, USAGE_MONTHS
from ..core.enums import ApplicationStatus, Role, WorkOption
from ..core.exceptions import AuthenticationError, AuthorizationError, NotFoundError, ValidationError
from ..users.department_repository import DepartmentRepository
from ..users.repository import UserRepository
from .repository import AnalyticsRepository

WEEKDAY_NAMES = ("月", "火", "水", "木", "金", "土", "日")


def _require_admin(current_role: Role) -> None:
    if current_role != Role.ADMIN:
        raise AuthorizationError("Only administrators can view usage statistics")


class AnalyticsService:
    """Use case: usage statistics and the personal dashboard."""

    def __init__(
        self,
        analytics: AnalyticsRepository,
        departments: DepartmentRepository,
        users: UserRepository,
        applications: ApplicationRepository,
        approvals: ApprovalService,
        *,
        weekly_limit: int = DEFAULT_WEEKLY_LIMIT,
    ):
        self._analytics = analytics
        self._departments = departments
        self._users = users
        self._applications = applications
        self._approvals = approvals
        self._weekly_limit = int(weekly_limit)

    def _monthly_series(self, *, today: date, months: int, department_id: Optional[int] = None) -> list[dict]:
        firsts = list(iter_months_back(today, months))
        counts = self._analytics.monthly_counts(
            start=firsts[0],
            end=add_months(firsts[-1], 1),
            department_id=department_id,
        )
        return [{"month": month_key(m), "count": counts.get(month_key(m), 0)} for m in firsts]

    def usage_stats(self, *, current_role: Role, today: Optional[date] = None) -> dict:
        _require_admin(current_role)
        today = today or now_local().date()

        by_option = self._analytics.applications_by_option()
        by_weekday = self._analytics.weekday_counts()
        return {
            "total_users": self._analytics.count_users(),
            "users_by_department": list(self._analytics.users_by_department()),
            "users_by_group": list(self._analytics.users_by_group()),
            "applications_by_type": [
                {"application_type": option.label, "count": by_option.get(option.value, 0)} for option in WorkOption
            ],
            "applications_by_month": self._monthly_series(today=today, months=USAGE_MONTHS),
            "applications_by_weekday": [
                {"name": name, "count": by_weekday.get(i, 0)} for i, name in enumerate(WEEKDAY_NAMES)
            ],
        }

    def department_trend(
        self,
        *,
        current_role: Role,
        department_id,
        months=None,
        today: Optional[date] = None,
    ) -> dict:
        _require_admin(current_role)
        today = today or now_local().date()

        dept_id = parse_int(department_id, "department_id")
        department = self._departments.get_by_id(dept_id)
        if not department:
            raise NotFoundError("Department not found")

        n = parse_int(months, "months", minimum=1, allow_none=True) or DEFAULT_TREND_MONTHS
        if n > 24:
            raise ValidationError("months must be <= 24")

        return {
            "department": {"id": department.department_id, "name": department.name},
            "trend": self._monthly_series(today=today, months=n, department_id=dept_id),
        }

    def monthly_comparison(self, *, current_role: Role, month=None, today: Optional[date] = None) -> dict:
        _require_admin(current_role)
        if month:
            first = parse_month(str(month), "month")
        else:
            first = (today or now_local().date()).replace(day=1)
        start, end = month_bounds(first)

        counts = self._analytics.department_counts(start=start, end=end)
        return {
            "month": month_key(first),
            "departments": [
                {"id": d.department_id, "name": d.name, "count": counts.get(d.department_id, 0)}
                for d in self._departments.list_all()
            ],
        }

    def dashboard(self, *, user_id: int, today: Optional[date] = None) -> dict:
        today = today or now_local().date()
        user = self._users.get_by_id(user_id)
        if not user or not user.is_active:
            raise AuthenticationError("Please sign in again")

        by_status = self._analytics.status_counts(user_id=user.user_id)
        monday, sunday = week_bounds(today)
        data = {
            "counts": {s.value: by_status.get(s.value, 0) for s in ApplicationStatus},
            "this_week": self._applications.count_active_between(user_id=user.user_id, start=monday, end=sunday),
            "weekly_limit": None if user.weekly_limit_exempt else self._weekly_limit,
        }

        if user.role.can_approve:
            data["pending_approvals"] = self._approvals.pending_count(approver_id=user.user_id)
            data["recent_pending"] = self._approvals.list_pending(approver_id=user.user_id, limit=RECENT_PENDING_LIMIT)
        return data
