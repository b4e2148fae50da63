from __future__ import annotations

import logging
from datetime import date, datetime, time, timedelta
from typing import Optional

from ..audit.service import AuditService
from ..common.datetime_utils import (
    month_bounds,
    month_key,
    now_local,
    parse_hhmm,
    parse_iso_date,
    parse_month,
    week_bounds,
)
from ..common.validators import optional_text, parse_bool, parse_int, require_non_empty
from ..core.constants import DEFAULT_DAY_END_HOUR, DEFAULT_LIST_LIMIT, DEFAULT_WEEKLY_LIMIT, MAX_ADVANCE_DAYS
from ..core.enums import ApplicationStatus, OperationAction, Role, WorkOption
from ..core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from ..notifications.service import NotificationService
from ..users.model import User
from ..users.repository import UserRepository
from .authority import has_authority, scope_for
from .classifier.factory import SpecialRuleFactory
from .hours.base import WorkHoursCalculator
from .model import SORT_FIELDS, SORT_ORDERS, ApplicationQuery, NewApplication
from .presenter import to_row
from .repository import ApplicationRepository, duplicate_date_error, weekly_limit_error

logger = logging.getLogger(__name__)


def _as_time(value, field_name: str) -> Optional[time]:
    if value is None or isinstance(value, time):
        return value
    return parse_hhmm(str(value), field_name)


def parse_status(value) -> Optional[ApplicationStatus]:
    if value is None or not str(value).strip():
        return None
    try:
        return ApplicationStatus.parse(str(value))
    except ValueError:
        raise ValidationError(f"Unknown status: {value}")


def approver_ids_for(users: UserRepository, applicant: User) -> list[int]:
    """Who is told about a new application: the manager, else department approvers, else admins."""
    if applicant.manager_id is not None:
        return [applicant.manager_id]

    approvers = [
        u.user_id
        for u in users.list_by_role(Role.APPROVER)
        if u.department_id == applicant.department_id and u.user_id != applicant.user_id
    ]
    if approvers:
        return approvers
    return [u.user_id for u in users.list_by_role(Role.ADMIN) if u.user_id != applicant.user_id]


class ApplicationService:
    """Use case: submit, cancel and browse remote-work applications."""

    def __init__(
        self,
        applications: ApplicationRepository,
        users: UserRepository,
        notifications: NotificationService,
        audit: AuditService,
        *,
        calculator: WorkHoursCalculator,
        special_rules: SpecialRuleFactory,
        weekly_limit: int = DEFAULT_WEEKLY_LIMIT,
    ):
        self._applications = applications
        self._users = users
        self._notifications = notifications
        self._audit = audit
        self._calculator = calculator
        self._special_rules = special_rules
        self._weekly_limit = int(weekly_limit)

    @property
    def weekly_limit(self) -> int:
        return self._weekly_limit

    def _active_user(self, user_id: int) -> User:
        user = self._users.get_by_id(user_id)
        if not user or not user.is_active:
            raise AuthenticationError("Please sign in again")
        return user

    def create_application(
        self,
        *,
        user_id: int,
        work_date,
        work_option,
        reason: str,
        start_time=None,
        end_time=None,
        break_minutes=None,
        is_special=False,
        special_reason: Optional[str] = None,
        is_overtime=False,
        overtime_reason: Optional[str] = None,
        overtime_end=None,
        project: Optional[str] = None,
        now: Optional[datetime] = None,
        ip_address: Optional[str] = None,
    ) -> int:
        now = now or now_local()
        today = now.date()
        user = self._active_user(user_id)

        if work_date is None or (isinstance(work_date, str) and not work_date.strip()):
            raise ValidationError("Date is required")
        wd = work_date if isinstance(work_date, date) else parse_iso_date(str(work_date), "Date")
        if wd < today:
            raise ValidationError("Past dates cannot be applied for")
        if wd > today + timedelta(days=MAX_ADVANCE_DAYS):
            raise ValidationError(f"Applications can be made at most {MAX_ADVANCE_DAYS} days ahead")

        try:
            option = work_option if isinstance(work_option, WorkOption) else WorkOption(str(work_option or "").strip())
        except ValueError:
            raise ValidationError("Work option must be one of full_day, am_half, pm_half")

        reason = require_non_empty(reason, "Reason")

        start = _as_time(start_time, "Start time")
        end = _as_time(end_time, "End time")
        if start and end and end <= start:
            raise ValidationError("End time must be later than start time")
        breaks = parse_int(break_minutes, "Break minutes", minimum=0, allow_none=True)

        decision = self._special_rules.for_submission(now=now, work_date=wd).decide(requested=parse_bool(is_special))
        special_text = optional_text(special_reason) if decision.is_special else None
        if decision.is_special and not special_text:
            raise ValidationError("Special reason is required for special applications")

        overtime = parse_bool(is_overtime)
        overtime_text = None
        ot_end = None
        if overtime:
            overtime_text = optional_text(overtime_reason)
            if not overtime_text:
                raise ValidationError("Overtime reason is required")
            ot_end = _as_time(overtime_end, "Overtime end")
            if ot_end is None:
                raise ValidationError("Overtime end time is required")
            regular_end = end or time(hour=DEFAULT_DAY_END_HOUR)
            if ot_end <= regular_end:
                raise ValidationError("Overtime end must be later than the regular end time")

        exceeded = overtime or self._calculator.exceeds_standard(
            work_option=option,
            start_time=start,
            end_time=end,
            break_minutes=breaks,
            overtime_end=ot_end,
        )

        if self._applications.exists_active_on(user_id=user.user_id, work_date=wd):
            raise duplicate_date_error()

        weekly_limit = None if user.weekly_limit_exempt else self._weekly_limit
        if weekly_limit is not None:
            monday, sunday = week_bounds(wd)
            used = self._applications.count_active_between(user_id=user.user_id, start=monday, end=sunday)
            if used >= weekly_limit:
                logger.warning("Weekly limit reached user_id=%s week=%s used=%d", user.user_id, monday, used)
                raise weekly_limit_error(weekly_limit)

        new = NewApplication(
            user_id=user.user_id,
            work_date=wd,
            work_option=option,
            reason=reason,
            start_time=start,
            end_time=end,
            break_minutes=breaks,
            is_special=decision.is_special,
            special_kind=decision.kind,
            special_reason=special_text,
            is_overtime=overtime,
            overtime_reason=overtime_text,
            overtime_end=ot_end,
            project=optional_text(project),
            work_hours_exceeded=exceeded,
        )
        application_id = self._applications.create(new, weekly_limit=weekly_limit)
        logger.info(
            "Application %s created user_id=%s date=%s special=%s",
            application_id,
            user.user_id,
            wd,
            decision.kind.value if decision.kind else "-",
        )

        self._audit.record(
            user_id=user.user_id,
            action=OperationAction.CREATE_APPLICATION,
            target_type="application",
            target_id=application_id,
            details=wd.isoformat(),
            ip_address=ip_address,
        )
        self._notifications.notify(
            approver_ids_for(self._users, user),
            f"{user.name} applied for remote work on {wd.isoformat()}",
            "/approvals",
        )
        return application_id

    def cancel_application(self, *, user_id: int, application_id: int, ip_address: Optional[str] = None) -> None:
        app = self._applications.get_by_id(application_id)
        if not app:
            raise NotFoundError("Application not found")
        if app.user_id != user_id:
            raise AuthorizationError("You can only cancel your own applications")
        if app.status.is_terminal:
            raise ConflictError("Only pending applications can be cancelled")

        if not self._applications.transition(application_id=application_id, to_status=ApplicationStatus.CANCELLED):
            raise ConflictError("The application was decided before it could be cancelled")

        logger.info("Application %s cancelled by user_id=%s", application_id, user_id)
        self._audit.record(
            user_id=user_id,
            action=OperationAction.CANCEL_APPLICATION,
            target_type="application",
            target_id=application_id,
            ip_address=ip_address,
        )

    def _can_view(self, viewer: User, owner_id: int) -> bool:
        if viewer.user_id == owner_id or viewer.role == Role.ADMIN:
            return True
        if viewer.role != Role.APPROVER:
            return False
        owner = self._users.get_by_id(owner_id)
        return bool(owner) and has_authority(viewer, owner)

    def get_application(self, *, viewer_id: int, application_id: int) -> dict:
        viewer = self._active_user(viewer_id)
        item = self._applications.get_item(application_id)
        if not item or not self._can_view(viewer, item.application.user_id):
            raise NotFoundError("Application not found")
        return to_row(item, self._applications.list_approvals(application_id))

    def _month_range(self, month) -> tuple[Optional[date], Optional[date]]:
        if month is None or not str(month).strip():
            return None, None
        start, next_start = month_bounds(parse_month(str(month), "Month"))
        return start, next_start - timedelta(days=1)

    def list_my_applications(self, *, user_id: int, status=None, month=None) -> list[dict]:
        date_from, date_to = self._month_range(month)
        query = ApplicationQuery(
            owner_id=user_id,
            status=parse_status(status),
            date_from=date_from,
            date_to=date_to,
            sort_by="date",
            sort_order="desc",
            limit=DEFAULT_LIST_LIMIT,
        )
        return [to_row(item) for item in self._applications.search(query)]

    def list_applications(
        self,
        *,
        viewer_id: int,
        status=None,
        filter_by_user=None,
        filter_by_month=None,
        sort_by: Optional[str] = None,
        sort_order: Optional[str] = None,
    ) -> list[dict]:
        viewer = self._active_user(viewer_id)
        if not viewer.role.can_approve:
            raise AuthorizationError("You do not have permission")

        sort_by = (sort_by or "created_at").strip()
        if sort_by not in SORT_FIELDS:
            raise ValidationError(f"sort_by must be one of {', '.join(SORT_FIELDS)}")
        sort_order = (sort_order or "desc").strip().lower()
        if sort_order not in SORT_ORDERS:
            raise ValidationError("sort_order must be asc or desc")

        date_from, date_to = self._month_range(filter_by_month)
        query = ApplicationQuery(
            scope=scope_for(viewer, include_own=False),
            status=parse_status(status),
            applicant_id=parse_int(filter_by_user, "filter_by_user", allow_none=True),
            date_from=date_from,
            date_to=date_to,
            sort_by=sort_by,
            sort_order=sort_order,
            limit=DEFAULT_LIST_LIMIT,
        )
        return [to_row(item) for item in self._applications.search(query)]

    def _visible_query(self, viewer: User, **kwargs) -> ApplicationQuery:
        if viewer.role == Role.APPLICANT:
            return ApplicationQuery(owner_id=viewer.user_id, **kwargs)
        return ApplicationQuery(scope=scope_for(viewer, include_own=True), **kwargs)

    def calendar(self, *, viewer_id: int, month) -> dict:
        """Per-date status counts for the month, over what the viewer may see."""
        viewer = self._active_user(viewer_id)
        first = parse_month(str(month or ""), "Month")
        date_from, date_to = self._month_range(month)

        query = self._visible_query(
            viewer,
            date_from=date_from,
            date_to=date_to,
            sort_by="date",
            sort_order="asc",
            limit=10000,
        )
        days: dict[str, dict] = {}
        for item in self._applications.search(query):
            app = item.application
            if app.status == ApplicationStatus.CANCELLED:
                continue
            bucket = days.setdefault(
                app.work_date.isoformat(),
                {"pending": 0, "approved": 0, "rejected": 0, "total": 0, "applications": []},
            )
            bucket[app.status.value] += 1
            bucket["total"] += 1
            bucket["applications"].append(
                {"id": app.application_id, "user_name": item.user_name, "status": app.status.value}
            )
        return {"month": month_key(first), "days": days}
