from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime, timedelta
from typing import Optional

import pytest
from werkzeug.security import generate_password_hash

from src.remote_work.remote_work.applications.model import (
    Application,
    ApplicationListItem,
    ApplicationQuery,
    Approval,
    NewApplication,
)
from src.remote_work.remote_work.applications.repository import duplicate_date_error, weekly_limit_error
from src.remote_work.remote_work.audit.model import LogQuery, OperationLog
from src.remote_work.remote_work.common.datetime_utils import week_bounds
from src.remote_work.remote_work.container import wire
from src.remote_work.remote_work.core.enums import ApplicationStatus, Role, WorkOption
from src.remote_work.remote_work.main import create_app
from src.remote_work.remote_work.notifications.model import Notification
from src.remote_work.remote_work.personnel.model import PersonnelChange
from src.remote_work.remote_work.users.department_model import Department, Group
from src.remote_work.remote_work.users.model import TransportRoute, User, UserDraft

PASSWORD = "password123"

ADMIN_ID = 1
APPROVER_ID = 2
APPLICANT_ID = 3
NO_MANAGER_ID = 4
SALES_APPROVER_ID = 5
SALES_APPLICANT_ID = 6
CAREGIVER_ID = 7
INACTIVATED_ID = 8


class InMemoryUsers:
    def __init__(self, users: list[User]):
        self.users: dict[int, User] = {u.user_id: u for u in users}
        self._id = max(self.users, default=0)

    def get_by_id(self, user_id: int) -> Optional[User]:
        return self.users.get(int(user_id))

    def get_by_email(self, email: str) -> Optional[User]:
        return next((u for u in self.users.values() if u.email == email), None)

    def get_by_employee_number(self, employee_number: str) -> Optional[User]:
        return next((u for u in self.users.values() if u.employee_number == employee_number), None)

    def create_user(self, draft: UserDraft, *, password_hash: Optional[str]) -> int:
        self._id += 1
        self.users[self._id] = User(
            user_id=self._id,
            password_hash=password_hash,
            **{k: getattr(draft, k) for k in UserDraft.__dataclass_fields__},
        )
        return self._id

    def update_user(self, user_id: int, draft: UserDraft, *, password_hash: Optional[str] = None) -> bool:
        user = self.users[user_id]
        changes = {k: getattr(draft, k) for k in UserDraft.__dataclass_fields__}
        if password_hash is not None:
            changes["password_hash"] = password_hash
        self.users[user_id] = replace(user, **changes)
        return True

    def update_profile(self, user_id, *, name, email, address, phone_number) -> bool:
        self.users[user_id] = replace(
            self.users[user_id], name=name, email=email, address=address, phone_number=phone_number
        )
        return True

    def set_password(self, user_id: int, password_hash: str) -> bool:
        self.users[user_id] = replace(self.users[user_id], password_hash=password_hash)
        return True

    def update_assignment(self, user_id, *, department_id, role, manager_id) -> bool:
        self.users[user_id] = replace(self.users[user_id], department_id=department_id, role=role, manager_id=manager_id)
        return True

    def delete_by_id(self, user_id: int) -> bool:
        return self.users.pop(int(user_id), None) is not None

    def list_all(self):
        return list(self.users.values())

    def list_by_role(self, role: Role):
        return [u for u in self.users.values() if u.role == role and u.is_active]

    def list_admin_view(self):
        return [
            {
                "id": u.user_id,
                "name": u.name,
                "email": u.email,
                "employee_number": u.employee_number,
                "role": u.role.value,
                "department_id": u.department_id,
                "manager_id": u.manager_id,
                "activated": u.is_activated,
            }
            for u in sorted(self.users.values(), key=lambda u: -u.user_id)
        ]

    def count_in_department(self, department_id: int) -> int:
        return sum(1 for u in self.users.values() if u.department_id == department_id)


class InMemoryDepartments:
    def __init__(self, departments: list[Department]):
        self.departments = {d.department_id: d for d in departments}
        self._id = max(self.departments, default=0)

    def list_all(self):
        return sorted(self.departments.values(), key=lambda d: d.department_id)

    def get_by_id(self, department_id: int):
        return self.departments.get(int(department_id))

    def get_by_name(self, name: str):
        return next((d for d in self.departments.values() if d.name == name), None)

    def create(self, name: str) -> int:
        self._id += 1
        self.departments[self._id] = Department(department_id=self._id, name=name)
        return self._id

    def rename(self, department_id: int, name: str) -> bool:
        self.departments[department_id] = Department(department_id=department_id, name=name)
        return True

    def delete(self, department_id: int) -> bool:
        return self.departments.pop(department_id, None) is not None


class InMemoryGroups:
    def __init__(self, groups: list[Group]):
        self.groups = {g.group_id: g for g in groups}
        self._id = max(self.groups, default=0)

    def list_all(self, *, department_id: Optional[int] = None):
        return [g for g in self.groups.values() if department_id is None or g.department_id == department_id]

    def get_by_id(self, group_id: int):
        return self.groups.get(int(group_id))

    def create(self, *, name: str, department_id: int) -> int:
        self._id += 1
        self.groups[self._id] = Group(group_id=self._id, name=name, department_id=department_id)
        return self._id


class InMemoryRoutes:
    def __init__(self):
        self.routes: dict[int, TransportRoute] = {}
        self._id = 0

    def list_for_user(self, user_id: int):
        return [r for r in self.routes.values() if r.user_id == user_id]

    def get_by_id(self, route_id: int):
        return self.routes.get(int(route_id))

    def create(self, *, user_id, departure_station, via_station, arrival_station, transport_type, fare) -> int:
        self._id += 1
        self.routes[self._id] = TransportRoute(
            route_id=self._id,
            user_id=user_id,
            departure_station=departure_station,
            via_station=via_station,
            arrival_station=arrival_station,
            transport_type=transport_type,
            fare=fare,
        )
        return self._id

    def delete(self, route_id: int) -> bool:
        return self.routes.pop(int(route_id), None) is not None


_STATUS_ORDER = {s: s.status_id for s in ApplicationStatus}


class InMemoryApplications:
    def __init__(self, users: InMemoryUsers, departments: InMemoryDepartments):
        self._users = users
        self._departments = departments
        self.apps: dict[int, Application] = {}
        self.approvals: list[Approval] = []
        self._id = 0

    def add(
        self,
        *,
        user_id: int,
        work_date: date,
        status=ApplicationStatus.PENDING,
        work_option=WorkOption.FULL_DAY,
        reason="focus work",
        **extra,
    ) -> int:
        """Test helper: store an application directly."""
        self._id += 1
        created = datetime(2026, 3, 1, 9, 0) + timedelta(minutes=self._id)
        self.apps[self._id] = Application(
            application_id=self._id,
            user_id=user_id,
            work_date=work_date,
            work_option=work_option,
            reason=reason,
            status=status,
            created_at=created,
            updated_at=created,
            **extra,
        )
        return self._id

    def create(self, new: NewApplication, *, weekly_limit: Optional[int] = None) -> int:
        # rechecks on the stored rows, like the locked SELECT in MySQL
        if self._active_count(new.user_id, new.work_date, new.work_date):
            raise duplicate_date_error()
        monday, sunday = week_bounds(new.work_date)
        if weekly_limit is not None and self._active_count(new.user_id, monday, sunday) >= weekly_limit:
            raise weekly_limit_error(weekly_limit)
        self._id += 1
        created = datetime(2026, 3, 1, 9, 0) + timedelta(minutes=self._id)
        self.apps[self._id] = Application(
            application_id=self._id,
            user_id=new.user_id,
            work_date=new.work_date,
            work_option=new.work_option,
            reason=new.reason,
            status=ApplicationStatus.PENDING,
            created_at=created,
            updated_at=created,
            start_time=new.start_time,
            end_time=new.end_time,
            break_minutes=new.break_minutes,
            is_special=new.is_special,
            special_reason=new.special_reason,
            is_overtime=new.is_overtime,
            overtime_reason=new.overtime_reason,
            overtime_end=new.overtime_end,
            project=new.project,
            work_hours_exceeded=new.work_hours_exceeded,
        )
        return self._id

    def get_by_id(self, application_id: int):
        return self.apps.get(int(application_id))

    def _item(self, app: Application) -> ApplicationListItem:
        user = self._users.get_by_id(app.user_id)
        dept = self._departments.get_by_id(user.department_id) if user else None
        return ApplicationListItem(
            application=app,
            user_name=user.name if user else "-",
            department_id=user.department_id if user else None,
            department_name=dept.name if dept else None,
        )

    def get_item(self, application_id: int):
        app = self.get_by_id(application_id)
        return self._item(app) if app else None

    def _active_count(self, user_id: int, start: date, end: date) -> int:
        return sum(
            1 for a in self.apps.values() if a.user_id == user_id and start <= a.work_date <= end and a.status.is_active
        )

    def exists_active_on(self, *, user_id: int, work_date: date) -> bool:
        return self._active_count(user_id, work_date, work_date) > 0

    def count_active_between(self, *, user_id: int, start: date, end: date) -> int:
        return self._active_count(user_id, start, end)

    def transition(self, *, application_id, to_status, from_status=ApplicationStatus.PENDING) -> bool:
        app = self.apps.get(int(application_id))
        if not app or app.status != from_status:
            return False
        self.apps[app.application_id] = replace(app, status=to_status)
        return True

    def _matches(self, a: Application, q: ApplicationQuery) -> bool:
        owner = self._users.get_by_id(a.user_id)
        if q.owner_id is not None and a.user_id != q.owner_id:
            return False
        if q.scope is not None:
            s = q.scope
            in_scope = (
                owner is not None
                and a.user_id != s.approver_id
                and (
                    owner.manager_id == s.approver_id
                    or (owner.manager_id is None and owner.department_id == s.department_id)
                )
            )
            if not (in_scope or (s.include_own and a.user_id == s.approver_id)):
                return False
        if q.status is not None and a.status != q.status:
            return False
        if q.applicant_id is not None and a.user_id != q.applicant_id:
            return False
        if q.date_from is not None and a.work_date < q.date_from:
            return False
        if q.date_to is not None and a.work_date > q.date_to:
            return False
        return True

    def search(self, query: ApplicationQuery):
        rows = [a for a in self.apps.values() if self._matches(a, query)]
        keys = {
            "created_at": lambda a: (a.created_at, a.application_id),
            "date": lambda a: (a.work_date, a.application_id),
            "application_status_id": lambda a: (_STATUS_ORDER[a.status], a.application_id),
        }
        rows.sort(key=keys.get(query.sort_by, keys["created_at"]), reverse=query.sort_order != "asc")
        return [self._item(a) for a in rows[: query.limit]]

    def count(self, query: ApplicationQuery) -> int:
        return sum(1 for a in self.apps.values() if self._matches(a, query))

    def record_decision(self, *, application_id, approver_id, decision, comment) -> bool:
        if not self.transition(application_id=application_id, to_status=decision.resulting_status):
            return False
        self.approvals.append(
            Approval(
                approval_id=len(self.approvals) + 1,
                application_id=application_id,
                approver_id=approver_id,
                decision=decision,
                comment=comment,
                created_at=datetime(2026, 3, 2, 10, 0),
            )
        )
        return True

    def list_approvals(self, application_id: int):
        out = []
        for a in self.approvals:
            if a.application_id != application_id:
                continue
            # approver_id is SET NULL when the approver is deleted
            approver = self._users.get_by_id(a.approver_id) if a.approver_id is not None else None
            out.append(
                replace(
                    a,
                    approver_id=approver.user_id if approver else None,
                    approver_name=approver.name if approver else None,
                )
            )
        return out


class InMemoryNotifications:
    def __init__(self):
        self.items: dict[int, Notification] = {}
        self._id = 0

    def add_many(self, *, user_ids, message, link) -> int:
        for uid in user_ids:
            self._id += 1
            self.items[self._id] = Notification(
                notification_id=self._id,
                user_id=uid,
                message=message,
                link=link,
                read=False,
                created_at=datetime(2026, 3, 1, 9, 0) + timedelta(minutes=self._id),
            )
        return len(user_ids)

    def get_by_id(self, notification_id: int):
        return self.items.get(int(notification_id))

    def list_for_user(self, *, user_id, unread_only=False, limit=200):
        items = [n for n in self.items.values() if n.user_id == user_id and not (unread_only and n.read)]
        items.sort(key=lambda n: n.created_at, reverse=True)
        return items[:limit]

    def count_unread(self, *, user_id) -> int:
        return sum(1 for n in self.items.values() if n.user_id == user_id and not n.read)

    def mark_read(self, *, notification_id, user_id) -> bool:
        n = self.items.get(notification_id)
        if not n or n.user_id != user_id:
            return False
        self.items[notification_id] = replace(n, read=True)
        return True

    def mark_all_read(self, *, user_id) -> int:
        ids = [n.notification_id for n in self.items.values() if n.user_id == user_id and not n.read]
        for nid in ids:
            self.items[nid] = replace(self.items[nid], read=True)
        return len(ids)

    def messages_for(self, user_id: int) -> list[str]:
        return [n.message for n in self.items.values() if n.user_id == user_id]


class InMemoryLogs:
    def __init__(self, users: InMemoryUsers):
        self._users = users
        self.logs: list[OperationLog] = []
        self.fail = False

    def add(self, *, user_id, action, target_type, target_id, details, ip_address) -> int:
        if self.fail:
            raise RuntimeError("log table unavailable")
        user = self._users.get_by_id(user_id) if user_id else None
        log = OperationLog(
            log_id=len(self.logs) + 1,
            user_id=user_id,
            user_name=user.name if user else None,
            action=action,
            target_type=target_type,
            target_id=target_id,
            details=details,
            ip_address=ip_address,
            created_at=datetime(2026, 3, 1, 9, 0) + timedelta(hours=len(self.logs)),
        )
        self.logs.append(log)
        return log.log_id

    def search(self, query: LogQuery):
        rows = [
            log
            for log in self.logs
            if (query.action is None or log.action == query.action.value)
            and (query.user_id is None or log.user_id == query.user_id)
            and (query.start_date is None or log.created_at.date() >= query.start_date)
            and (query.end_date is None or log.created_at.date() <= query.end_date)
        ]
        rows.sort(key=lambda log: (log.created_at, log.log_id), reverse=True)
        return rows[query.offset : query.offset + query.per_page], len(rows)

    def actions(self) -> list[str]:
        return [log.action for log in self.logs]


class InMemoryPersonnelChanges:
    def __init__(self):
        self.changes: dict[int, PersonnelChange] = {}
        self._id = 0

    def create(self, **fields) -> int:
        self._id += 1
        self.changes[self._id] = PersonnelChange(change_id=self._id, created_at=datetime(2026, 3, 1, 9, 0), **fields)
        return self._id

    def get_by_id(self, change_id: int):
        return self.changes.get(int(change_id))

    def list_admin_view(self):
        items = sorted(self.changes.values(), key=lambda c: (c.is_applied, c.effective_date, c.change_id))
        return [
            {"id": c.change_id, "user_id": c.user_id, "effective_date": c.effective_date.isoformat(), "applied": c.is_applied}
            for c in items
        ]

    def list_due(self, *, today: date):
        due = [c for c in self.changes.values() if not c.is_applied and c.effective_date <= today]
        return sorted(due, key=lambda c: (c.effective_date, c.change_id))

    def mark_applied(self, change_id: int) -> bool:
        c = self.changes.get(change_id)
        if not c or c.is_applied:
            return False
        self.changes[change_id] = replace(c, applied_at=datetime(2026, 3, 10, 0, 0))
        return True

    def delete_unapplied(self, change_id: int) -> bool:
        c = self.changes.get(change_id)
        if not c or c.is_applied:
            return False
        del self.changes[change_id]
        return True


class InMemoryAnalytics:
    def __init__(self, users: InMemoryUsers, departments: InMemoryDepartments, groups: InMemoryGroups, apps: InMemoryApplications):
        self._users = users
        self._departments = departments
        self._groups = groups
        self._apps = apps

    def _counted(self):
        return [a for a in self._apps.apps.values() if a.status != ApplicationStatus.CANCELLED]

    def count_users(self) -> int:
        return sum(1 for u in self._users.users.values() if u.is_active)

    def users_by_department(self):
        return [
            {"id": d.department_id, "name": d.name, "count": self._users.count_in_department(d.department_id)}
            for d in self._departments.list_all()
        ]

    def users_by_group(self):
        return [
            {"name": g.name, "count": sum(1 for u in self._users.users.values() if u.group_id == g.group_id)}
            for g in self._groups.list_all()
        ]

    def applications_by_option(self):
        out: dict[str, int] = {}
        for a in self._counted():
            out[a.work_option.value] = out.get(a.work_option.value, 0) + 1
        return out

    def monthly_counts(self, *, start, end, department_id=None):
        out: dict[str, int] = {}
        for a in self._counted():
            user = self._users.get_by_id(a.user_id)
            if not (start <= a.work_date < end):
                continue
            if department_id is not None and (not user or user.department_id != department_id):
                continue
            key = a.work_date.strftime("%Y-%m")
            out[key] = out.get(key, 0) + 1
        return out

    def weekday_counts(self):
        out: dict[int, int] = {}
        for a in self._counted():
            out[a.work_date.weekday()] = out.get(a.work_date.weekday(), 0) + 1
        return out

    def department_counts(self, *, start, end):
        out: dict[int, int] = {}
        for a in self._counted():
            user = self._users.get_by_id(a.user_id)
            if user and start <= a.work_date < end:
                out[user.department_id] = out.get(user.department_id, 0) + 1
        return out

    def status_counts(self, *, user_id):
        out: dict[str, int] = {}
        for a in self._apps.apps.values():
            if a.user_id == user_id:
                out[a.status.value] = out.get(a.status.value, 0) + 1
        return out


def _user(user_id, name, role, department_id, *, manager_id=None, activated=True, **extra) -> User:
    return User(
        user_id=user_id,
        name=name,
        email=f"user{user_id}@example.com",
        employee_number=f"E{user_id:04d}",
        password_hash=_PASSWORD_HASH if activated else None,
        role=role,
        department_id=department_id,
        manager_id=manager_id,
        **extra,
    )


_PASSWORD_HASH = generate_password_hash(PASSWORD)


@pytest.fixture
def fixed_now() -> datetime:
    # Tuesday
    return datetime(2026, 3, 10, 10, 0, 0)


@pytest.fixture
def repos() -> dict:
    departments = InMemoryDepartments(
        [
            Department(department_id=1, name="総務部"),
            Department(department_id=2, name="開発部"),
            Department(department_id=3, name="営業部"),
            Department(department_id=4, name="人事部"),
        ]
    )
    groups = InMemoryGroups([Group(group_id=1, name="バックエンド", department_id=2)])
    users = InMemoryUsers(
        [
            _user(ADMIN_ID, "Admin", Role.ADMIN, 1),
            _user(APPROVER_ID, "Approver", Role.APPROVER, 2),
            _user(APPLICANT_ID, "Applicant", Role.APPLICANT, 2, manager_id=APPROVER_ID, group_id=1),
            _user(NO_MANAGER_ID, "No Manager", Role.APPLICANT, 2),
            _user(SALES_APPROVER_ID, "Sales Approver", Role.APPROVER, 3),
            _user(SALES_APPLICANT_ID, "Sales Applicant", Role.APPLICANT, 3),
            _user(CAREGIVER_ID, "Caregiver", Role.APPLICANT, 2, manager_id=APPROVER_ID, is_caregiver=True),
            _user(INACTIVATED_ID, "Newcomer", Role.APPLICANT, 2, activated=False),
        ]
    )
    applications = InMemoryApplications(users, departments)
    return {
        "users_repo": users,
        "departments_repo": departments,
        "groups_repo": groups,
        "routes_repo": InMemoryRoutes(),
        "applications_repo": applications,
        "notifications_repo": InMemoryNotifications(),
        "logs_repo": InMemoryLogs(users),
        "changes_repo": InMemoryPersonnelChanges(),
        "analytics_repo": InMemoryAnalytics(users, departments, groups, applications),
    }


@pytest.fixture
def container(repos):
    return wire(**repos, weekly_limit=3, special_cutoff_hour=18)


@pytest.fixture
def app(container):
    return create_app(container=container, settings_module="config.testing")


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def login(client, repos):
    """Put a user into the session without going through /auth/sign_in."""

    def _login(user_id: int):
        user = repos["users_repo"].get_by_id(user_id)
        with client.session_transaction() as sess:
            sess["user_id"] = user.user_id
            sess["role"] = user.role.value
            sess["name"] = user.name
        return client

    return _login
