from __future__ import annotations

from datetime import date
from typing import Optional, Sequence

from ..common.datetime_utils import week_bounds
from ..core.enums import ApplicationStatus, ApprovalDecision, WorkOption
from ..database.connection import DatabaseConnection
from ..database.mysql_base import (
    build_where,
    db_cursor,
    fetch_count,
    fetchall,
    fetchone,
    normalize_mysql_date,
    normalize_mysql_time,
    placeholders,
)
from .model import Application, ApplicationListItem, ApplicationQuery, Approval, NewApplication
from .repository import ApplicationRepository, duplicate_date_error, weekly_limit_error

_SELECT_ITEM = """
    SELECT a.application_id, a.user_id, a.work_date, a.work_option, a.start_time, a.end_time,
           a.break_minutes, a.reason, a.is_special, a.special_reason, a.is_overtime,
           a.overtime_reason, a.overtime_end, a.project, a.status, a.work_hours_exceeded,
           a.created_at, a.updated_at,
           u.name AS user_name, u.department_id, d.name AS department_name
    FROM applications a
    JOIN users u ON u.user_id = a.user_id
    LEFT JOIN departments d ON d.department_id = u.department_id
"""

_SORT_COLUMNS = {
    "created_at": "a.created_at",
    "date": "a.work_date",
    "application_status_id": "FIELD(a.status, 'pending', 'approved', 'rejected', 'cancelled')",
}

_ACTIVE = (ApplicationStatus.PENDING.value, ApplicationStatus.APPROVED.value)
_ACTIVE_IN = f"IN ({placeholders(len(_ACTIVE))})"


def _to_application(r: dict) -> Application:
    return Application(
        application_id=int(r["application_id"]),
        user_id=int(r["user_id"]),
        work_date=normalize_mysql_date(r["work_date"]),
        work_option=WorkOption(r["work_option"]),
        reason=r["reason"],
        status=ApplicationStatus(r["status"]),
        created_at=r["created_at"],
        updated_at=r["updated_at"],
        start_time=normalize_mysql_time(r.get("start_time")),
        end_time=normalize_mysql_time(r.get("end_time")),
        break_minutes=r.get("break_minutes"),
        is_special=bool(r.get("is_special")),
        special_reason=r.get("special_reason"),
        is_overtime=bool(r.get("is_overtime")),
        overtime_reason=r.get("overtime_reason"),
        overtime_end=normalize_mysql_time(r.get("overtime_end")),
        project=r.get("project"),
        work_hours_exceeded=bool(r.get("work_hours_exceeded")),
    )


def _to_item(r: dict) -> ApplicationListItem:
    return ApplicationListItem(
        application=_to_application(r),
        user_name=r.get("user_name") or "-",
        department_id=r.get("department_id"),
        department_name=r.get("department_name"),
    )


def _where(query: ApplicationQuery) -> tuple[str, list[object]]:
    clauses: list[str] = []
    params: list[object] = []

    if query.owner_id is not None:
        clauses.append("a.user_id=%s")
        params.append(int(query.owner_id))
    if query.scope is not None:
        s = query.scope
        in_scope = "((u.manager_id=%s OR (u.manager_id IS NULL AND u.department_id=%s)) AND a.user_id<>%s)"
        scope_params: list[object] = [s.approver_id, s.department_id, s.approver_id]
        if s.include_own:
            in_scope = f"({in_scope} OR a.user_id=%s)"
            scope_params.append(s.approver_id)
        clauses.append(in_scope)
        params.extend(scope_params)
    if query.status is not None:
        clauses.append("a.status=%s")
        params.append(query.status.value)
    if query.applicant_id is not None:
        clauses.append("a.user_id=%s")
        params.append(int(query.applicant_id))
    if query.date_from is not None:
        clauses.append("a.work_date >= %s")
        params.append(query.date_from)
    if query.date_to is not None:
        clauses.append("a.work_date <= %s")
        params.append(query.date_to)

    return build_where(clauses), params


class MySQLApplicationRepository(ApplicationRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create(self, new: NewApplication, *, weekly_limit: Optional[int] = None) -> int:
        monday, sunday = week_bounds(new.work_date)
        with db_cursor(self._conn_factory) as (_, cur):
            # the user row lock serializes one user's submissions until commit
            cur.execute("SELECT user_id FROM users WHERE user_id=%s FOR UPDATE", (int(new.user_id),))
            fetchone(cur)

            cur.execute(
                f"""
                SELECT
                    SUM(work_date=%s) AS same_day,
                    SUM(work_date BETWEEN %s AND %s) AS same_week
                FROM applications
                WHERE user_id=%s AND status {_ACTIVE_IN}
                """,
                (new.work_date, monday, sunday, int(new.user_id), *_ACTIVE),
            )
            taken = fetchone(cur) or {}
            if int(taken.get("same_day") or 0) > 0:
                raise duplicate_date_error()
            if weekly_limit is not None and int(taken.get("same_week") or 0) >= weekly_limit:
                raise weekly_limit_error(weekly_limit)

            cur.execute(
                """
                INSERT INTO applications(
                    user_id, work_date, work_option, start_time, end_time, break_minutes,
                    reason, is_special, special_reason, is_overtime, overtime_reason,
                    overtime_end, project, status, work_hours_exceeded
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    int(new.user_id),
                    new.work_date,
                    new.work_option.value,
                    new.start_time,
                    new.end_time,
                    new.break_minutes,
                    new.reason,
                    int(new.is_special),
                    new.special_reason,
                    int(new.is_overtime),
                    new.overtime_reason,
                    new.overtime_end,
                    new.project,
                    ApplicationStatus.PENDING.value,
                    int(new.work_hours_exceeded),
                ),
            )
            return int(cur.lastrowid)

    def get_by_id(self, application_id: int) -> Optional[Application]:
        item = self.get_item(application_id)
        return item.application if item else None

    def get_item(self, application_id: int) -> Optional[ApplicationListItem]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_SELECT_ITEM + " WHERE a.application_id=%s", (int(application_id),))
            r = fetchone(cur)
            return _to_item(r) if r else None

    def exists_active_on(self, *, user_id: int, work_date: date) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT 1 FROM applications
                WHERE user_id=%s AND work_date=%s AND status {_ACTIVE_IN}
                LIMIT 1
                """,
                (int(user_id), work_date, *_ACTIVE),
            )
            return fetchone(cur) is not None

    def count_active_between(self, *, user_id: int, start: date, end: date) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT COUNT(*) AS n FROM applications
                WHERE user_id=%s AND work_date BETWEEN %s AND %s AND status {_ACTIVE_IN}
                """,
                (int(user_id), start, end, *_ACTIVE),
            )
            return fetch_count(cur)

    def transition(
        self,
        *,
        application_id: int,
        to_status: ApplicationStatus,
        from_status: ApplicationStatus = ApplicationStatus.PENDING,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE applications SET status=%s WHERE application_id=%s AND status=%s",
                (to_status.value, int(application_id), from_status.value),
            )
            return cur.rowcount > 0

    def search(self, query: ApplicationQuery) -> Sequence[ApplicationListItem]:
        where, params = _where(query)
        column = _SORT_COLUMNS.get(query.sort_by, _SORT_COLUMNS["created_at"])
        direction = "ASC" if query.sort_order == "asc" else "DESC"

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"{_SELECT_ITEM} WHERE {where} ORDER BY {column} {direction}, a.application_id {direction} LIMIT %s",
                tuple(params + [int(query.limit)]),
            )
            return [_to_item(r) for r in fetchall(cur)]

    def count(self, query: ApplicationQuery) -> int:
        where, params = _where(query)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT COUNT(*) AS n
                FROM applications a
                JOIN users u ON u.user_id = a.user_id
                WHERE {where}
                """,
                tuple(params),
            )
            return fetch_count(cur)

    def record_decision(
        self,
        *,
        application_id: int,
        approver_id: int,
        decision: ApprovalDecision,
        comment: Optional[str],
    ) -> bool:
        # one transaction: a failed INSERT rolls the status back
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE applications SET status=%s WHERE application_id=%s AND status=%s",
                (decision.resulting_status.value, int(application_id), ApplicationStatus.PENDING.value),
            )
            if cur.rowcount == 0:
                return False
            cur.execute(
                """
                INSERT INTO approvals(application_id, approver_id, decision, comment)
                VALUES(%s,%s,%s,%s)
                """,
                (int(application_id), int(approver_id), decision.value, comment),
            )
            return True

    def list_approvals(self, application_id: int) -> Sequence[Approval]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT p.approval_id, p.application_id, p.approver_id, p.decision,
                       p.comment, p.created_at, u.name AS approver_name
                FROM approvals p
                LEFT JOIN users u ON u.user_id = p.approver_id
                WHERE p.application_id=%s
                ORDER BY p.created_at, p.approval_id
                """,
                (int(application_id),),
            )
            return [
                Approval(
                    approval_id=int(r["approval_id"]),
                    application_id=int(r["application_id"]),
                    approver_id=int(r["approver_id"]) if r.get("approver_id") is not None else None,
                    decision=ApprovalDecision(r["decision"]),
                    comment=r.get("comment"),
                    created_at=r["created_at"],
                    approver_name=r.get("approver_name"),
                )
                for r in fetchall(cur)
            ]
