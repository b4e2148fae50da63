from __future__ import annotations

from datetime import date
from typing import Optional, Sequence

from ..core.enums import ApplicationStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetch_count, fetchall
from .repository import AnalyticsRepository

_CANCELLED = ApplicationStatus.CANCELLED.value


class MySQLAnalyticsRepository(AnalyticsRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def count_users(self) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT COUNT(*) AS n FROM users WHERE is_active=1")
            return fetch_count(cur)

    def users_by_department(self) -> Sequence[dict]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT d.department_id, d.name, COUNT(u.user_id) AS n
                FROM departments d
                LEFT JOIN users u ON u.department_id = d.department_id AND u.is_active=1
                GROUP BY d.department_id, d.name
                ORDER BY d.department_id
                """
            )
            return [
                {"id": int(r["department_id"]), "name": r["name"], "count": int(r["n"])}
                for r in fetchall(cur)
            ]

    def users_by_group(self) -> Sequence[dict]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT g.name, COUNT(u.user_id) AS n
                FROM user_groups g
                LEFT JOIN users u ON u.group_id = g.group_id AND u.is_active=1
                GROUP BY g.group_id, g.name
                ORDER BY g.group_id
                """
            )
            return [{"name": r["name"], "count": int(r["n"])} for r in fetchall(cur)]

    def applications_by_option(self) -> dict[str, int]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT work_option, COUNT(*) AS n FROM applications WHERE status<>%s GROUP BY work_option",
                (_CANCELLED,),
            )
            return {r["work_option"]: int(r["n"]) for r in fetchall(cur)}

    def monthly_counts(self, *, start: date, end: date, department_id: Optional[int] = None) -> dict[str, int]:
        sql = """
            SELECT DATE_FORMAT(a.work_date, '%%Y-%%m') AS month, COUNT(*) AS n
            FROM applications a
            JOIN users u ON u.user_id = a.user_id
            WHERE a.status<>%s AND a.work_date >= %s AND a.work_date < %s
        """
        params: list[object] = [_CANCELLED, start, end]
        if department_id is not None:
            sql += " AND u.department_id=%s"
            params.append(int(department_id))
        sql += " GROUP BY month"

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(params))
            return {r["month"]: int(r["n"]) for r in fetchall(cur)}

    def weekday_counts(self) -> dict[int, int]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT WEEKDAY(work_date) AS wd, COUNT(*) AS n
                FROM applications WHERE status<>%s
                GROUP BY wd
                """,
                (_CANCELLED,),
            )
            return {int(r["wd"]): int(r["n"]) for r in fetchall(cur)}

    def department_counts(self, *, start: date, end: date) -> dict[int, int]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT u.department_id, COUNT(*) AS n
                FROM applications a
                JOIN users u ON u.user_id = a.user_id
                WHERE a.status<>%s AND a.work_date >= %s AND a.work_date < %s
                GROUP BY u.department_id
                """,
                (_CANCELLED, start, end),
            )
            return {int(r["department_id"]): int(r["n"]) for r in fetchall(cur)}

    def status_counts(self, *, user_id: int) -> dict[str, int]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT status, COUNT(*) AS n FROM applications WHERE user_id=%s GROUP BY status",
                (int(user_id),),
            )
            return {r["status"]: int(r["n"]) for r in fetchall(cur)}
