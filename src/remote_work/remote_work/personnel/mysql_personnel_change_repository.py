from __future__ import annotations

from datetime import date
from typing import Optional, Sequence

from ..core.enums import Role
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, normalize_mysql_date
from .model import PersonnelChange
from .repository import PersonnelChangeRepository

_COLUMNS = """
    c.change_id, c.user_id, c.old_department_id, c.new_department_id, c.old_role, c.new_role,
    c.new_manager_id, c.effective_date, c.applied_at, c.created_by, c.created_at
"""


def _to_change(r: dict) -> PersonnelChange:
    return PersonnelChange(
        change_id=int(r["change_id"]),
        user_id=int(r["user_id"]),
        effective_date=normalize_mysql_date(r["effective_date"]),
        created_by=int(r["created_by"]),
        created_at=r["created_at"],
        old_department_id=r.get("old_department_id"),
        new_department_id=r.get("new_department_id"),
        old_role=Role(r["old_role"]) if r.get("old_role") else None,
        new_role=Role(r["new_role"]) if r.get("new_role") else None,
        new_manager_id=r.get("new_manager_id"),
        applied_at=r.get("applied_at"),
    )


class MySQLPersonnelChangeRepository(PersonnelChangeRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create(
        self,
        *,
        user_id: int,
        old_department_id: Optional[int],
        new_department_id: Optional[int],
        old_role: Optional[Role],
        new_role: Optional[Role],
        new_manager_id: Optional[int],
        effective_date: date,
        created_by: int,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO personnel_changes(
                    user_id, old_department_id, new_department_id, old_role, new_role,
                    new_manager_id, effective_date, created_by
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    int(user_id),
                    old_department_id,
                    new_department_id,
                    old_role.value if old_role else None,
                    new_role.value if new_role else None,
                    new_manager_id,
                    effective_date,
                    int(created_by),
                ),
            )
            return int(cur.lastrowid)

    def get_by_id(self, change_id: int) -> Optional[PersonnelChange]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM personnel_changes c WHERE c.change_id=%s", (int(change_id),))
            r = fetchone(cur)
            return _to_change(r) if r else None

    def list_admin_view(self) -> Sequence[dict]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS},
                       u.name AS user_name,
                       od.name AS old_department_name,
                       nd.name AS new_department_name,
                       m.name AS new_manager_name
                FROM personnel_changes c
                JOIN users u ON u.user_id = c.user_id
                LEFT JOIN departments od ON od.department_id = c.old_department_id
                LEFT JOIN departments nd ON nd.department_id = c.new_department_id
                LEFT JOIN users m ON m.user_id = c.new_manager_id
                ORDER BY c.applied_at IS NOT NULL, c.effective_date, c.change_id
                """
            )
            out: list[dict] = []
            for r in fetchall(cur):
                change = _to_change(r)
                out.append(
                    {
                        "id": change.change_id,
                        "user_id": change.user_id,
                        "user_name": r.get("user_name") or "-",
                        "old_department": r.get("old_department_name") or "-",
                        "new_department": r.get("new_department_name") or "-",
                        "old_role": change.old_role.value if change.old_role else None,
                        "new_role": change.new_role.value if change.new_role else None,
                        "new_manager": r.get("new_manager_name") or "-",
                        "effective_date": change.effective_date.isoformat(),
                        "applied": change.is_applied,
                        "applied_at": change.applied_at.strftime("%Y-%m-%d %H:%M") if change.applied_at else None,
                    }
                )
            return out

    def list_due(self, *, today: date) -> Sequence[PersonnelChange]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS} FROM personnel_changes c
                WHERE c.applied_at IS NULL AND c.effective_date <= %s
                ORDER BY c.effective_date, c.change_id
                """,
                (today,),
            )
            return [_to_change(r) for r in fetchall(cur)]

    def mark_applied(self, change_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE personnel_changes SET applied_at=NOW() WHERE change_id=%s AND applied_at IS NULL",
                (int(change_id),),
            )
            return cur.rowcount > 0

    def delete_unapplied(self, change_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "DELETE FROM personnel_changes WHERE change_id=%s AND applied_at IS NULL",
                (int(change_id),),
            )
            return cur.rowcount > 0
