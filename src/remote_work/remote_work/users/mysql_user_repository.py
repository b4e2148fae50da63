from __future__ import annotations

from typing import Optional, Sequence

from ..core.enums import Role
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetch_count, fetchall, fetchone, normalize_mysql_date
from .model import User, UserDraft
from .repository import UserRepository

_USER_COLUMNS = """
    user_id, name, email, employee_number, password_hash, role, department_id,
    group_id, manager_id, position, hired_date, is_caregiver,
    has_child_under_elementary, address, phone_number, is_active
"""


def _to_user(row: dict) -> User:
    return User(
        user_id=int(row["user_id"]),
        name=row["name"],
        email=row["email"],
        employee_number=row["employee_number"],
        password_hash=row.get("password_hash"),
        role=Role(row["role"]),
        department_id=int(row["department_id"]),
        group_id=row.get("group_id"),
        manager_id=row.get("manager_id"),
        position=row.get("position"),
        hired_date=normalize_mysql_date(row.get("hired_date")),
        is_caregiver=bool(row.get("is_caregiver")),
        has_child_under_elementary=bool(row.get("has_child_under_elementary")),
        address=row.get("address"),
        phone_number=row.get("phone_number"),
        is_active=bool(row.get("is_active", True)),
    )


class MySQLUserRepository(UserRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _get_one(self, column: str, value) -> Optional[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_USER_COLUMNS} FROM users WHERE {column}=%s", (value,))
            row = fetchone(cur)
            return _to_user(row) if row else None

    def get_by_id(self, user_id: int) -> Optional[User]:
        return self._get_one("user_id", int(user_id))

    def get_by_email(self, email: str) -> Optional[User]:
        return self._get_one("email", email)

    def get_by_employee_number(self, employee_number: str) -> Optional[User]:
        return self._get_one("employee_number", employee_number)

    def create_user(self, draft: UserDraft, *, password_hash: Optional[str]) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO users(
                    name, email, employee_number, password_hash, role, department_id,
                    group_id, manager_id, position, hired_date,
                    is_caregiver, has_child_under_elementary, is_active
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,1)
                """,
                (
                    draft.name,
                    draft.email,
                    draft.employee_number,
                    password_hash,
                    draft.role.value,
                    int(draft.department_id),
                    draft.group_id,
                    draft.manager_id,
                    draft.position,
                    draft.hired_date,
                    int(draft.is_caregiver),
                    int(draft.has_child_under_elementary),
                ),
            )
            return int(cur.lastrowid)

    def update_user(self, user_id: int, draft: UserDraft, *, password_hash: Optional[str] = None) -> bool:
        sets = [
            "name=%s",
            "email=%s",
            "employee_number=%s",
            "role=%s",
            "department_id=%s",
            "group_id=%s",
            "manager_id=%s",
            "position=%s",
            "hired_date=%s",
            "is_caregiver=%s",
            "has_child_under_elementary=%s",
        ]
        params: list[object] = [
            draft.name,
            draft.email,
            draft.employee_number,
            draft.role.value,
            int(draft.department_id),
            draft.group_id,
            draft.manager_id,
            draft.position,
            draft.hired_date,
            int(draft.is_caregiver),
            int(draft.has_child_under_elementary),
        ]
        if password_hash is not None:
            sets.append("password_hash=%s")
            params.append(password_hash)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"UPDATE users SET {', '.join(sets)} WHERE user_id=%s",
                tuple(params + [int(user_id)]),
            )
            # MySQL reports 0 affected rows when nothing changed; existence is checked by the service.
            return cur.rowcount >= 0

    def update_profile(
        self,
        user_id: int,
        *,
        name: str,
        email: str,
        address: Optional[str],
        phone_number: Optional[str],
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE users SET name=%s, email=%s, address=%s, phone_number=%s
                WHERE user_id=%s
                """,
                (name, email, address, phone_number, int(user_id)),
            )
            return cur.rowcount >= 0

    def set_password(self, user_id: int, password_hash: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE users SET password_hash=%s WHERE user_id=%s",
                (password_hash, int(user_id)),
            )
            return cur.rowcount > 0

    def update_assignment(
        self,
        user_id: int,
        *,
        department_id: int,
        role: Role,
        manager_id: Optional[int],
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE users SET department_id=%s, role=%s, manager_id=%s WHERE user_id=%s",
                (int(department_id), role.value, manager_id, int(user_id)),
            )
            return cur.rowcount >= 0

    def delete_by_id(self, user_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM users WHERE user_id=%s", (int(user_id),))
            return cur.rowcount > 0

    def list_all(self) -> Sequence[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_USER_COLUMNS} FROM users ORDER BY user_id")
            return [_to_user(r) for r in fetchall(cur)]

    def list_by_role(self, role: Role) -> Sequence[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_USER_COLUMNS} FROM users WHERE role=%s AND is_active=1 ORDER BY user_id",
                (role.value,),
            )
            return [_to_user(r) for r in fetchall(cur)]

    def list_admin_view(self) -> Sequence[dict]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT u.user_id, u.name, u.email, u.employee_number, u.role,
                       u.department_id, d.name AS department_name,
                       u.group_id, g.name AS group_name,
                       u.manager_id, m.name AS manager_name,
                       u.position, u.hired_date, u.is_caregiver,
                       u.has_child_under_elementary, u.password_hash IS NOT NULL AS activated
                FROM users u
                LEFT JOIN departments d ON d.department_id = u.department_id
                LEFT JOIN user_groups g ON g.group_id = u.group_id
                LEFT JOIN users m ON m.user_id = u.manager_id
                ORDER BY u.user_id DESC
                """
            )
            out: list[dict] = []
            for r in fetchall(cur):
                hired = normalize_mysql_date(r.get("hired_date"))
                out.append(
                    {
                        "id": int(r["user_id"]),
                        "name": r["name"],
                        "email": r["email"],
                        "employee_number": r["employee_number"],
                        "role": r["role"],
                        "department_id": r.get("department_id"),
                        "department_name": r.get("department_name") or "-",
                        "group_id": r.get("group_id"),
                        "group_name": r.get("group_name") or "-",
                        "manager_id": r.get("manager_id"),
                        "manager_name": r.get("manager_name") or "-",
                        "position": r.get("position") or "",
                        "hired_date": hired.isoformat() if hired else None,
                        "is_caregiver": bool(r.get("is_caregiver")),
                        "has_child_under_elementary": bool(r.get("has_child_under_elementary")),
                        "activated": bool(r.get("activated")),
                    }
                )
            return out

    def count_in_department(self, department_id: int) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT COUNT(*) AS n FROM users WHERE department_id=%s",
                (int(department_id),),
            )
            return fetch_count(cur)
