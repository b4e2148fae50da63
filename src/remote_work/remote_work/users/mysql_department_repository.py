from __future__ import annotations

from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .department_model import Department, Group
from .department_repository import DepartmentRepository, GroupRepository


class MySQLDepartmentRepository(DepartmentRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_all(self) -> Sequence[Department]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT department_id, name FROM departments ORDER BY department_id")
            rows = fetchall(cur)
            return [Department(department_id=int(r["department_id"]), name=r["name"]) for r in rows]

    def get_by_id(self, department_id: int) -> Optional[Department]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT department_id, name FROM departments WHERE department_id=%s",
                (int(department_id),),
            )
            r = fetchone(cur)
            return Department(department_id=int(r["department_id"]), name=r["name"]) if r else None

    def get_by_name(self, name: str) -> Optional[Department]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT department_id, name FROM departments WHERE name=%s", (name,))
            r = fetchone(cur)
            return Department(department_id=int(r["department_id"]), name=r["name"]) if r else None

    def create(self, name: str) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("INSERT INTO departments(name) VALUES(%s)", (name,))
            return int(cur.lastrowid)

    def rename(self, department_id: int, name: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE departments SET name=%s WHERE department_id=%s",
                (name, int(department_id)),
            )
            return cur.rowcount >= 0

    def delete(self, department_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM user_groups WHERE department_id=%s", (int(department_id),))
            cur.execute("DELETE FROM departments WHERE department_id=%s", (int(department_id),))
            return cur.rowcount > 0


class MySQLGroupRepository(GroupRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_all(self, *, department_id: Optional[int] = None) -> Sequence[Group]:
        sql = "SELECT group_id, name, department_id FROM user_groups"
        params: tuple = ()
        if department_id is not None:
            sql += " WHERE department_id=%s"
            params = (int(department_id),)
        sql += " ORDER BY group_id"

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, params)
            return [
                Group(group_id=int(r["group_id"]), name=r["name"], department_id=int(r["department_id"]))
                for r in fetchall(cur)
            ]

    def get_by_id(self, group_id: int) -> Optional[Group]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT group_id, name, department_id FROM user_groups WHERE group_id=%s",
                (int(group_id),),
            )
            r = fetchone(cur)
            if not r:
                return None
            return Group(group_id=int(r["group_id"]), name=r["name"], department_id=int(r["department_id"]))

    def create(self, *, name: str, department_id: int) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "INSERT INTO user_groups(name, department_id) VALUES(%s,%s)",
                (name, int(department_id)),
            )
            return int(cur.lastrowid)
