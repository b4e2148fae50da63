from __future__ import annotations

from datetime import timedelta
from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import build_where, db_cursor, fetch_count, fetchall
from .model import LogQuery, OperationLog
from .repository import OperationLogRepository


class MySQLOperationLogRepository(OperationLogRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def add(
        self,
        *,
        user_id: Optional[int],
        action: str,
        target_type: Optional[str],
        target_id: Optional[int],
        details: Optional[str],
        ip_address: Optional[str],
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO operation_logs(user_id, action, target_type, target_id, details, ip_address)
                VALUES(%s,%s,%s,%s,%s,%s)
                """,
                (user_id, action, target_type, target_id, details, ip_address),
            )
            return int(cur.lastrowid)

    def search(self, query: LogQuery) -> tuple[Sequence[OperationLog], int]:
        clauses: list[str] = []
        params: list[object] = []

        if query.action is not None:
            clauses.append("l.action=%s")
            params.append(query.action.value)
        if query.user_id is not None:
            clauses.append("l.user_id=%s")
            params.append(int(query.user_id))
        if query.start_date is not None:
            clauses.append("l.created_at >= %s")
            params.append(query.start_date)
        if query.end_date is not None:
            clauses.append("l.created_at < %s")
            params.append(query.end_date + timedelta(days=1))

        where = build_where(clauses)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT COUNT(*) AS n FROM operation_logs l WHERE {where}", tuple(params))
            total = fetch_count(cur)

            cur.execute(
                f"""
                SELECT l.log_id, l.user_id, u.name AS user_name, l.action, l.target_type,
                       l.target_id, l.details, l.ip_address, l.created_at
                FROM operation_logs l
                LEFT JOIN users u ON u.user_id = l.user_id
                WHERE {where}
                ORDER BY l.created_at DESC, l.log_id DESC
                LIMIT %s OFFSET %s
                """,
                tuple(params + [int(query.per_page), int(query.offset)]),
            )
            logs = [
                OperationLog(
                    log_id=int(r["log_id"]),
                    user_id=r.get("user_id"),
                    user_name=r.get("user_name"),
                    action=r["action"],
                    target_type=r.get("target_type"),
                    target_id=r.get("target_id"),
                    details=r.get("details"),
                    ip_address=r.get("ip_address"),
                    created_at=r["created_at"],
                )
                for r in fetchall(cur)
            ]
            return logs, total
