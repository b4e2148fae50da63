from __future__ import annotations

from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetch_count, fetchall, fetchone
from .model import Notification
from .repository import NotificationRepository


def _to_notification(r: dict) -> Notification:
    return Notification(
        notification_id=int(r["notification_id"]),
        user_id=int(r["user_id"]),
        message=r["message"],
        link=r.get("link") or "",
        read=bool(r.get("is_read")),
        created_at=r["created_at"],
    )


class MySQLNotificationRepository(NotificationRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def add_many(self, *, user_ids: Sequence[int], message: str, link: str) -> int:
        if not user_ids:
            return 0
        with db_cursor(self._conn_factory) as (_, cur):
            cur.executemany(
                "INSERT INTO notifications(user_id, message, link, is_read) VALUES(%s,%s,%s,0)",
                [(int(uid), message, link) for uid in user_ids],
            )
            return len(user_ids)

    def get_by_id(self, notification_id: int) -> Optional[Notification]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT notification_id, user_id, message, link, is_read, created_at
                FROM notifications WHERE notification_id=%s
                """,
                (int(notification_id),),
            )
            r = fetchone(cur)
            return _to_notification(r) if r else None

    def list_for_user(self, *, user_id: int, unread_only: bool = False, limit: int = 200) -> Sequence[Notification]:
        sql = """
            SELECT notification_id, user_id, message, link, is_read, created_at
            FROM notifications
            WHERE user_id=%s
        """
        if unread_only:
            sql += " AND is_read=0"
        sql += " ORDER BY created_at DESC, notification_id DESC LIMIT %s"

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, (int(user_id), int(limit)))
            return [_to_notification(r) for r in fetchall(cur)]

    def count_unread(self, *, user_id: int) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT COUNT(*) AS n FROM notifications WHERE user_id=%s AND is_read=0",
                (int(user_id),),
            )
            return fetch_count(cur)

    def mark_read(self, *, notification_id: int, user_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE notifications SET is_read=1 WHERE notification_id=%s AND user_id=%s",
                (int(notification_id), int(user_id)),
            )
            return cur.rowcount >= 0

    def mark_all_read(self, *, user_id: int) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE notifications SET is_read=1 WHERE user_id=%s AND is_read=0",
                (int(user_id),),
            )
            return int(cur.rowcount)
