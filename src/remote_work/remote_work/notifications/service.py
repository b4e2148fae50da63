from __future__ import annotations

import logging
from typing import Iterable

from ..core.constants import DEFAULT_LIST_LIMIT
from ..core.exceptions import NotFoundError
from .repository import NotificationRepository

logger = logging.getLogger(__name__)


class NotificationService:
    """Use case: in-app notifications (no push delivery)."""

    def __init__(self, notifications: NotificationRepository):
        self._notifications = notifications

    def notify(self, user_ids: Iterable[int], message: str, link: str = "") -> int:
        recipients = sorted({int(uid) for uid in user_ids})
        if not recipients:
            return 0
        n = self._notifications.add_many(user_ids=recipients, message=message, link=link)
        logger.info("Notified %d user(s): %s", n, message)
        return n

    def list_for_user(self, *, user_id: int, unread_only: bool = False) -> list[dict]:
        items = self._notifications.list_for_user(user_id=user_id, unread_only=unread_only, limit=DEFAULT_LIST_LIMIT)
        return [n.to_dict() for n in items]

    def unread_count(self, *, user_id: int) -> int:
        return self._notifications.count_unread(user_id=user_id)

    def mark_read(self, *, user_id: int, notification_id: int) -> None:
        n = self._notifications.get_by_id(notification_id)
        if not n or n.user_id != user_id:
            raise NotFoundError("Notification not found")
        self._notifications.mark_read(notification_id=notification_id, user_id=user_id)

    def mark_all_read(self, *, user_id: int) -> int:
        return self._notifications.mark_all_read(user_id=user_id)
