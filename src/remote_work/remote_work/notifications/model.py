from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class Notification:
    notification_id: int
    user_id: int
    message: str
    link: str
    read: bool
    created_at: datetime

    def to_dict(self) -> dict:
        return {
            "id": self.notification_id,
            "message": self.message,
            "link": self.link,
            "read": self.read,
            "created_at": self.created_at.strftime("%Y-%m-%d %H:%M"),
        }
