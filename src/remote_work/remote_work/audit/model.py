from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..core.enums import OperationAction


@dataclass(frozen=True)
class OperationLog:
    log_id: int
    user_id: Optional[int]
    user_name: Optional[str]
    action: str
    target_type: Optional[str]
    target_id: Optional[int]
    details: Optional[str]
    ip_address: Optional[str]
    created_at: datetime


@dataclass(frozen=True)
class LogQuery:
    """Filters for the operation log screen; dates are inclusive."""

    action: Optional[OperationAction] = None
    user_id: Optional[int] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    page: int = 1
    per_page: int = 20

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.per_page
