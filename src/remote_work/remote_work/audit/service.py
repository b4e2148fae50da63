from __future__ import annotations

import logging
from typing import Optional

from ..common.datetime_utils import parse_optional_date
from ..common.validators import parse_int
from ..core.constants import DEFAULT_LOG_PAGE_SIZE, MAX_LOG_PAGE_SIZE
from ..core.enums import OperationAction, Role
from ..core.exceptions import AuthorizationError, ValidationError
from .model import LogQuery
from .repository import OperationLogRepository

logger = logging.getLogger(__name__)


class AuditService:
    """Use case: write and browse the operation log."""

    def __init__(self, logs: OperationLogRepository):
        self._logs = logs

    def record(
        self,
        *,
        user_id: Optional[int],
        action: OperationAction,
        target_type: Optional[str] = None,
        target_id: Optional[int] = None,
        details: Optional[str] = None,
        ip_address: Optional[str] = None,
    ) -> None:
        """Append one log row. A failing write must not undo the operation being logged."""
        try:
            self._logs.add(
                user_id=user_id,
                action=action.value,
                target_type=target_type,
                target_id=target_id,
                details=details,
                ip_address=ip_address,
            )
        except Exception:
            logger.warning("Could not write operation log action=%s user_id=%s", action.value, user_id, exc_info=True)

    def build_query(
        self,
        *,
        action_type: Optional[str] = None,
        user_id=None,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
        page=None,
        per_page=None,
    ) -> LogQuery:
        action = None
        if action_type:
            try:
                action = OperationAction(action_type.strip())
            except ValueError:
                raise ValidationError(f"Unknown action type: {action_type}")

        start = parse_optional_date(start_date, "start_date")
        end = parse_optional_date(end_date, "end_date")
        if start and end and start > end:
            raise ValidationError("start_date must not be after end_date")

        page_n = parse_int(page, "page", minimum=1, allow_none=True) or 1
        size = parse_int(per_page, "per_page", minimum=1, allow_none=True) or DEFAULT_LOG_PAGE_SIZE
        if size > MAX_LOG_PAGE_SIZE:
            raise ValidationError(f"per_page must be <= {MAX_LOG_PAGE_SIZE}")

        return LogQuery(
            action=action,
            user_id=parse_int(user_id, "user_id", allow_none=True),
            start_date=start,
            end_date=end,
            page=page_n,
            per_page=size,
        )

    def list_logs(self, *, current_role: Role, query: LogQuery) -> dict:
        if current_role != Role.ADMIN:
            raise AuthorizationError("Only administrators can view operation logs")

        logs, total = self._logs.search(query)
        return {
            "logs": [
                {
                    "id": log.log_id,
                    "user_id": log.user_id,
                    "user_name": log.user_name or "-",
                    "action": log.action,
                    "target_type": log.target_type,
                    "target_id": log.target_id,
                    "details": log.details or "",
                    "ip_address": log.ip_address or "",
                    "created_at": log.created_at.strftime("%Y-%m-%d %H:%M:%S"),
                }
                for log in logs
            ],
            "total": total,
            "page": query.page,
            "per_page": query.per_page,
        }
