from __future__ import annotations

import logging
from typing import Optional

from ..audit.service import AuditService
from ..common.validators import optional_text
from ..core.constants import APPROVAL_COMMENT_MAX_LENGTH, DEFAULT_LIST_LIMIT, REJECT_COMMENT_MIN_LENGTH
from ..core.enums import ApplicationStatus, ApprovalDecision, OperationAction
from ..core.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from ..notifications.service import NotificationService
from ..users.model import User
from ..users.repository import UserRepository
from .authority import has_authority, scope_for
from .model import ApplicationQuery
from .presenter import to_row
from .repository import ApplicationRepository

logger = logging.getLogger(__name__)


def _comment(value: Optional[str]) -> Optional[str]:
    text = optional_text(value)
    if text and len(text) > APPROVAL_COMMENT_MAX_LENGTH:
        raise ValidationError(f"Comment must be at most {APPROVAL_COMMENT_MAX_LENGTH} characters")
    return text


class ApprovalService:
    """Use case: approvers decide on pending applications."""

    def __init__(
        self,
        applications: ApplicationRepository,
        users: UserRepository,
        notifications: NotificationService,
        audit: AuditService,
    ):
        self._applications = applications
        self._users = users
        self._notifications = notifications
        self._audit = audit

    def _approver(self, approver_id: int) -> User:
        approver = self._users.get_by_id(approver_id)
        if not approver or not approver.is_active or not approver.role.can_approve:
            raise AuthorizationError("You do not have permission to approve applications")
        return approver

    def _pending_query(self, approver: User, *, limit: int) -> ApplicationQuery:
        return ApplicationQuery(
            scope=scope_for(approver, include_own=False),
            status=ApplicationStatus.PENDING,
            sort_by="created_at",
            sort_order="desc",
            limit=limit,
        )

    def list_pending(self, *, approver_id: int, limit: int = DEFAULT_LIST_LIMIT) -> list[dict]:
        approver = self._approver(approver_id)
        items = self._applications.search(self._pending_query(approver, limit=limit))
        return [to_row(item) for item in items]

    def pending_count(self, *, approver_id: int) -> int:
        approver = self._approver(approver_id)
        return self._applications.count(self._pending_query(approver, limit=DEFAULT_LIST_LIMIT))

    def approve(
        self,
        *,
        approver_id: int,
        application_id: int,
        comment: Optional[str] = None,
        ip_address: Optional[str] = None,
    ) -> None:
        self._decide(
            approver_id=approver_id,
            application_id=application_id,
            decision=ApprovalDecision.APPROVED,
            comment=_comment(comment),
            ip_address=ip_address,
        )

    def reject(
        self,
        *,
        approver_id: int,
        application_id: int,
        comment: Optional[str],
        ip_address: Optional[str] = None,
    ) -> None:
        text = _comment(comment)
        if not text:
            raise ValidationError("A comment is required to reject an application")
        if len(text) < REJECT_COMMENT_MIN_LENGTH:
            raise ValidationError(f"Rejection comment must be at least {REJECT_COMMENT_MIN_LENGTH} characters")

        self._decide(
            approver_id=approver_id,
            application_id=application_id,
            decision=ApprovalDecision.REJECTED,
            comment=text,
            ip_address=ip_address,
        )

    def _decide(
        self,
        *,
        approver_id: int,
        application_id: int,
        decision: ApprovalDecision,
        comment: Optional[str],
        ip_address: Optional[str],
    ) -> None:
        approver = self._approver(approver_id)
        app = self._applications.get_by_id(application_id)
        if not app:
            raise NotFoundError("Application not found")

        applicant = self._users.get_by_id(app.user_id)
        if not applicant or not has_authority(approver, applicant):
            logger.warning(
                "Refused %s on application %s by user_id=%s",
                decision.value,
                application_id,
                approver_id,
            )
            raise AuthorizationError("You are not allowed to decide on this application")

        if app.status.is_terminal:
            raise ConflictError(f"This application is already {app.status.value}")

        target = decision.resulting_status
        recorded = self._applications.record_decision(
            application_id=application_id,
            approver_id=approver.user_id,
            decision=decision,
            comment=comment,
        )
        if not recorded:
            raise ConflictError("This application has already been processed")

        logger.info("Application %s %s by user_id=%s", application_id, target.value, approver.user_id)

        message = f"Your remote work application for {app.work_date.isoformat()} was {target.value}"
        if comment:
            message += f": {comment}"
        self._notifications.notify([applicant.user_id], message, f"/applications/{application_id}")

        self._audit.record(
            user_id=approver.user_id,
            action=OperationAction.APPROVE if decision == ApprovalDecision.APPROVED else OperationAction.REJECT,
            target_type="application",
            target_id=application_id,
            details=comment,
            ip_address=ip_address,
        )
