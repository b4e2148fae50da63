from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from ..core.enums import ApplicationStatus, ApprovalDecision
from ..core.exceptions import ConflictError, ValidationError
from .model import Application, ApplicationListItem, ApplicationQuery, Approval, NewApplication


def duplicate_date_error() -> ConflictError:
    return ConflictError("An application already exists for this date")


def weekly_limit_error(limit: int) -> ValidationError:
    return ValidationError(f"Weekly remote work limit ({limit}) reached")


class ApplicationRepository(Protocol):
    """Repository interface for remote-work applications and their approvals."""

    def create(self, new: NewApplication, *, weekly_limit: Optional[int] = None) -> int:
        """Insert a pending application.

        The duplicate-date and weekly-limit checks are repeated here atomically
        with the insert, so concurrent submissions of one user cannot both pass.
        `weekly_limit=None` skips the weekly check.
        """

        raise NotImplementedError

    def get_by_id(self, application_id: int) -> Optional[Application]:
        raise NotImplementedError

    def get_item(self, application_id: int) -> Optional[ApplicationListItem]:
        raise NotImplementedError

    def exists_active_on(self, *, user_id: int, work_date: date) -> bool:
        raise NotImplementedError

    def count_active_between(self, *, user_id: int, start: date, end: date) -> int:
        """Pending + approved applications with start <= work_date <= end."""

        raise NotImplementedError

    def transition(
        self,
        *,
        application_id: int,
        to_status: ApplicationStatus,
        from_status: ApplicationStatus = ApplicationStatus.PENDING,
    ) -> bool:
        """Conditional update; False when the row is no longer in `from_status`."""

        raise NotImplementedError

    def search(self, query: ApplicationQuery) -> Sequence[ApplicationListItem]:
        raise NotImplementedError

    def count(self, query: ApplicationQuery) -> int:
        raise NotImplementedError

    def record_decision(
        self,
        *,
        application_id: int,
        approver_id: int,
        decision: ApprovalDecision,
        comment: Optional[str],
    ) -> bool:
        """Move a pending application to the decided status and store the approval row together.

        False (and nothing written) when the application is no longer pending.
        """

        raise NotImplementedError

    def list_approvals(self, application_id: int) -> Sequence[Approval]:
        raise NotImplementedError
