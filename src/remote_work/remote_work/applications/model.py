from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time
from typing import Optional

from ..core.enums import ApplicationStatus, ApprovalDecision, SpecialKind, WorkOption


SORT_FIELDS = ("created_at", "date", "application_status_id")
SORT_ORDERS = ("asc", "desc")


@dataclass(frozen=True)
class Application:
    """Domain entity: one remote-work day requested by one user."""

    application_id: int
    user_id: int
    work_date: date
    work_option: WorkOption
    reason: str
    status: ApplicationStatus
    created_at: datetime
    updated_at: datetime
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    break_minutes: Optional[int] = None
    is_special: bool = False
    special_reason: Optional[str] = None
    is_overtime: bool = False
    overtime_reason: Optional[str] = None
    overtime_end: Optional[time] = None
    project: Optional[str] = None
    work_hours_exceeded: bool = False


@dataclass(frozen=True)
class NewApplication:
    """Validated submission, ready to be stored as pending."""

    user_id: int
    work_date: date
    work_option: WorkOption
    reason: str
    start_time: Optional[time]
    end_time: Optional[time]
    break_minutes: Optional[int]
    is_special: bool
    special_kind: Optional[SpecialKind]
    special_reason: Optional[str]
    is_overtime: bool
    overtime_reason: Optional[str]
    overtime_end: Optional[time]
    project: Optional[str]
    work_hours_exceeded: bool


@dataclass(frozen=True)
class ApplicationListItem:
    """An application joined with its applicant, as listed on screens."""

    application: Application
    user_name: str
    department_id: Optional[int] = None
    department_name: Optional[str] = None


@dataclass(frozen=True)
class Approval:
    approval_id: int
    application_id: int
    # None once the approver's account has been deleted
    approver_id: Optional[int]
    decision: ApprovalDecision
    comment: Optional[str]
    created_at: datetime
    approver_name: Optional[str] = None


@dataclass(frozen=True)
class ApproverScope:
    """Applicants an approver may decide on.

    Users whose manager is the approver, plus users of the approver's
    department without a manager. The approver's own applications are
    never in scope; `include_own` adds them back for viewing only.
    """

    approver_id: int
    department_id: int
    include_own: bool = False


@dataclass(frozen=True)
class ApplicationQuery:
    owner_id: Optional[int] = None
    scope: Optional[ApproverScope] = None
    status: Optional[ApplicationStatus] = None
    applicant_id: Optional[int] = None
    date_from: Optional[date] = None
    date_to: Optional[date] = None
    sort_by: str = "created_at"
    sort_order: str = "desc"
    limit: int = 200
