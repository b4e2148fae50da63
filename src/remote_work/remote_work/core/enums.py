from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """User roles used for authorization."""

    ADMIN = "admin"
    APPROVER = "approver"
    APPLICANT = "applicant"

    @property
    def role_id(self) -> int:
        return _ROLE_IDS[self]

    @classmethod
    def from_id(cls, role_id: int) -> "Role":
        for role, rid in _ROLE_IDS.items():
            if rid == int(role_id):
                return role
        raise ValueError(f"Unknown role id: {role_id!r}")

    @property
    def can_approve(self) -> bool:
        return self in {Role.ADMIN, Role.APPROVER}


_ROLE_IDS = {Role.ADMIN: 1, Role.APPROVER: 2, Role.APPLICANT: 3}


class ApplicationStatus(str, Enum):
    """Lifecycle of a remote-work application.

    The numeric ids are the ones the UI filters on (1..4).
    """

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    CANCELLED = "cancelled"

    @property
    def status_id(self) -> int:
        return _STATUS_IDS[self]

    @property
    def label(self) -> str:
        return _STATUS_LABELS[self]

    @property
    def is_terminal(self) -> bool:
        return self != ApplicationStatus.PENDING

    @property
    def is_active(self) -> bool:
        """Active applications occupy a date and count against the weekly limit."""
        return self in {ApplicationStatus.PENDING, ApplicationStatus.APPROVED}

    @classmethod
    def from_id(cls, status_id: int) -> "ApplicationStatus":
        for status, sid in _STATUS_IDS.items():
            if sid == int(status_id):
                return status
        raise ValueError(f"Unknown status id: {status_id!r}")

    @classmethod
    def parse(cls, value: str) -> "ApplicationStatus":
        """Accept either the status name or its numeric id."""
        v = (value or "").strip().lower()
        if v.isdigit():
            return cls.from_id(int(v))
        return cls(v)


_STATUS_IDS = {
    ApplicationStatus.PENDING: 1,
    ApplicationStatus.APPROVED: 2,
    ApplicationStatus.REJECTED: 3,
    ApplicationStatus.CANCELLED: 4,
}

_STATUS_LABELS = {
    ApplicationStatus.PENDING: "申請中",
    ApplicationStatus.APPROVED: "承認済み",
    ApplicationStatus.REJECTED: "却下",
    ApplicationStatus.CANCELLED: "キャンセル",
}


class WorkOption(str, Enum):
    FULL_DAY = "full_day"
    AM_HALF = "am_half"
    PM_HALF = "pm_half"

    @property
    def label(self) -> str:
        return {
            WorkOption.FULL_DAY: "終日",
            WorkOption.AM_HALF: "午前半休",
            WorkOption.PM_HALF: "午後半休",
        }[self]

    @property
    def is_half_day(self) -> bool:
        return self != WorkOption.FULL_DAY


class ApprovalDecision(str, Enum):
    APPROVED = "approved"
    REJECTED = "rejected"

    @property
    def resulting_status(self) -> ApplicationStatus:
        if self == ApprovalDecision.APPROVED:
            return ApplicationStatus.APPROVED
        return ApplicationStatus.REJECTED


class SpecialKind(str, Enum):
    """Why an application was classified as special (特認)."""

    SAME_DAY = "same_day"
    LATE_NIGHT = "late_night"
    MANUAL = "manual"


class OperationAction(str, Enum):
    LOGIN = "login"
    LOGOUT = "logout"
    CREATE_APPLICATION = "create_application"
    CANCEL_APPLICATION = "cancel_application"
    APPROVE = "approve"
    REJECT = "reject"
    CREATE_USER = "create_user"
    UPDATE_USER = "update_user"
    DELETE_USER = "delete_user"
    IMPORT_USERS = "import_users"
    CREATE_PERSONNEL_CHANGE = "create_personnel_change"
    DELETE_PERSONNEL_CHANGE = "delete_personnel_change"
    APPLY_PERSONNEL_CHANGE = "apply_personnel_change"
