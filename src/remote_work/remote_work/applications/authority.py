from __future__ import annotations

from typing import Optional

from ..core.enums import Role
from ..users.model import User
from .model import ApproverScope


def has_authority(approver: User, applicant: User) -> bool:
    """Whether `approver` may decide on applications filed by `applicant`."""
    if approver.user_id == applicant.user_id:
        return False
    if approver.role == Role.ADMIN:
        return True
    if approver.role != Role.APPROVER:
        return False
    if applicant.manager_id is not None:
        return applicant.manager_id == approver.user_id
    return applicant.department_id == approver.department_id


def scope_for(viewer: User, *, include_own: bool) -> Optional[ApproverScope]:
    """Row filter for what `viewer` may see; None means unrestricted (admin)."""
    if viewer.role == Role.ADMIN:
        return None
    return ApproverScope(
        approver_id=viewer.user_id,
        department_id=viewer.department_id,
        include_own=include_own,
    )
