from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..core.enums import Role


@dataclass(frozen=True)
class PersonnelChange:
    """A scheduled change of department, role or manager for one user.

    Note: old_* values are snapshots taken when the change was registered.
    """

    change_id: int
    user_id: int
    effective_date: date
    created_by: int
    created_at: datetime
    old_department_id: Optional[int] = None
    new_department_id: Optional[int] = None
    old_role: Optional[Role] = None
    new_role: Optional[Role] = None
    new_manager_id: Optional[int] = None
    applied_at: Optional[datetime] = None

    @property
    def is_applied(self) -> bool:
        return self.applied_at is not None
