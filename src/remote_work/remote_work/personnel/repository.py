from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from ..core.enums import Role
from .model import PersonnelChange


class PersonnelChangeRepository(Protocol):
    def create(
        self,
        *,
        user_id: int,
        old_department_id: Optional[int],
        new_department_id: Optional[int],
        old_role: Optional[Role],
        new_role: Optional[Role],
        new_manager_id: Optional[int],
        effective_date: date,
        created_by: int,
    ) -> int:
        raise NotImplementedError

    def get_by_id(self, change_id: int) -> Optional[PersonnelChange]:
        raise NotImplementedError

    def list_admin_view(self) -> Sequence[dict]:
        """Unapplied changes first (soonest first), then applied ones (latest first)."""

        raise NotImplementedError

    def list_due(self, *, today: date) -> Sequence[PersonnelChange]:
        raise NotImplementedError

    def mark_applied(self, change_id: int) -> bool:
        raise NotImplementedError

    def delete_unapplied(self, change_id: int) -> bool:
        raise NotImplementedError
