from __future__ import annotations

from typing import Optional, Protocol, Sequence

from ..core.enums import Role
from .model import TransportRoute, User, UserDraft


class UserRepository(Protocol):
    """Repository interface for User.

    Note (DIP): services depend on this interface, never on a concrete DB.
    """

    def get_by_id(self, user_id: int) -> Optional[User]:
        raise NotImplementedError

    def get_by_email(self, email: str) -> Optional[User]:
        raise NotImplementedError

    def get_by_employee_number(self, employee_number: str) -> Optional[User]:
        raise NotImplementedError

    def create_user(self, draft: UserDraft, *, password_hash: Optional[str]) -> int:
        raise NotImplementedError

    def update_user(self, user_id: int, draft: UserDraft, *, password_hash: Optional[str] = None) -> bool:
        """Update profile/assignment fields; the hash is only replaced when given."""

        raise NotImplementedError

    def update_profile(
        self,
        user_id: int,
        *,
        name: str,
        email: str,
        address: Optional[str],
        phone_number: Optional[str],
    ) -> bool:
        raise NotImplementedError

    def set_password(self, user_id: int, password_hash: str) -> bool:
        raise NotImplementedError

    def update_assignment(
        self,
        user_id: int,
        *,
        department_id: int,
        role: Role,
        manager_id: Optional[int],
    ) -> bool:
        raise NotImplementedError

    def delete_by_id(self, user_id: int) -> bool:
        raise NotImplementedError

    def list_all(self) -> Sequence[User]:
        raise NotImplementedError

    def list_by_role(self, role: Role) -> Sequence[User]:
        raise NotImplementedError

    def list_admin_view(self) -> Sequence[dict]:
        """Rows for the admin user table (joined with department/group/manager names)."""

        raise NotImplementedError

    def count_in_department(self, department_id: int) -> int:
        raise NotImplementedError


class TransportRouteRepository(Protocol):
    def list_for_user(self, user_id: int) -> Sequence[TransportRoute]:
        raise NotImplementedError

    def get_by_id(self, route_id: int) -> Optional[TransportRoute]:
        raise NotImplementedError

    def create(
        self,
        *,
        user_id: int,
        departure_station: str,
        via_station: Optional[str],
        arrival_station: str,
        transport_type: str,
        fare: int,
    ) -> int:
        raise NotImplementedError

    def delete(self, route_id: int) -> bool:
        raise NotImplementedError
