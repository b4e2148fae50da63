from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Optional

from ..core.enums import Role


@dataclass(frozen=True)
class User:
    """Domain entity: User.

    Note: plain data object, no DB access here. A user without a password
    hash has been registered by an admin but not activated yet.
    """

    user_id: int
    name: str
    email: str
    employee_number: str
    password_hash: Optional[str]
    role: Role
    department_id: int
    group_id: Optional[int] = None
    manager_id: Optional[int] = None
    position: Optional[str] = None
    hired_date: Optional[date] = None
    is_caregiver: bool = False
    has_child_under_elementary: bool = False
    address: Optional[str] = None
    phone_number: Optional[str] = None
    is_active: bool = True

    @property
    def is_activated(self) -> bool:
        return bool(self.password_hash)

    @property
    def weekly_limit_exempt(self) -> bool:
        return self.is_caregiver or self.has_child_under_elementary


@dataclass(frozen=True)
class UserDraft:
    """Validated admin input for creating or updating a user."""

    name: str
    email: str
    employee_number: str
    role: Role
    department_id: int
    group_id: Optional[int] = None
    manager_id: Optional[int] = None
    position: Optional[str] = None
    hired_date: Optional[date] = None
    is_caregiver: bool = False
    has_child_under_elementary: bool = False


@dataclass(frozen=True)
class ImportResult:
    success_count: int
    errors: tuple[str, ...] = ()

    def to_dict(self) -> dict:
        return {"success_count": self.success_count, "errors": list(self.errors)}


@dataclass(frozen=True)
class TransportRoute:
    route_id: int
    user_id: int
    departure_station: str
    arrival_station: str
    transport_type: str
    fare: int
    via_station: Optional[str] = None
