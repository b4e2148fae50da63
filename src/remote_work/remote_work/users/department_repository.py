from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .department_model import Department, Group


class DepartmentRepository(Protocol):
    def list_all(self) -> Sequence[Department]:
        raise NotImplementedError

    def get_by_id(self, department_id: int) -> Optional[Department]:
        raise NotImplementedError

    def get_by_name(self, name: str) -> Optional[Department]:
        raise NotImplementedError

    def create(self, name: str) -> int:
        raise NotImplementedError

    def rename(self, department_id: int, name: str) -> bool:
        raise NotImplementedError

    def delete(self, department_id: int) -> bool:
        raise NotImplementedError


class GroupRepository(Protocol):
    def list_all(self, *, department_id: Optional[int] = None) -> Sequence[Group]:
        raise NotImplementedError

    def get_by_id(self, group_id: int) -> Optional[Group]:
        raise NotImplementedError

    def create(self, *, name: str, department_id: int) -> int:
        raise NotImplementedError
