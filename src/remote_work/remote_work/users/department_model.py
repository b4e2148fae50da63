from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Department:
    department_id: int
    name: str


@dataclass(frozen=True)
class Group:
    group_id: int
    name: str
    department_id: int
