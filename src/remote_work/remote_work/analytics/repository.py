from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence


class AnalyticsRepository(Protocol):
    """Aggregate queries for the usage screens.

    Note: every application count here excludes cancelled applications.
    """

    def count_users(self) -> int:
        raise NotImplementedError

    def users_by_department(self) -> Sequence[dict]:
        """[{id, name, count}] for every department, including empty ones."""

        raise NotImplementedError

    def users_by_group(self) -> Sequence[dict]:
        raise NotImplementedError

    def applications_by_option(self) -> dict[str, int]:
        raise NotImplementedError

    def monthly_counts(self, *, start: date, end: date, department_id: Optional[int] = None) -> dict[str, int]:
        """{'YYYY-MM': n} for start <= work_date < end."""

        raise NotImplementedError

    def weekday_counts(self) -> dict[int, int]:
        """{0 (Monday) .. 6: n}."""

        raise NotImplementedError

    def department_counts(self, *, start: date, end: date) -> dict[int, int]:
        raise NotImplementedError

    def status_counts(self, *, user_id: int) -> dict[str, int]:
        """Per-status totals for one user, cancelled included."""

        raise NotImplementedError
