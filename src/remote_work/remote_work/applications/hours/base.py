from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import time
from typing import Optional

from ...core.constants import STANDARD_WORK_MINUTES
from ...core.enums import WorkOption


class WorkHoursCalculator(ABC):
    """Calculator interface (Strategy Pattern for planned work hours)."""

    @abstractmethod
    def planned_minutes(
        self,
        *,
        work_option: WorkOption,
        start_time: Optional[time],
        end_time: Optional[time],
        break_minutes: Optional[int],
        overtime_end: Optional[time],
    ) -> int:
        raise NotImplementedError

    def exceeds_standard(self, **kwargs) -> bool:
        return self.planned_minutes(**kwargs) > STANDARD_WORK_MINUTES
