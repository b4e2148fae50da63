from __future__ import annotations

from datetime import time
from typing import Optional

from ...common.datetime_utils import minutes_between
from ...core.constants import (
    DEFAULT_BREAK_MINUTES,
    DEFAULT_DAY_END_HOUR,
    HALF_DAY_WORK_MINUTES,
    STANDARD_WORK_MINUTES,
)
from ...core.enums import WorkOption
from .base import WorkHoursCalculator


class StandardWorkHoursCalculator(WorkHoursCalculator):
    """Standard rule: (end or overtime end) - start - break, not below 0.

    Without explicit times a full day is 8h and a half day 4h, plus any
    overtime past the regular 18:00 end.
    """

    def planned_minutes(
        self,
        *,
        work_option: WorkOption,
        start_time: Optional[time],
        end_time: Optional[time],
        break_minutes: Optional[int],
        overtime_end: Optional[time],
    ) -> int:
        if start_time and end_time:
            finish = overtime_end if overtime_end and overtime_end > end_time else end_time
            if break_minutes is None:
                break_minutes = 0 if work_option.is_half_day else DEFAULT_BREAK_MINUTES
            return max(minutes_between(start_time, finish) - int(break_minutes), 0)

        minutes = HALF_DAY_WORK_MINUTES if work_option.is_half_day else STANDARD_WORK_MINUTES
        day_end = time(hour=DEFAULT_DAY_END_HOUR)
        if overtime_end and overtime_end > day_end:
            minutes += minutes_between(day_end, overtime_end)
        return minutes
