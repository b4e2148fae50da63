from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta

from ...core.constants import SPECIAL_CUTOFF_HOUR
from .base import SpecialRule
from .late_night_rule import LateNightRule
from .requested_rule import RequestedRule
from .same_day_rule import SameDayRule


@dataclass
class SpecialRuleFactory:
    """Factory Pattern: choose the special-application rule from the submission timing."""

    cutoff_hour: int = SPECIAL_CUTOFF_HOUR

    def for_submission(self, *, now: datetime, work_date: date) -> SpecialRule:
        today = now.date()
        if work_date == today:
            return SameDayRule()
        if work_date == today + timedelta(days=1) and now.hour >= self.cutoff_hour:
            return LateNightRule()
        return RequestedRule()
