from __future__ import annotations

from ...core.enums import SpecialKind
from .base import SpecialDecision, SpecialRule


class SameDayRule(SpecialRule):
    """Submitted on the work date itself."""

    def decide(self, *, requested: bool) -> SpecialDecision:
        return SpecialDecision(kind=SpecialKind.SAME_DAY)
