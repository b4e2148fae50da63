from __future__ import annotations

from ...core.enums import SpecialKind
from .base import SpecialDecision, SpecialRule


class LateNightRule(SpecialRule):
    """Submitted for tomorrow after the evening cutoff."""

    def decide(self, *, requested: bool) -> SpecialDecision:
        return SpecialDecision(kind=SpecialKind.LATE_NIGHT)
