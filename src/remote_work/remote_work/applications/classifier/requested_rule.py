from __future__ import annotations

from ...core.enums import SpecialKind
from .base import SpecialDecision, SpecialRule


class RequestedRule(SpecialRule):
    """Regular timing: special only when the applicant asks for it."""

    def decide(self, *, requested: bool) -> SpecialDecision:
        return SpecialDecision(kind=SpecialKind.MANUAL if requested else None)
