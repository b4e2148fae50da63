from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

from ...core.enums import SpecialKind


@dataclass(frozen=True)
class SpecialDecision:
    kind: Optional[SpecialKind] = None

    @property
    def is_special(self) -> bool:
        return self.kind is not None

    @property
    def is_automatic(self) -> bool:
        """Decided by the submission timing rather than the applicant's checkbox."""
        return self.kind in {SpecialKind.SAME_DAY, SpecialKind.LATE_NIGHT}


class SpecialRule(ABC):
    """Strategy Pattern: encapsulate how we decide whether an application is special."""

    @abstractmethod
    def decide(self, *, requested: bool) -> SpecialDecision:
        raise NotImplementedError
