from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import LogQuery, OperationLog


class OperationLogRepository(Protocol):
    def add(
        self,
        *,
        user_id: Optional[int],
        action: str,
        target_type: Optional[str],
        target_id: Optional[int],
        details: Optional[str],
        ip_address: Optional[str],
    ) -> int:
        raise NotImplementedError

    def search(self, query: LogQuery) -> tuple[Sequence[OperationLog], int]:
        """Return (page of logs newest first, total matching rows)."""

        raise NotImplementedError
