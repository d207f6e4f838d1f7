"""Read access to the per-cycle bookkeeping in ``sync_runs``."""

from __future__ import annotations

from makelaarwatch.infrastructure.db.repositories import SyncRunRepository
from makelaarwatch.services.base import BaseService
from makelaarwatch.services.dto import SyncRunDTO


class SyncHistoryService(BaseService):
    def recent_runs(self, limit: int = 10) -> list[SyncRunDTO]:
        """Return the ``limit`` most recent sync cycles, newest first."""
        rows = self._with_connection(lambda conn: SyncRunRepository(conn).list_recent(limit))
        return [SyncRunDTO.model_validate(row) for row in rows]


__all__ = ["SyncHistoryService"]
