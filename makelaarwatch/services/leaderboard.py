"""Leaderboard queries over the reconciled store."""

from __future__ import annotations

from makelaarwatch.infrastructure.db.repositories import AgentRepository
from makelaarwatch.services.base import BaseService
from makelaarwatch.services.dto import LeaderboardEntryDTO


class LeaderboardService(BaseService):
    """Rank agents by how many listings they currently hold."""

    def top_agents(
        self, limit: int = 10, *, feature_only: bool = False
    ) -> list[LeaderboardEntryDTO]:
        """Return the ``limit`` agents with the most listings.

        With ``feature_only`` only listings carrying the feature flag (a
        garden, by default) are counted.
        """
        rows = self._with_connection(
            lambda conn: AgentRepository(conn).leaderboard(
                limit=limit, feature_only=feature_only
            )
        )
        self._logger.debug(
            "Leaderboard (limit=%d, feature_only=%s) returned %d row(s)",
            limit,
            feature_only,
            len(rows),
        )
        return [
            LeaderboardEntryDTO(rank=rank, **row)
            for rank, row in enumerate(rows, start=1)
        ]


__all__ = ["LeaderboardService"]
