from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from makelaarwatch.domain.models import Agent

from .base import BaseRepository


class AgentRepository(BaseRepository):
    def get(self, agent_id: int) -> Agent | None:
        row = self._fetch_one_as_dict(
            "SELECT id, name FROM agents WHERE id = ?", (agent_id,)
        )
        return Agent.from_dict(row) if row else None

    def insert(self, agent: Agent) -> None:
        self._execute(
            "INSERT INTO agents (id, name) VALUES (?, ?)", (agent.id, agent.name)
        )

    def update(self, agent: Agent) -> None:
        self._execute("UPDATE agents SET name = ? WHERE id = ?", (agent.name, agent.id))

    def delete_many(self, agent_ids: Iterable[int]) -> int:
        return self._delete_in("agents", agent_ids)

    def all_ids(self) -> set[int]:
        return {int(row[0]) for row in self._execute("SELECT id FROM agents").fetchall()}

    def leaderboard(
        self, *, limit: int = 10, feature_only: bool = False
    ) -> list[dict[str, Any]]:
        """Rank agents by the number of listings they own, most first.

        Ties are broken by agent id so the ordering is stable between runs.
        """
        query = """
            SELECT a.id AS agent_id,
                   a.name AS agent_name,
                   COUNT(l.id) AS listing_count
            FROM agents a
            JOIN listings l ON l.agent_id = a.id
        """
        if feature_only:
            query += " WHERE l.feature_flag = 1"
        query += """
            GROUP BY a.id, a.name
            ORDER BY listing_count DESC, a.id
            LIMIT ?
        """
        return self._fetch_all_as_dicts(query, (limit,))
