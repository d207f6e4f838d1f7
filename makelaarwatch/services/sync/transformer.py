"""Turn feed pages into listings and deduplicated agents.

Agents are deduplicated with a plain dict keyed by agent id that lives only
for one transform pass (one query of one cycle). Nothing is cached across
passes or cycles.
"""

from __future__ import annotations

from collections.abc import Iterable, MutableMapping

from makelaarwatch.domain.models import Agent, Listing
from makelaarwatch.services.dto import ApiPageDTO

from .query import QuerySpec


def merge_agent(agents: MutableMapping[int, Agent], agent: Agent) -> None:
    """Insert ``agent`` or fold it into the entry already held for its id.

    The first occurrence of an id creates the entry. A later occurrence only
    replaces the name, and only when it carries one: a known name is never
    erased by a record that omits it.
    """
    existing = agents.get(agent.id)
    if existing is None:
        agents[agent.id] = agent
    elif agent.name is not None and agent.name != existing.name:
        agents[agent.id] = existing.with_name(agent.name)


def transform(
    page: ApiPageDTO,
    query: QuerySpec,
    request_url: str,
    agents_by_id: MutableMapping[int, Agent] | None = None,
) -> tuple[list[Listing], MutableMapping[int, Agent]]:
    """Map one page to ``(listings, agents_by_id)``.

    Every record yields a listing, whether or not its agent was seen before.
    Pass the pass-local ``agents_by_id`` to accumulate agents across pages.
    """
    agents: MutableMapping[int, Agent] = {} if agents_by_id is None else agents_by_id
    listings: list[Listing] = []
    for record in page.objects:
        merge_agent(agents, Agent(id=record.agent_id, name=record.agent_name))
        listings.append(
            Listing(
                id=record.id,
                agent_id=record.agent_id,
                locality=record.locality,
                feature_flag=query.feature_flag(record, request_url),
            )
        )
    return listings, agents


class TransformPass:
    """Accumulates the pages of one query into deduplicated entity maps."""

    def __init__(self, query: QuerySpec) -> None:
        self.query = query
        self.agents: dict[int, Agent] = {}
        self._listings: dict[str, Listing] = {}
        self.records_seen = 0

    def add_page(self, page: ApiPageDTO, request_url: str) -> int:
        listings, _ = transform(page, self.query, request_url, self.agents)
        for listing in listings:
            # Last seen wins for duplicate listing ids.
            self._listings[listing.id] = listing
        self.records_seen += len(listings)
        return len(listings)

    @property
    def listings(self) -> list[Listing]:
        return list(self._listings.values())


def merge_batches(
    batches: Iterable[tuple[Iterable[Agent], Iterable[Listing]]],
) -> tuple[list[Agent], list[Listing]]:
    """Merge the per-query batches of one cycle; later batches win."""
    agents: dict[int, Agent] = {}
    listings: dict[str, Listing] = {}
    for batch_agents, batch_listings in batches:
        for agent in batch_agents:
            merge_agent(agents, agent)
        for listing in batch_listings:
            listings[listing.id] = listing
    return list(agents.values()), list(listings.values())


__all__ = ["TransformPass", "merge_agent", "merge_batches", "transform"]
