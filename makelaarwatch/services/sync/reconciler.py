"""Apply a fetched entity set to the store under a named policy.

Agents are always written before listings so every listing's agent exists
when the listing is inserted. Each step commits on its own; a crash between
steps can leave the store briefly out of step with the feed, which the next
cycle repairs.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import asdict, dataclass
from enum import Enum

from makelaarwatch.domain.models import Agent, Listing
from makelaarwatch.infrastructure.observability import get_logger

from .results import Failure, FailureKind, Result, Success
from .store import Collection, Entity, StoreError, SyncStore

logger = get_logger(__name__)


class ReconcilePolicy(str, Enum):
    CLEAR_AND_RELOAD = "clear_and_reload"
    DIFF_AND_PATCH = "diff_and_patch"
    DIFF_AND_PATCH_KEEP_STALE = "diff_and_patch_keep_stale"


@dataclass
class ReconcileStats:
    agents_added: int = 0
    agents_updated: int = 0
    agents_removed: int = 0
    listings_added: int = 0
    listings_updated: int = 0
    listings_removed: int = 0

    @property
    def mutations(self) -> int:
        return sum(asdict(self).values())

    def as_dict(self) -> dict[str, int]:
        return asdict(self)


class Reconciler:
    def __init__(self, policy: ReconcilePolicy = ReconcilePolicy.DIFF_AND_PATCH) -> None:
        self.policy = ReconcilePolicy(policy)

    def reconcile(
        self,
        store: SyncStore,
        agents: Iterable[Agent],
        listings: Iterable[Listing],
    ) -> Result[ReconcileStats]:
        """Write ``agents`` and ``listings`` to ``store``.

        Returns ``Failure(STORE)`` when a write or commit fails; the pending
        transaction is rolled back, earlier committed steps stay.
        """
        agents = list(agents)
        listings = list(listings)
        stats = ReconcileStats()
        try:
            if self.policy is ReconcilePolicy.CLEAR_AND_RELOAD:
                steps = self._clear_and_reload(store, agents, listings, stats)
            else:
                steps = self._diff_and_patch(store, agents, listings, stats)
            for step in steps:
                committed = store.commit()
                if isinstance(committed, Failure):
                    logger.error("Reconcile step '%s' failed: %s", step, committed.detail)
                    store.rollback()
                    return committed
                logger.debug("Reconcile step '%s' committed", step)
        except StoreError as exc:
            logger.error("Store error during reconcile: %s", exc)
            store.rollback()
            return Failure(FailureKind.STORE, str(exc))

        logger.info(
            "Reconciled (%s): agents +%d ~%d -%d, listings +%d ~%d -%d",
            self.policy.value,
            stats.agents_added,
            stats.agents_updated,
            stats.agents_removed,
            stats.listings_added,
            stats.listings_updated,
            stats.listings_removed,
        )
        return Success(stats)

    # Each policy is a generator that performs one step's writes, then yields
    # the step name so reconcile() commits before the next step starts.

    def _clear_and_reload(
        self,
        store: SyncStore,
        agents: Sequence[Agent],
        listings: Sequence[Listing],
        stats: ReconcileStats,
    ):
        stats.listings_removed = store.remove_many(
            Collection.LISTINGS, store.all_ids(Collection.LISTINGS)
        )
        stats.agents_removed = store.remove_many(
            Collection.AGENTS, store.all_ids(Collection.AGENTS)
        )
        yield "clear"
        for agent in agents:
            store.add(Collection.AGENTS, agent)
        stats.agents_added = len(agents)
        yield "insert agents"
        for listing in listings:
            store.add(Collection.LISTINGS, listing)
        stats.listings_added = len(listings)
        yield "insert listings"

    def _diff_and_patch(
        self,
        store: SyncStore,
        agents: Sequence[Agent],
        listings: Sequence[Listing],
        stats: ReconcileStats,
    ):
        stats.agents_added, stats.agents_updated = _upsert(store, Collection.AGENTS, agents)
        yield "upsert agents"
        stats.listings_added, stats.listings_updated = _upsert(
            store, Collection.LISTINGS, listings
        )
        yield "upsert listings"

        if self.policy is ReconcilePolicy.DIFF_AND_PATCH_KEEP_STALE:
            return

        # Stale listings are computed up front: removing a stale agent may
        # already cascade to its listings before the listing step runs.
        stale_listings = store.all_ids(Collection.LISTINGS) - {l.id for l in listings}
        stale_agents = store.all_ids(Collection.AGENTS) - {a.id for a in agents}
        stats.agents_removed = store.remove_many(Collection.AGENTS, sorted(stale_agents))
        yield "remove stale agents"
        store.remove_many(Collection.LISTINGS, sorted(stale_listings))
        stats.listings_removed = len(stale_listings)
        yield "remove stale listings"


def _upsert(
    store: SyncStore, collection: Collection, entities: Sequence[Entity]
) -> tuple[int, int]:
    """Insert missing entities, update changed ones; return ``(added, updated)``."""
    added = updated = 0
    for entity in entities:
        existing = store.find_by_id(collection, entity.id)
        if isinstance(existing, Agent) and isinstance(entity, Agent) and entity.name is None:
            # A record without a name never erases the stored one.
            entity = entity.with_name(existing.name)
        if existing is None:
            store.add(collection, entity)
            added += 1
        elif existing != entity:
            store.update(collection, entity)
            updated += 1
    return added, updated


__all__ = ["ReconcilePolicy", "ReconcileStats", "Reconciler"]
