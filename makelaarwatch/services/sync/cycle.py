"""One sync cycle: fetch every query, merge the batches, reconcile once."""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import Any, Literal

from makelaarwatch.domain.models import Agent, Listing
from makelaarwatch.infrastructure.db import iso_utcnow
from makelaarwatch.infrastructure.observability import Timer, get_logger, log_context

from .cancellation import CancellationToken
from .fetcher import FetchOutcome, PageFetcher
from .query import QuerySpec
from .reconciler import ReconcileStats, Reconciler
from .results import CANCELLED, Failure, Result, Success
from .store import StoreError, StoreFactory
from .transformer import merge_batches

logger = get_logger(__name__)

CycleStatus = Literal["success", "partial", "failed", "cancelled"]
StateCallback = Callable[[str], None]


@dataclass
class CycleReport:
    """What a finished cycle did; persisted as a ``sync_runs`` row."""

    cycle: int
    started_at: str
    finished_at: str | None = None
    status: CycleStatus = "success"
    pages_fetched: int = 0
    agents_seen: int = 0
    listings_seen: int = 0
    partial: bool = False
    stats: ReconcileStats = field(default_factory=ReconcileStats)
    errors: list[str] = field(default_factory=list)

    def to_row(self, policy: str) -> dict[str, Any]:
        row: dict[str, Any] = {
            "cycle": self.cycle,
            "started_at": self.started_at,
            "finished_at": self.finished_at,
            "status": self.status,
            "policy": policy,
            "partial": int(self.partial),
            "pages_fetched": self.pages_fetched,
            "agents_seen": self.agents_seen,
            "listings_seen": self.listings_seen,
            "notes": "; ".join(self.errors) or None,
        }
        row.update(self.stats.as_dict())
        return row


class SyncCycle:
    """Runs the fetch, transform and reconcile steps of one cycle."""

    def __init__(
        self,
        fetcher: PageFetcher,
        queries: Sequence[QuerySpec],
        store_factory: StoreFactory,
        reconciler: Reconciler | None = None,
    ) -> None:
        self.fetcher = fetcher
        self.queries = list(queries)
        self.store_factory = store_factory
        self.reconciler = reconciler or Reconciler()

    async def run(
        self,
        cycle_number: int,
        token: CancellationToken,
        on_state: StateCallback | None = None,
    ) -> Result[CycleReport]:
        """Run the cycle. A cancelled cycle returns ``CANCELLED`` and writes nothing."""
        notify = on_state or (lambda _state: None)
        report = CycleReport(cycle=cycle_number, started_at=iso_utcnow())

        notify("fetching")
        outcomes: list[FetchOutcome] = []
        for query in self.queries:
            with log_context(query=query.label):
                outcome = await self.fetcher.fetch_all(query, token)
            outcomes.append(outcome)
            if outcome.cancelled:
                logger.info("Cycle %d cancelled while fetching %s", cycle_number, query.label)
                return CANCELLED

        # Pages were already mapped during fetching; this step merges the batches.
        notify("transforming")
        for outcome in outcomes:
            report.pages_fetched += outcome.pages_fetched
            if outcome.partial:
                report.partial = True
                if outcome.failure is not None:
                    report.errors.append(f"{outcome.query.label}: {outcome.failure}")
        agents, listings = merge_batches(
            (outcome.agents.values(), outcome.listings) for outcome in outcomes
        )
        report.agents_seen = len(agents)
        report.listings_seen = len(listings)

        if token.cancelled:
            return CANCELLED

        notify("reconciling")
        return await asyncio.to_thread(self._reconcile, report, agents, listings)

    def _reconcile(
        self, report: CycleReport, agents: list[Agent], listings: list[Listing]
    ) -> Result[CycleReport]:
        # Runs in a worker thread; the connection must be opened here.
        with self.store_factory() as store:
            with Timer("reconcile_duration_seconds", {"policy": self.reconciler.policy.value}):
                result = self.reconciler.reconcile(store, agents, listings)
            if isinstance(result, Failure):
                report.status = "failed"
                report.errors.append(str(result))
            else:
                report.stats = result.value
                report.status = "partial" if report.partial else "success"
            report.finished_at = iso_utcnow()
            try:
                store.record_run(report.to_row(self.reconciler.policy.value))
            except StoreError as exc:
                logger.warning("Could not record sync run %d: %s", report.cycle, exc)

        if isinstance(result, Failure):
            return result
        return Success(report)


__all__ = ["CycleReport", "CycleStatus", "SyncCycle"]
