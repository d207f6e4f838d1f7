"""Interval loop driving sync cycles until cancelled.

The first cycle runs immediately. After every cycle, successful or not, the
scheduler sleeps for the configured interval through an injectable sleeper
and runs again. Only the cancellation token ends the loop.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from enum import Enum

from makelaarwatch.infrastructure.db import iso_utcnow
from makelaarwatch.infrastructure.observability import (
    get_logger,
    log_context,
    log_exception,
    record_sync_cycle,
)

from .cancellation import CancellationToken, Sleeper, sleep_until_cancelled
from .cycle import CycleReport, SyncCycle
from .results import Failure, FailureKind, Result, Success

logger = get_logger(__name__)


class SyncState(str, Enum):
    """Scheduler status.

    Pages are mapped to entities while they are fetched, so ``TRANSFORMING``
    covers merging the per-query batches into the one set that is reconciled.
    """

    IDLE = "idle"
    FETCHING = "fetching"
    TRANSFORMING = "transforming"
    RECONCILING = "reconciling"
    SLEEPING = "sleeping"
    CANCELLED = "cancelled"


@dataclass
class SchedulerState:
    """Current state snapshot for the scheduler."""

    status: SyncState = SyncState.IDLE
    cycles_run: int = 0
    cycles_failed: int = 0
    current_cycle_started_at: str | None = None
    last_report: CycleReport | None = None
    last_error: str | None = None


class SyncScheduler:
    def __init__(
        self,
        cycle: SyncCycle,
        *,
        interval_seconds: float = 3600.0,
        token: CancellationToken | None = None,
        sleeper: Sleeper = sleep_until_cancelled,
        max_cycles: int | None = None,
    ) -> None:
        self.cycle = cycle
        self.interval_seconds = interval_seconds
        self.token = token or CancellationToken()
        self._sleeper = sleeper
        self.max_cycles = max_cycles
        self._state = SchedulerState()

    @property
    def state(self) -> SchedulerState:
        return self._state

    def cancel(self) -> None:
        self.token.cancel()

    def _set_status(self, status: SyncState | str) -> None:
        self._state.status = SyncState(status)
        logger.debug("Scheduler state -> %s", self._state.status.value)

    async def run(self) -> SchedulerState:
        """Run cycles until cancelled, or until ``max_cycles`` have run."""
        cycle_number = 0
        while not self.token.cancelled:
            cycle_number += 1
            with log_context(cycle=cycle_number):
                result = await self._run_cycle(cycle_number)
            if isinstance(result, Failure) and result.kind is FailureKind.CANCELLED:
                break
            if self.max_cycles is not None and cycle_number >= self.max_cycles:
                self._set_status(SyncState.IDLE)
                return self._state

            self._set_status(SyncState.SLEEPING)
            logger.info("Next sync cycle in %.0fs", self.interval_seconds)
            if not await self._sleeper(self.interval_seconds, self.token):
                break
            self._set_status(SyncState.IDLE)

        self._set_status(SyncState.CANCELLED)
        logger.info("Sync scheduler stopped after %d cycle(s)", self._state.cycles_run)
        return self._state

    async def _run_cycle(self, cycle_number: int) -> Result[CycleReport]:
        logger.info("Starting sync cycle %d", cycle_number)
        self._state.current_cycle_started_at = iso_utcnow()
        started = time.perf_counter()
        try:
            result = await self.cycle.run(cycle_number, self.token, self._set_status)
        except Exception as exc:
            log_exception(logger, f"Sync cycle {cycle_number} raised", exc)
            result = Failure(FailureKind.UNEXPECTED, f"{type(exc).__name__}: {exc}")
        duration = time.perf_counter() - started

        if isinstance(result, Success):
            report = result.value
            self._state.cycles_run += 1
            self._state.last_report = report
            self._state.last_error = None
            record_sync_cycle(
                report.status,
                duration,
                agents=report.stats.agents_added + report.stats.agents_updated,
                listings=report.stats.listings_added + report.stats.listings_updated,
            )
            logger.info(
                "Sync cycle %d finished (%s) in %.1fs: %d page(s), %d agent(s), %d listing(s), %d mutation(s)",
                cycle_number,
                report.status,
                duration,
                report.pages_fetched,
                report.agents_seen,
                report.listings_seen,
                report.stats.mutations,
            )
        elif result.kind is FailureKind.CANCELLED:
            record_sync_cycle("cancelled", duration)
            logger.info("Sync cycle %d cancelled", cycle_number)
        else:
            self._state.cycles_run += 1
            self._state.cycles_failed += 1
            self._state.last_error = str(result)
            record_sync_cycle("failed", duration)
            logger.error("Sync cycle %d failed: %s", cycle_number, result)
        return result


__all__ = ["SchedulerState", "SyncScheduler", "SyncState"]
