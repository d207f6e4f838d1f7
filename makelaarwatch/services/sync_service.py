from __future__ import annotations

import time
from collections.abc import Callable
from typing import TYPE_CHECKING

import httpx

from makelaarwatch.infrastructure.http import FundaApiClient
from makelaarwatch.infrastructure.observability import get_logger
from makelaarwatch.services.sync import (
    CancellationToken,
    PageFetcher,
    Reconciler,
    RequestThrottle,
    SchedulerState,
    Sleeper,
    StoreFactory,
    SyncCycle,
    SyncScheduler,
    sleep_until_cancelled,
    sqlite_store_factory,
)

if TYPE_CHECKING:
    # app.config imports the sync package; a runtime import here would be circular.
    from makelaarwatch.app.config import SyncSettings


class SyncService:
    """Wire settings, HTTP client and store into a running scheduler."""

    def __init__(
        self,
        settings: SyncSettings,
        *,
        http_client: httpx.AsyncClient | None = None,
        store_factory: StoreFactory | None = None,
        sleeper: Sleeper = sleep_until_cancelled,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.settings = settings
        self.api_url = settings.require_api_url()
        if store_factory is None:
            if settings.db_path is None:
                raise ValueError("settings.db_path must be resolved before building a SyncService")
            store_factory = sqlite_store_factory(settings.db_path)
        self._store_factory = store_factory
        self._http_client = http_client
        self._sleeper = sleeper
        self._clock = clock
        self._logger = get_logger(__name__)

    def build_cycle(self, api: FundaApiClient) -> SyncCycle:
        throttle = RequestThrottle(
            self.settings.quota_interval_seconds, clock=self._clock, sleeper=self._sleeper
        )
        fetcher = PageFetcher(
            api,
            page_size=self.settings.page_size,
            retry_policy=self.settings.retry_policy(),
            throttle=throttle,
            sleeper=self._sleeper,
        )
        return SyncCycle(
            fetcher,
            self.settings.query_specs(),
            self._store_factory,
            Reconciler(self.settings.reconcile_policy),
        )

    async def run(
        self,
        token: CancellationToken | None = None,
        *,
        max_cycles: int | None = None,
    ) -> SchedulerState:
        """Run the scheduler until ``token`` is cancelled or ``max_cycles`` ran."""
        self._logger.info(
            "Starting sync of %d quer%s (policy=%s, interval=%.0fs)",
            len(self.settings.queries),
            "y" if len(self.settings.queries) == 1 else "ies",
            self.settings.reconcile_policy.value,
            self.settings.interval_seconds,
        )
        async with FundaApiClient(
            self.api_url,
            timeout_seconds=self.settings.request_timeout_seconds,
            client=self._http_client,
        ) as api:
            scheduler = SyncScheduler(
                self.build_cycle(api),
                interval_seconds=self.settings.interval_seconds,
                token=token,
                sleeper=self._sleeper,
                max_cycles=max_cycles,
            )
            return await scheduler.run()


__all__ = ["SyncService"]
