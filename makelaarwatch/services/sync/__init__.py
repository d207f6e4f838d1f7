"""Sync engine mirroring the Funda listings feed into the local database.

This module provides the official API for the sync engine. All sync
functionality should be imported from this package, not directly from the
submodules.

Public API:
  - SyncScheduler – Interval loop running cycles until cancelled
  - SyncCycle – One fetch/transform/reconcile pass over all queries
  - CycleReport – What a cycle did (persisted as a sync_runs row)
  - PageFetcher – Paginated fetching with quota throttling and backoff
  - RetryPolicy, RequestThrottle – Backoff schedule and quota delay
  - Reconciler, ReconcilePolicy, ReconcileStats – Store reconciliation
  - QuerySpec, build_detector – Queries and their feature detectors
  - CancellationToken – Cooperative cancellation for every suspension point
  - Success, Failure, FailureKind – Explicit result type
  - SqliteSyncStore, sqlite_store_factory – SQLite-backed store

Implementation Note:
  Submodules should not be imported directly outside of tests.
"""

from .cancellation import (
    CancellationToken,
    Sleeper,
    sleep_until_cancelled,
    until_cancelled,
)
from .cycle import CycleReport, SyncCycle
from .fetcher import FetchOutcome, PageFetcher, RequestThrottle, RetryPolicy
from .query import (
    PathMatchDetector,
    PlotAreaDetector,
    QuerySpec,
    TagDetector,
    build_detector,
)
from .reconciler import ReconcilePolicy, ReconcileStats, Reconciler
from .results import CANCELLED, Failure, FailureKind, Result, Success
from .scheduler import SchedulerState, SyncScheduler, SyncState
from .store import (
    Collection,
    SqliteSyncStore,
    StoreError,
    StoreFactory,
    SyncStore,
    sqlite_store_factory,
)
from .transformer import TransformPass, merge_agent, merge_batches, transform

__all__ = [
    # === Scheduling
    "SchedulerState",
    "SyncScheduler",
    "SyncState",
    "CycleReport",
    "SyncCycle",
    # === Fetching
    "FetchOutcome",
    "PageFetcher",
    "RequestThrottle",
    "RetryPolicy",
    # === Queries & feature detection
    "PathMatchDetector",
    "PlotAreaDetector",
    "QuerySpec",
    "TagDetector",
    "build_detector",
    # === Transforming
    "TransformPass",
    "merge_agent",
    "merge_batches",
    "transform",
    # === Reconciling & storage
    "Collection",
    "ReconcilePolicy",
    "ReconcileStats",
    "Reconciler",
    "SqliteSyncStore",
    "StoreError",
    "StoreFactory",
    "SyncStore",
    "sqlite_store_factory",
    # === Results & cancellation
    "CANCELLED",
    "CancellationToken",
    "Failure",
    "FailureKind",
    "Result",
    "Sleeper",
    "Success",
    "sleep_until_cancelled",
    "until_cancelled",
]
