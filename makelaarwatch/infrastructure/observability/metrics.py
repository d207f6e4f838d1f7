"""Simple in-process metrics collection for Makelaarwatch.

Counters and histograms are stored in memory and summarised by the CLI after
a sync run. The sync engine records one observation per page request, per
retry and per completed cycle, which is enough to reconstruct the health of a
long-running ``makelaarwatch run`` process from its final summary.
"""

from __future__ import annotations

import threading
import time
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Mapping

LabelKey = tuple[tuple[str, str | None], ...]


def _labels_to_key(labels: Mapping[str, str | None] | None) -> LabelKey:
    if labels is None:
        return ()
    return tuple(sorted(labels.items()))


def _key_to_label_str(key: LabelKey) -> str:
    return ",".join(f"{k}={v}" for k, v in key) if key else "default"


# ---------------------------------------------------------------------------
# Metric storage
# ---------------------------------------------------------------------------


@dataclass
class Counter:
    """A monotonically increasing counter."""

    name: str
    help_text: str = ""
    _values: dict[LabelKey, float] = field(default_factory=lambda: defaultdict(float))
    _lock: threading.Lock = field(default_factory=threading.Lock)

    def inc(
        self, value: float = 1.0, labels: Mapping[str, str | None] | None = None
    ) -> None:
        """Increment the counter by the given value."""
        key = _labels_to_key(labels)
        with self._lock:
            self._values[key] += value

    def get(self, labels: Mapping[str, str | None] | None = None) -> float:
        """Get the current counter value."""
        key = _labels_to_key(labels)
        with self._lock:
            return self._values.get(key, 0.0)

    def snapshot(self) -> dict[LabelKey, float]:
        with self._lock:
            return dict(self._values)


@dataclass
class Histogram:
    """Records observations and reports count, sum and average per label set."""

    name: str
    help_text: str = ""
    _observations: dict[LabelKey, list[float]] = field(
        default_factory=lambda: defaultdict(list)
    )
    _lock: threading.Lock = field(default_factory=threading.Lock)

    def observe(
        self, value: float, labels: Mapping[str, str | None] | None = None
    ) -> None:
        """Record an observation."""
        key = _labels_to_key(labels)
        with self._lock:
            self._observations[key].append(value)

    def get_stats(
        self, labels: Mapping[str, str | None] | None = None
    ) -> dict[str, float]:
        """Get summary statistics for the histogram."""
        key = _labels_to_key(labels)
        with self._lock:
            values = list(self._observations.get(key, []))
        if not values:
            return {"count": 0, "sum": 0.0, "avg": 0.0}
        return {
            "count": len(values),
            "sum": sum(values),
            "avg": sum(values) / len(values),
        }

    def label_keys(self) -> list[LabelKey]:
        with self._lock:
            return list(self._observations)


# ---------------------------------------------------------------------------
# Global metric registry
# ---------------------------------------------------------------------------


class MetricRegistry:
    """Global registry for all metrics."""

    def __init__(self) -> None:
        self._counters: dict[str, Counter] = {}
        self._histograms: dict[str, Histogram] = {}
        self._lock = threading.Lock()

    def counter(self, name: str, help_text: str = "") -> Counter:
        """Get or create a counter."""
        with self._lock:
            if name not in self._counters:
                self._counters[name] = Counter(name=name, help_text=help_text)
            return self._counters[name]

    def histogram(self, name: str, help_text: str = "") -> Histogram:
        """Get or create a histogram."""
        with self._lock:
            if name not in self._histograms:
                self._histograms[name] = Histogram(name=name, help_text=help_text)
            return self._histograms[name]

    def all_counters(self) -> dict[str, Counter]:
        with self._lock:
            return dict(self._counters)

    def all_histograms(self) -> dict[str, Histogram]:
        with self._lock:
            return dict(self._histograms)

    def reset(self) -> None:
        """Drop every metric; used between test cases."""
        with self._lock:
            self._counters.clear()
            self._histograms.clear()


# Default global registry
_registry = MetricRegistry()


def get_registry() -> MetricRegistry:
    return _registry


# ---------------------------------------------------------------------------
# Convenience functions
# ---------------------------------------------------------------------------


def increment_counter(
    name: str,
    value: float = 1.0,
    labels: Mapping[str, str | None] | None = None,
    help_text: str = "",
) -> None:
    """Increment a counter by name, creating it if needed."""
    _registry.counter(name, help_text).inc(value, labels)


def observe_histogram(
    name: str,
    value: float,
    labels: Mapping[str, str | None] | None = None,
    help_text: str = "",
) -> None:
    """Record an observation in a histogram, creating it if needed."""
    _registry.histogram(name, help_text).observe(value, labels)


class Timer:
    """Context manager for timing operations and recording to a histogram."""

    def __init__(
        self,
        histogram_name: str,
        labels: Mapping[str, str | None] | None = None,
        help_text: str = "",
    ) -> None:
        self.histogram_name = histogram_name
        self.labels = labels
        self.help_text = help_text
        self._start: float = 0.0
        self.elapsed: float = 0.0

    def __enter__(self) -> "Timer":
        self._start = time.perf_counter()
        return self

    def __exit__(self, *args: object) -> None:
        self.elapsed = time.perf_counter() - self._start
        observe_histogram(self.histogram_name, self.elapsed, self.labels, self.help_text)


# ---------------------------------------------------------------------------
# Predefined metrics for the sync engine
# ---------------------------------------------------------------------------

SYNC_CYCLES = "sync_cycles_total"
SYNC_CYCLE_DURATION = "sync_cycle_duration_seconds"
PAGE_FETCHES = "page_fetches_total"
PAGE_RETRIES = "page_retries_total"
ENTITIES_RECONCILED = "entities_reconciled_total"


def record_page_fetch(outcome: str) -> None:
    """Record one page request; ``outcome`` is ``ok``, ``transient`` or ``malformed``."""
    increment_counter(
        PAGE_FETCHES, labels={"outcome": outcome}, help_text="Page requests by outcome"
    )


def record_retry(delay_seconds: float) -> None:
    increment_counter(PAGE_RETRIES, help_text="Page requests retried after backoff")
    observe_histogram(
        "page_retry_delay_seconds", delay_seconds, help_text="Backoff delays scheduled"
    )


def record_sync_cycle(
    status: str,
    duration: float,
    *,
    agents: int = 0,
    listings: int = 0,
) -> None:
    """Record a finished sync cycle with its status and entity counts."""
    increment_counter(
        SYNC_CYCLES, labels={"status": status}, help_text="Total sync cycles"
    )
    observe_histogram(
        SYNC_CYCLE_DURATION, duration, help_text="Sync cycle duration in seconds"
    )
    if agents:
        increment_counter(
            ENTITIES_RECONCILED, value=float(agents), labels={"collection": "agents"}
        )
    if listings:
        increment_counter(
            ENTITIES_RECONCILED, value=float(listings), labels={"collection": "listings"}
        )


# ---------------------------------------------------------------------------
# Export utilities
# ---------------------------------------------------------------------------


def get_metrics_summary() -> dict[str, object]:
    """Return a summary of all metrics for logging or CLI output."""
    counters: dict[str, dict[str, float]] = {}
    histograms: dict[str, dict[str, dict[str, float]]] = {}

    for name, counter in _registry.all_counters().items():
        counters[name] = {
            _key_to_label_str(key): value for key, value in counter.snapshot().items()
        }

    for name, histogram in _registry.all_histograms().items():
        histograms[name] = {
            _key_to_label_str(key): histogram.get_stats(dict(key) if key else None)
            for key in histogram.label_keys()
        }

    return {"counters": counters, "histograms": histograms}
