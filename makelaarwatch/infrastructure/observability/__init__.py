"""Observability and logging facades."""

from .logging import (
    configure_logging,
    current_context,
    get_logger,
    log_context,
    log_exception,
)
from .metrics import (
    Timer,
    get_metrics_summary,
    get_registry,
    increment_counter,
    observe_histogram,
    record_page_fetch,
    record_retry,
    record_sync_cycle,
)

__all__ = [
    # Logging
    "configure_logging",
    "current_context",
    "get_logger",
    "log_context",
    "log_exception",
    # Metrics
    "Timer",
    "get_metrics_summary",
    "get_registry",
    "increment_counter",
    "observe_histogram",
    "record_page_fetch",
    "record_retry",
    "record_sync_cycle",
]
