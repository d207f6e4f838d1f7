import json
import logging

from makelaarwatch.infrastructure.observability import (
    current_context,
    get_metrics_summary,
    get_registry,
    log_context,
    record_page_fetch,
    record_retry,
    record_sync_cycle,
)
from makelaarwatch.infrastructure.observability.logging import (
    ContextualFormatter,
    JsonFormatter,
)


def _record(message: str) -> logging.LogRecord:
    return logging.LogRecord("makelaarwatch.test", logging.INFO, __file__, 1, message, None, None)


def test_log_context_nests_and_restores() -> None:
    assert current_context() == {}
    with log_context(cycle=3):
        with log_context(query="koop/amsterdam/tuin"):
            assert current_context() == {"cycle": 3, "query": "koop/amsterdam/tuin"}
        assert current_context() == {"cycle": 3}
    assert current_context() == {}


def test_contextual_formatter_appends_fields() -> None:
    formatter = ContextualFormatter("%(message)s")

    with log_context(cycle=2, query="koop/amsterdam"):
        line = formatter.format(_record("Fetching page 1"))

    assert line == "Fetching page 1 [cycle=2 query=koop/amsterdam]"
    assert formatter.format(_record("idle")) == "idle"


def test_json_formatter_inlines_fields() -> None:
    with log_context(cycle=5):
        payload = json.loads(JsonFormatter().format(_record("done")))

    assert payload["message"] == "done"
    assert payload["cycle"] == 5
    assert payload["level"] == "INFO"


def test_sync_metrics_summary() -> None:
    record_page_fetch("ok")
    record_page_fetch("ok")
    record_page_fetch("transient")
    record_retry(60.0)
    record_sync_cycle("success", 1.5, agents=2, listings=3)

    summary = get_metrics_summary()

    assert summary["counters"]["page_fetches_total"] == {"outcome=ok": 2, "outcome=transient": 1}
    assert summary["counters"]["page_retries_total"] == {"default": 1}
    assert summary["counters"]["entities_reconciled_total"] == {
        "collection=agents": 2,
        "collection=listings": 3,
    }
    assert summary["histograms"]["page_retry_delay_seconds"]["default"]["sum"] == 60.0
    assert summary["histograms"]["sync_cycle_duration_seconds"]["default"]["count"] == 1


def test_registry_reset_drops_metrics() -> None:
    record_page_fetch("ok")
    get_registry().reset()

    assert get_metrics_summary() == {"counters": {}, "histograms": {}}
