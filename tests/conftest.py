import importlib

import pytest

from feed_stubs import FakeClock
from makelaarwatch.app.config import API_URL_ENV
from makelaarwatch.infrastructure.observability import get_registry


@pytest.fixture(autouse=True)
def reset_metrics() -> None:
    get_registry().reset()


@pytest.fixture(autouse=True)
def _quiet_cli(monkeypatch) -> None:
    # Handlers bound to CliRunner's streams would outlive the invocation.
    main_module = importlib.import_module("makelaarwatch.interfaces.cli.__main__")
    monkeypatch.setattr(main_module, "configure_logging", lambda **_kwargs: None)
    monkeypatch.delenv(API_URL_ENV, raising=False)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()
