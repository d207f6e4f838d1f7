import json
from pathlib import Path

import pytest
from pydantic import ValidationError

from makelaarwatch.app.config import (
    API_URL_ENV,
    ConfigurationError,
    SyncSettings,
    load_settings,
)
from makelaarwatch.services.sync import PlotAreaDetector, ReconcilePolicy, TagDetector


@pytest.fixture(autouse=True)
def _no_env_url(monkeypatch) -> None:
    monkeypatch.delenv(API_URL_ENV, raising=False)


def _write_config(tmp_path: Path, payload: dict) -> Path:
    path = tmp_path / "config.json"
    path.write_text(json.dumps(payload), encoding="utf-8")
    return path


def test_defaults() -> None:
    settings = SyncSettings()

    assert settings.search_type == "koop"
    assert settings.locality == "amsterdam"
    assert settings.queries == [[], ["tuin"]]
    assert settings.page_size == 25
    assert settings.interval_seconds == 3600
    assert settings.reconcile_policy is ReconcilePolicy.DIFF_AND_PATCH
    policy = settings.retry_policy()
    assert (policy.max_retries, policy.backoff_unit_seconds, policy.backoff_base) == (5, 60.0, 2.0)


def test_load_from_config_file(tmp_path: Path) -> None:
    config = _write_config(
        tmp_path,
        {
            "paths": {"db_path": "data/feed.db"},
            "sync": {
                "api_url": "https://feed.example/json/KEY/",
                "locality": "utrecht",
                "reconcile_policy": "clear_and_reload",
            },
        },
    )

    settings = load_settings(config)

    assert settings.require_api_url() == "https://feed.example/json/KEY/"
    assert settings.locality == "utrecht"
    assert settings.reconcile_policy is ReconcilePolicy.CLEAR_AND_RELOAD
    assert settings.db_path == (tmp_path / "data" / "feed.db").resolve()


def test_environment_and_overrides_take_precedence(tmp_path: Path, monkeypatch) -> None:
    config = _write_config(tmp_path, {"sync": {"api_url": "https://from-file/", "max_retries": 2}})
    monkeypatch.setenv(API_URL_ENV, "https://from-env/")

    settings = load_settings(config, max_retries=None, page_size=10)

    assert settings.api_url == "https://from-env/"
    assert settings.max_retries == 2
    assert settings.page_size == 10

    overridden = load_settings(config, api_url="https://from-cli/")
    assert overridden.api_url == "https://from-cli/"


@pytest.mark.parametrize(
    "section",
    [
        {"page_size": 30},
        {"interval_seconds": 0},
        {"reconcile_policy": "merge"},
        {"unknown_option": True},
    ],
)
def test_invalid_settings_raise_configuration_error(tmp_path: Path, section: dict) -> None:
    config = _write_config(tmp_path, {"sync": section})

    with pytest.raises(ConfigurationError):
        load_settings(config)


def test_missing_api_url(tmp_path: Path) -> None:
    settings = load_settings(_write_config(tmp_path, {}))

    with pytest.raises(ConfigurationError, match=API_URL_ENV):
        settings.require_api_url()


def test_query_specs_share_one_detector() -> None:
    specs = SyncSettings(locality="Haarlem").query_specs()

    assert [spec.zo_path for spec in specs] == ["/Haarlem/", "/Haarlem/tuin/"]
    assert all(spec.detector == TagDetector("tuin") for spec in specs)

    plot = SyncSettings(feature_detector="plot_area", plot_area_threshold=25).query_specs()
    assert plot[0].detector == PlotAreaDetector("perceelOppervlakte", 25)


def test_empty_query_list_is_rejected(tmp_path: Path) -> None:
    config = _write_config(tmp_path, {"sync": {"api_url": "https://feed.example/", "queries": []}})

    with pytest.raises(ConfigurationError, match="queries"):
        load_settings(config)
    with pytest.raises(ValidationError):
        SyncSettings(queries=[])


@pytest.mark.parametrize("content", ["{ not json", "[1, 2, 3]"])
def test_unparseable_config_file_is_a_configuration_error(tmp_path: Path, content: str) -> None:
    config = tmp_path / "config.json"
    config.write_text(content, encoding="utf-8")

    with pytest.raises(ConfigurationError, match="config.json"):
        load_settings(config)


def test_unreadable_config_path_is_a_configuration_error(tmp_path: Path) -> None:
    config = tmp_path / "config.json"
    config.mkdir()

    with pytest.raises(ConfigurationError, match="Cannot read"):
        load_settings(config)
