"""Configuration for the sync engine.

Settings come from the ``sync`` section of ``config.json``; the
``MAKELAARWATCH_API_URL`` environment variable and explicit overrides (CLI
options) take precedence, in that order. Invalid or incomplete settings raise
:class:`ConfigurationError` before anything starts.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from makelaarwatch.infrastructure.db import ConfigurationError, get_path_config, load_config
from makelaarwatch.services.sync import (
    QuerySpec,
    ReconcilePolicy,
    RetryPolicy,
    build_detector,
)

API_URL_ENV = "MAKELAARWATCH_API_URL"


class SyncSettings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    api_url: str | None = None
    search_type: str = "koop"
    locality: str = "amsterdam"
    # An empty list would reconcile an empty feed and wipe the store.
    queries: list[list[str]] = Field(default_factory=lambda: [[], ["tuin"]], min_length=1)
    page_size: int = Field(default=25, ge=1, le=25)
    max_retries: int = Field(default=5, ge=0)
    backoff_unit_seconds: float = Field(default=60.0, ge=0)
    backoff_base: float = Field(default=2.0, ge=1)
    quota_interval_seconds: float = Field(default=0.6, ge=0)
    request_timeout_seconds: float = Field(default=30.0, gt=0)
    interval_seconds: float = Field(default=3600.0, gt=0)
    reconcile_policy: ReconcilePolicy = ReconcilePolicy.DIFF_AND_PATCH
    feature_detector: Literal["tag", "path", "plot_area"] = "tag"
    feature_tag: str = "tuin"
    plot_area_field: str = "perceelOppervlakte"
    plot_area_threshold: float = 0.0
    db_path: Path | None = None

    def require_api_url(self) -> str:
        if not self.api_url or not self.api_url.strip():
            raise ConfigurationError(
                f"No API URL configured: set sync.api_url in config.json or {API_URL_ENV}"
            )
        return self.api_url.strip()

    def query_specs(self) -> list[QuerySpec]:
        detector = build_detector(
            self.feature_detector,
            tag=self.feature_tag,
            plot_area_field=self.plot_area_field,
            plot_area_threshold=self.plot_area_threshold,
        )
        return [
            QuerySpec(
                search_type=self.search_type,
                locality=self.locality,
                features=tuple(features),
                detector=detector,
            )
            for features in self.queries
        ]

    def retry_policy(self) -> RetryPolicy:
        return RetryPolicy(
            max_retries=self.max_retries,
            backoff_unit_seconds=self.backoff_unit_seconds,
            backoff_base=self.backoff_base,
        )


def load_settings(
    config_path: Path | str | None = None, **overrides: Any
) -> SyncSettings:
    """Build :class:`SyncSettings` from config file, environment and overrides.

    Overrides whose value is ``None`` are ignored so unset CLI options fall
    through to the configured values.
    """
    cfg = load_config(config_path)
    section = cfg.get("sync", {})
    if not isinstance(section, dict):
        raise ConfigurationError("The 'sync' section of the configuration must be an object")

    values: dict[str, Any] = dict(section)
    env_url = os.environ.get(API_URL_ENV)
    if env_url:
        values["api_url"] = env_url
    values.update({key: value for key, value in overrides.items() if value is not None})

    try:
        settings = SyncSettings.model_validate(values)
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid sync settings: {exc}") from exc

    if settings.db_path is None:
        settings.db_path = get_path_config(config_path)["db_path"]
    return settings


__all__ = ["API_URL_ENV", "ConfigurationError", "SyncSettings", "load_settings"]
