"""Query specifications and the feature detectors bound to them.

A query is one search against the feed (search type, locality and an ordered
list of feature path segments such as ``tuin``). The feature flag stored on a
listing is derived by the detector of the query that returned it, not from
the record alone: the same listing can show up in the plain query and in the
``tuin`` query of the same cycle.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal, Protocol

from makelaarwatch.services.dto import ApiObjectDTO

DetectorKind = Literal["tag", "path", "plot_area"]


class FeatureDetector(Protocol):
    def __call__(
        self, record: ApiObjectDTO, query: "QuerySpec", request_url: str
    ) -> bool: ...


@dataclass(frozen=True)
class TagDetector:
    """Flag listings returned by a query whose feature segments include ``tag``."""

    tag: str = "tuin"

    def __call__(self, record: ApiObjectDTO, query: "QuerySpec", request_url: str) -> bool:
        wanted = self.tag.lower()
        return any(feature.lower() == wanted for feature in query.features)


@dataclass(frozen=True)
class PathMatchDetector:
    """Flag listings whose request URL contains ``needle`` (case-insensitive)."""

    needle: str = "tuin"

    def __call__(self, record: ApiObjectDTO, query: "QuerySpec", request_url: str) -> bool:
        return self.needle.lower() in request_url.lower()


@dataclass(frozen=True)
class PlotAreaDetector:
    """Flag listings carrying a numeric plot-area field above ``threshold``."""

    field_name: str = "perceelOppervlakte"
    threshold: float = 0.0

    def __call__(self, record: ApiObjectDTO, query: "QuerySpec", request_url: str) -> bool:
        value = record.get_field(self.field_name)
        if isinstance(value, bool):
            return False
        if isinstance(value, str):
            try:
                value = float(value)
            except ValueError:
                return False
        if not isinstance(value, (int, float)):
            return False
        return value > self.threshold


def build_detector(
    kind: DetectorKind,
    *,
    tag: str = "tuin",
    plot_area_field: str = "perceelOppervlakte",
    plot_area_threshold: float = 0.0,
) -> FeatureDetector:
    if kind == "tag":
        return TagDetector(tag)
    if kind == "path":
        return PathMatchDetector(tag)
    if kind == "plot_area":
        return PlotAreaDetector(plot_area_field, plot_area_threshold)
    raise ValueError(f"Unknown feature detector: {kind!r}")


@dataclass(frozen=True)
class QuerySpec:
    search_type: str = "koop"
    locality: str = "amsterdam"
    features: tuple[str, ...] = ()
    detector: FeatureDetector = field(default_factory=TagDetector)

    @property
    def zo_path(self) -> str:
        """The ``zo`` filter: ``/<locality>/<feature>/.../``."""
        segments = [self.locality, *self.features]
        return "/" + "".join(f"{segment}/" for segment in segments)

    @property
    def label(self) -> str:
        return "/".join([self.search_type, self.locality, *self.features])

    def feature_flag(self, record: ApiObjectDTO, request_url: str) -> bool:
        return bool(self.detector(record, self, request_url))


__all__ = [
    "DetectorKind",
    "FeatureDetector",
    "PathMatchDetector",
    "PlotAreaDetector",
    "QuerySpec",
    "TagDetector",
    "build_detector",
]
