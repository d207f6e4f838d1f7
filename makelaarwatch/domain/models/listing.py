"""Listing domain model."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping


@dataclass(frozen=True)
class Listing:
    """A single listing exposed by the external feed and owned by one agent.

    ``feature_flag`` is not a property of the raw record: it is derived by the
    feature detector of the query that produced the listing, so the same
    listing can arrive with a different flag from two queries in one cycle.
    """

    id: str
    agent_id: int
    locality: str | None = None
    feature_flag: bool = False

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Listing":
        """Create a Listing from a database row dictionary."""
        return cls(
            id=str(data["id"]),
            agent_id=int(data["agent_id"]),
            locality=data.get("locality"),
            feature_flag=bool(data.get("feature_flag")),
        )


__all__ = ["Listing"]
