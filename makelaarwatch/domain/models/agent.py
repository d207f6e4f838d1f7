"""Agent (makelaar) domain model."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Mapping


@dataclass(frozen=True)
class Agent:
    """A real-estate agent owning zero or more listings.

    Identity is ``id``; ``name`` is the only mutable field. The listings an
    agent owns are never stored on the agent, they are counted by the
    leaderboard query.
    """

    id: int
    name: str | None = None

    def with_name(self, name: str | None) -> "Agent":
        return replace(self, name=name)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Agent":
        """Create an Agent from a database row dictionary."""
        return cls(id=int(data["id"]), name=data.get("name"))


__all__ = ["Agent"]
