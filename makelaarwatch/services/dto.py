"""
Centralized DTOs for Makelaarwatch services: the Funda feed payload and the
leaderboard rows.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


def _lower_keys(value: Any) -> Any:
    """Lower-case the keys of a mapping (one level); the feed is matched case-insensitively."""
    if isinstance(value, dict):
        return {str(k).lower(): v for k, v in value.items()}
    return value


# --- Feed payload DTOs ---
class ApiObjectDTO(BaseModel):
    """One record of the ``Objects`` array.

    Unknown fields are kept (``extra="allow"``) because feature detectors may
    look at fields the engine does not model, such as the plot area.
    """

    model_config = ConfigDict(extra="allow", coerce_numbers_to_str=True)

    id: str
    agent_id: int = Field(alias="makelaarid")
    agent_name: str | None = Field(default=None, alias="makelaarnaam")
    locality: str | None = Field(default=None, alias="woonplaats")

    def get_field(self, name: str) -> Any:
        """Return an unmodelled field by (case-insensitive) name, or None."""
        extra = self.model_extra or {}
        return extra.get(name.lower())


class ApiPagingDTO(BaseModel):
    model_config = ConfigDict(extra="ignore")

    total_pages: int | None = Field(default=None, alias="aantalpaginas")


class ApiPageDTO(BaseModel):
    model_config = ConfigDict(extra="ignore")

    objects: list[ApiObjectDTO] = Field(default_factory=list)
    paging: ApiPagingDTO | None = None

    @classmethod
    def from_payload(cls, payload: Any) -> "ApiPageDTO":
        """Validate a decoded JSON body, matching keys case-insensitively.

        Raises:
            pydantic.ValidationError: If the body does not look like a page.
        """
        data = _lower_keys(payload)
        if isinstance(data, dict):
            objects = data.get("objects")
            if isinstance(objects, list):
                data["objects"] = [_lower_keys(obj) for obj in objects]
            data["paging"] = _lower_keys(data.get("paging"))
        return cls.model_validate(data)


# --- Leaderboard DTOs ---
class LeaderboardEntryDTO(BaseModel):
    model_config = ConfigDict(extra="forbid")

    rank: int
    agent_id: int
    agent_name: str | None = None
    listing_count: int


# --- Sync history DTOs ---
class SyncRunDTO(BaseModel):
    """One row of the ``sync_runs`` table."""

    model_config = ConfigDict(extra="ignore")

    id: int
    cycle: int | None = None
    started_at: str
    finished_at: str | None = None
    status: str | None = None
    policy: str | None = None
    partial: bool = False
    pages_fetched: int = 0
    agents_seen: int = 0
    listings_seen: int = 0
    agents_added: int = 0
    agents_updated: int = 0
    agents_removed: int = 0
    listings_added: int = 0
    listings_updated: int = 0
    listings_removed: int = 0
    notes: str | None = None

    @property
    def mutations(self) -> int:
        return (
            self.agents_added
            + self.agents_updated
            + self.agents_removed
            + self.listings_added
            + self.listings_updated
            + self.listings_removed
        )


__all__ = [
    "ApiObjectDTO",
    "ApiPageDTO",
    "ApiPagingDTO",
    "LeaderboardEntryDTO",
    "SyncRunDTO",
]
