from __future__ import annotations

from collections.abc import Iterable

from makelaarwatch.domain.models import Listing

from .base import BaseRepository


class ListingRepository(BaseRepository):
    def get(self, listing_id: str) -> Listing | None:
        row = self._fetch_one_as_dict(
            "SELECT id, agent_id, locality, feature_flag FROM listings WHERE id = ?",
            (listing_id,),
        )
        return Listing.from_dict(row) if row else None

    def insert(self, listing: Listing) -> None:
        self._execute(
            """
            INSERT INTO listings (id, agent_id, locality, feature_flag)
            VALUES (?, ?, ?, ?)
            """,
            (listing.id, listing.agent_id, listing.locality, int(listing.feature_flag)),
        )

    def update(self, listing: Listing) -> None:
        self._execute(
            """
            UPDATE listings SET agent_id = ?, locality = ?, feature_flag = ?
            WHERE id = ?
            """,
            (listing.agent_id, listing.locality, int(listing.feature_flag), listing.id),
        )

    def delete_many(self, listing_ids: Iterable[str]) -> int:
        return self._delete_in("listings", listing_ids)

    def all_ids(self) -> set[str]:
        return {str(row[0]) for row in self._execute("SELECT id FROM listings").fetchall()}
