"""
Database services for club persistence.
"""

from __future__ import annotations

from typing import Iterable, Optional

from ...domain.models import Club
from .countries import _merge_ids

COLLECTION = "clubs"


async def get_club(store, club_id: str) -> Optional[Club]:
    doc = await store.find_by_id(COLLECTION, club_id)
    return Club.model_validate(doc) if doc else None


async def get_clubs_by_competition(store, competition_id: str) -> list[Club]:
    return [Club.model_validate(d) for d in await store.find(COLLECTION, {"competition_ids": [competition_id]})]


async def upsert_clubs(store, clubs: Iterable[Club]) -> list[Club]:
    """Upsert; Wettbewerbs- und Spielerlisten werden vereinigt (ein Club spielt in mehreren Wettbewerben)."""
    saved: list[Club] = []
    for club in clubs:
        existing = await get_club(store, club.id)
        if existing is not None:
            club = club.model_copy(update={
                "competition_ids": _merge_ids(existing.competition_ids, club.competition_ids),
                "player_ids": club.player_ids or existing.player_ids,
            })
        await store.upsert(COLLECTION, club.to_document())
        saved.append(club)
    return saved


async def set_player_ids(store, club_id: str, player_ids: list[str]) -> bool:
    return await store.update_field(COLLECTION, club_id, "player_ids", player_ids)


async def wipe_clubs(store) -> None:
    await store.wipe(COLLECTION)
