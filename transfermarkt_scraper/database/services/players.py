"""
Database services for player persistence.
"""

from __future__ import annotations

from typing import Iterable, Optional

from ...domain.models import Player

COLLECTION = "players"


async def get_player(store, player_id: str) -> Optional[Player]:
    doc = await store.find_by_id(COLLECTION, player_id)
    return Player.model_validate(doc) if doc else None


async def get_players_by_club(store, club_id: str) -> list[Player]:
    return [Player.model_validate(d) for d in await store.find(COLLECTION, {"club_id": club_id})]


async def upsert_players(store, players: Iterable[Player]) -> list[Player]:
    """Upsert; vorhandene Marktwerthistorie bleibt erhalten, wenn der neue Datensatz keine hat."""
    saved: list[Player] = []
    for player in players:
        if not player.market_values:
            existing = await get_player(store, player.id)
            if existing is not None and existing.market_values:
                player = player.model_copy(update={"market_values": existing.market_values})
        await store.upsert(COLLECTION, player.to_document())
        saved.append(player)
    return saved


async def wipe_players(store) -> None:
    await store.wipe(COLLECTION)
