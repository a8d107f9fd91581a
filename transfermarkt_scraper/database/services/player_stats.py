"""
Database services for player statistics persistence.
"""

from __future__ import annotations

from typing import Optional

from ...domain.models import PlayerSeasonStat, PlayerStat

COLLECTION = "player_stats"


async def get_player_stat(store, player_id: str) -> Optional[PlayerStat]:
    doc = await store.find_by_id(COLLECTION, PlayerStat(player_id=player_id).id)
    return PlayerStat.model_validate(doc) if doc else None


async def insert_player_stat(store, player_stat: PlayerStat) -> None:
    await store.insert_many(COLLECTION, [player_stat.to_document()])


async def replace_season_stats(store, stat_id: str, season_stats: list[PlayerSeasonStat]) -> bool:
    return await store.update_field(
        COLLECTION, stat_id, "season_stats", [s.model_dump(mode="json") for s in season_stats]
    )


async def wipe_player_stats(store) -> None:
    await store.wipe(COLLECTION)
