"""Merge-upsert of freshly scraped season statistics into the stored PlayerStat aggregate.

A scrape may cover only some seasons. Seasons present in both sets are replaced as a
whole, stored seasons the scrape did not touch survive unchanged, genuinely new seasons
are appended. Running the same merge twice yields the same stored state.
"""

from __future__ import annotations

import logging
from typing import Iterable, Optional

from ..domain.models import PlayerCareerStat, PlayerSeasonStat, PlayerStat
from .services import player_stats as player_stat_service

logger = logging.getLogger(__name__)


def merge_season_stats(existing: Iterable[PlayerSeasonStat], new: Iterable[PlayerSeasonStat]) -> list[PlayerSeasonStat]:
    """Stored order is kept; replaced seasons stay at their position, new ones go to the end."""
    lookup: dict[str, PlayerSeasonStat] = {}
    for record in new:
        lookup[record.id] = record
    merged: list[PlayerSeasonStat] = []
    for record in existing:
        merged.append(lookup.pop(record.id, record))
    merged.extend(lookup.values())
    return merged


async def reconcile_player_stats(
    store,
    player_id: str,
    new_records: list[PlayerSeasonStat],
    career: Optional[PlayerCareerStat] = None,
) -> PlayerStat:
    """Insert the aggregate when absent, otherwise replace only its season array in one update."""
    existing = await player_stat_service.get_player_stat(store, player_id)
    if existing is None:
        aggregate = PlayerStat(player_id=player_id, season_stats=list(new_records), career=career)
        await player_stat_service.insert_player_stat(store, aggregate)
        logger.info("Inserted stats for player %s (%d seasons)", player_id, len(new_records))
        return aggregate

    merged = merge_season_stats(existing.season_stats, new_records)
    await player_stat_service.replace_season_stats(store, existing.id, merged)
    if career is not None:
        await store.update_field(player_stat_service.COLLECTION, existing.id, "career", career.model_dump(mode="json"))
    logger.info(
        "Reconciled stats for player %s: %d stored, %d scraped, %d after merge",
        player_id, len(existing.season_stats), len(new_records), len(merged),
    )
    return existing.model_copy(update={"season_stats": merged, "career": career or existing.career})


__all__ = ["merge_season_stats", "reconcile_player_stats"]
