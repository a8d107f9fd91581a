"""
Database services for competition persistence.
"""

from __future__ import annotations

from typing import Iterable, Optional

from ...domain.models import Competition
from . import countries as country_service

COLLECTION = "competitions"


async def get_competition(store, competition_id: str) -> Optional[Competition]:
    doc = await store.find_by_id(COLLECTION, competition_id)
    return Competition.model_validate(doc) if doc else None


async def get_competitions_by_country(store, country_id: str) -> list[Competition]:
    return [Competition.model_validate(d) for d in await store.find(COLLECTION, {"country_id": country_id})]


async def upsert_competition(store, competition: Competition) -> Competition:
    """Upsert; eine bereits bekannte Länderzuordnung geht beim Überschreiben nicht verloren."""
    existing = await get_competition(store, competition.id)
    if existing is not None and not competition.country_id and existing.country_id:
        competition = competition.model_copy(update={"country_id": existing.country_id})
    await store.upsert(COLLECTION, competition.to_document())
    return competition


async def _reassign(store, competition_id: str, previous: Optional[str], country_id: str) -> None:
    if previous and previous != country_id:
        await country_service.remove_competition(store, previous, competition_id)
    await store.update_field(COLLECTION, competition_id, "country_id", country_id)


async def register_competitions(store, competitions: Iterable[Competition]) -> int:
    """Legt unbekannte Wettbewerbe an; bekannte behalten ihre gescrapten Daten, nur country_id wird gesetzt."""
    created: list[Competition] = []
    for competition in competitions:
        existing = await get_competition(store, competition.id)
        if existing is None:
            created.append(competition)
        elif competition.country_id and existing.country_id != competition.country_id:
            await _reassign(store, competition.id, existing.country_id, competition.country_id)
    await store.insert_many(COLLECTION, [c.to_document() for c in created])
    return len(created)


async def set_country(store, competition: Competition, country_id: str) -> Competition:
    """Setzt country_id; unbekannte Wettbewerbe werden dabei angelegt."""
    existing = await get_competition(store, competition.id)
    competition = competition.model_copy(update={"country_id": country_id})
    if existing is not None:
        await _reassign(store, competition.id, existing.country_id, country_id)
    else:
        await store.upsert(COLLECTION, competition.to_document())
    return competition


async def wipe_competitions(store) -> None:
    await store.wipe(COLLECTION)
