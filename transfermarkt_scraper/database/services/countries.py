"""
Database services for country persistence.
"""

from __future__ import annotations

from typing import Iterable, Optional

from ...domain.models import Country

COLLECTION = "countries"


def _merge_ids(existing: Iterable[str], new: Iterable[str]) -> list[str]:
    merged = list(existing)
    merged.extend(i for i in new if i not in merged)
    return merged


async def get_country(store, country_id: str) -> Optional[Country]:
    doc = await store.find_by_id(COLLECTION, country_id)
    return Country.model_validate(doc) if doc else None


async def get_countries(store) -> list[Country]:
    return [Country.model_validate(d) for d in await store.find(COLLECTION)]


async def find_country_by_competition(store, competition_id: str) -> Optional[Country]:
    docs = await store.find(COLLECTION, {"competition_ids": [competition_id]})
    return Country.model_validate(docs[0]) if docs else None


async def upsert_countries(store, countries: Iterable[Country]) -> list[Country]:
    """Upsert; die Wettbewerbsliste eines gespeicherten Landes wird erweitert, nie ersetzt."""
    saved: list[Country] = []
    for country in countries:
        existing = await get_country(store, country.id)
        if existing is not None:
            country = country.model_copy(update={
                "competition_ids": _merge_ids(existing.competition_ids, country.competition_ids),
                "name": country.name or existing.name,
                "flag": country.flag or existing.flag,
            })
        await store.upsert(COLLECTION, country.to_document())
        saved.append(country)
    return saved


async def add_competition(store, country: Country, competition_id: str) -> Country:
    """Legt das Land an oder hängt *competition_id* an dessen Liste an."""
    existing = await get_country(store, country.id)
    if existing is None:
        country = country.model_copy(update={"competition_ids": _merge_ids(country.competition_ids, [competition_id])})
        await store.insert_many(COLLECTION, [country.to_document()])
        return country
    if competition_id not in existing.competition_ids:
        existing.competition_ids.append(competition_id)
        await store.update_field(COLLECTION, existing.id, "competition_ids", existing.competition_ids)
    return existing


async def remove_competition(store, country_id: str, competition_id: str) -> bool:
    """Nimmt *competition_id* aus der Liste des Landes (nach einer Neuzuordnung)."""
    existing = await get_country(store, country_id)
    if existing is None or competition_id not in existing.competition_ids:
        return False
    remaining = [i for i in existing.competition_ids if i != competition_id]
    return await store.update_field(COLLECTION, country_id, "competition_ids", remaining)


async def wipe_countries(store) -> None:
    await store.wipe(COLLECTION)
