import asyncio

import pytest

from transfermarkt_scraper.data_collection.scrapers.scraping_orchestrator import ScrapingOrchestrator
from transfermarkt_scraper.database.services import clubs as club_service
from transfermarkt_scraper.domain.errors import ScrapingError
from transfermarkt_scraper.domain.models import Club, Competition, Player


@pytest.fixture
def orchestrator(make_page, make_http, store, settings):
    return ScrapingOrchestrator(make_page(), store, settings, http=make_http())


def test_scrapers_share_scope(orchestrator):
    scrapers = list(orchestrator.scrapers.values())
    assert set(orchestrator.scrapers) == {"country", "competition", "club", "market_value", "player", "player_stat"}
    assert all(s.inflight is orchestrator.inflight for s in scrapers)
    assert all(s.cancel is orchestrator.cancel for s in scrapers)
    assert all(s.page is orchestrator.page for s in scrapers)


@pytest.mark.asyncio
async def test_stored_clubs_are_used_without_force(orchestrator, store):
    await club_service.upsert_clubs(store, [Club(id="131", name="FC Barcelona", competition_ids=["ES1"])])

    clubs = await orchestrator.clubs.get_clubs("ES1", force=False)

    assert [c.id for c in clubs] == ["131"]
    assert orchestrator.page.goto_calls == []


@pytest.mark.asyncio
async def test_get_clubs_of_unknown_competition_fails(orchestrator):
    with pytest.raises(ScrapingError):
        await orchestrator.clubs.get_clubs("XX1", force=True)


@pytest.mark.asyncio
async def test_scrape_all_isolates_failures(orchestrator, monkeypatch):
    async def get_countries(force=None):
        raise ScrapingError("country selector missing")

    async def get_competition(competition_id, force=None):
        if competition_id == "ES2":
            raise ScrapingError("competition page broken")
        return Competition(id=competition_id, name="LaLiga", is_scraped=True)

    async def get_clubs(competition_id, force=None):
        return [Club(id="131", competition_ids=[competition_id]), Club(id="418", competition_ids=[competition_id])]

    async def get_players(club_id, force=None):
        if club_id == "131":
            raise ScrapingError("squad table missing")
        return [Player(id="8198", club_id=club_id)]

    scraped_stats = []

    async def get_player_stat(player_id, season_ids=None, force=None):
        scraped_stats.append(player_id)

    monkeypatch.setattr(orchestrator.countries, "get_countries", get_countries)
    monkeypatch.setattr(orchestrator.competitions, "get_competition", get_competition)
    monkeypatch.setattr(orchestrator.clubs, "get_clubs", get_clubs)
    monkeypatch.setattr(orchestrator.players, "get_players", get_players)
    monkeypatch.setattr(orchestrator.player_stats, "get_player_stat", get_player_stat)

    results = await orchestrator.scrape_all(force=False, competition_ids=["ES1", "ES2"])

    assert results["countries"]["status"] == "error"
    assert results["competitions"]["status"] == "partial"
    assert results["competitions"]["items_scraped"] == 1
    assert [e["id"] for e in results["competitions"]["errors"]] == ["ES2"]
    assert results["clubs"]["items_scraped"] == 2
    assert results["players"]["status"] == "partial"
    assert results["players"]["errors"] == [{"id": "131", "error": "squad table missing"}]
    assert results["players"]["items_scraped"] == 1
    assert results["player_stats"] == {"status": "success", "items_scraped": 1, "errors": []}
    assert scraped_stats == ["8198"]
    assert results["duration_seconds"] >= 0


@pytest.mark.asyncio
async def test_scrape_all_stops_when_cancelled(orchestrator, monkeypatch):
    async def get_countries(force=None):
        return []

    monkeypatch.setattr(orchestrator.countries, "get_countries", get_countries)
    orchestrator.cancel_all()

    with pytest.raises(asyncio.CancelledError):
        await orchestrator.scrape_all(competition_ids=["ES1"])


@pytest.mark.asyncio
async def test_clean_database_wipes_all_collections(orchestrator, store):
    await orchestrator.clean_database()

    wiped = {call[1] for call in store.calls if call[0] == "wipe"}
    assert wiped == {"countries", "competitions", "clubs", "players", "player_stats"}
