import pytest

from transfermarkt_scraper.database.services import clubs as club_service
from transfermarkt_scraper.database.services import competitions as competition_service
from transfermarkt_scraper.database.services import countries as country_service
from transfermarkt_scraper.database.services import players as player_service
from transfermarkt_scraper.domain.models import Club, Competition, Country, MarketValue, Player


@pytest.mark.asyncio
async def test_upsert_countries_extends_competition_ids(store):
    await country_service.upsert_countries(store, [Country(id="157", name="Spain", competition_ids=["ES1"])])
    await country_service.upsert_countries(store, [Country(id="157", competition_ids=["ES2", "ES1"])])

    country = await country_service.get_country(store, "157")
    assert country.competition_ids == ["ES1", "ES2"]
    assert country.name == "Spain"


@pytest.mark.asyncio
async def test_add_competition_creates_or_appends(store):
    await country_service.add_competition(store, Country(id="157", name="Spain"), "ES1")
    await country_service.add_competition(store, Country(id="157"), "ES2")
    await country_service.add_competition(store, Country(id="157"), "ES2")

    country = await country_service.get_country(store, "157")
    assert country.competition_ids == ["ES1", "ES2"]
    found = await country_service.find_country_by_competition(store, "ES2")
    assert found.id == "157"


@pytest.mark.asyncio
async def test_register_competitions_keeps_scraped_data(store):
    await competition_service.upsert_competition(
        store, Competition(id="ES1", name="LaLiga", clubs_count=20, is_scraped=True)
    )
    created = await competition_service.register_competitions(
        store,
        [Competition(id="ES1", name="ES1", country_id="157"), Competition(id="ES2", name="LaLiga2", country_id="157")],
    )

    assert created == 1
    es1 = await competition_service.get_competition(store, "ES1")
    assert (es1.name, es1.clubs_count, es1.is_scraped, es1.country_id) == ("LaLiga", 20, True, "157")
    assert [c.id for c in await competition_service.get_competitions_by_country(store, "157")] == ["ES1", "ES2"]


@pytest.mark.asyncio
async def test_upsert_competition_keeps_known_country(store):
    await competition_service.set_country(store, Competition(id="ES1", name="LaLiga"), "157")
    saved = await competition_service.upsert_competition(store, Competition(id="ES1", name="LaLiga", is_scraped=True))
    assert saved.country_id == "157"


@pytest.mark.asyncio
async def test_clubs_are_found_by_competition_membership(store):
    await club_service.upsert_clubs(store, [Club(id="131", competition_ids=["ES1"])])
    await club_service.upsert_clubs(store, [Club(id="131", competition_ids=["CL"]), Club(id="418", competition_ids=["ES1"])])

    assert [c.id for c in await club_service.get_clubs_by_competition(store, "ES1")] == ["131", "418"]
    assert [c.id for c in await club_service.get_clubs_by_competition(store, "CL")] == ["131"]

    assert await club_service.set_player_ids(store, "131", ["28003"])
    assert not await club_service.set_player_ids(store, "999", ["1"])


@pytest.mark.asyncio
async def test_upsert_players_keeps_market_values_when_none_scraped(store):
    history = [MarketValue(date="2024-06-01", value=15_000_000.0)]
    await player_service.upsert_players(store, [Player(id="28003", club_id="131", market_values=history)])
    await player_service.upsert_players(store, [Player(id="28003", club_id="131", name="L. Messi")])

    player = await player_service.get_player(store, "28003")
    assert player.name == "L. Messi"
    assert [mv.value for mv in player.market_values] == [15_000_000.0]
    assert [p.id for p in await player_service.get_players_by_club(store, "131")] == ["28003"]


@pytest.mark.asyncio
async def test_reassigned_competition_leaves_previous_country(store):
    await country_service.upsert_countries(store, [Country(id="40", name="Germany", competition_ids=["L1", "ES1"])])
    await competition_service.set_country(store, Competition(id="ES1", name="LaLiga"), "40")

    await competition_service.register_competitions(store, [Competition(id="ES1", name="LaLiga", country_id="157")])

    assert (await competition_service.get_competition(store, "ES1")).country_id == "157"
    assert (await country_service.get_country(store, "40")).competition_ids == ["L1"]
    assert await country_service.find_country_by_competition(store, "ES1") is None


@pytest.mark.asyncio
async def test_set_country_moves_competition_between_countries(store):
    await country_service.upsert_countries(store, [Country(id="40", competition_ids=["ES1"])])
    await competition_service.set_country(store, Competition(id="ES1"), "40")
    await country_service.add_competition(store, Country(id="157", name="Spain"), "ES1")

    saved = await competition_service.set_country(store, Competition(id="ES1"), "157")

    assert saved.country_id == "157"
    assert (await country_service.get_country(store, "40")).competition_ids == []
    assert (await country_service.find_country_by_competition(store, "ES1")).id == "157"
