import datetime as dt

import pytest

from transfermarkt_scraper.data_collection.field_classifier import FieldClassifier
from transfermarkt_scraper.data_collection.scrapers.player_stat_scraper import (
    PlayerStatScraper,
    competition_page_link,
    parse_counter,
)
from transfermarkt_scraper.database.services import competitions as competition_service
from transfermarkt_scraper.database.services import player_stats as player_stat_service
from transfermarkt_scraper.database.services import players as player_service
from transfermarkt_scraper.domain.enums import MatchResult, NotPlayingReason, Position
from transfermarkt_scraper.domain.errors import ParseFailure
from transfermarkt_scraper.domain.models import Competition, Player, PlayerSeasonStat, PlayerStat

SEASON_HTML = """
<html><body>
<select name="saison">
  <option value="ges">All seasons</option>
  <option value="2024" selected>24/25</option>
  <option value="2023">23/24</option>
</select>
<div id="yw1" class="grid-view">
  <table class="items">
    <thead><tr><th colspan="2">Competition</th></tr></thead>
    <tbody>
      <tr class="odd">
        <td class="hauptlink no-border-rechts zentriert"><img src="https://tmssl.akamaized.net/images/logo/verysmall/es1.png" title="LaLiga"></td>
        <td class="hauptlink no-border-links"><a href="/laliga/leistungsdatendetails/spieler/28003/saison/2024/wettbewerb/ES1" title="LaLiga">LaLiga</a></td>
        <td class="zentriert">34</td>
        <td class="zentriert">20</td>
        <td class="zentriert">10</td>
        <td class="zentriert">-</td>
        <td class="zentriert">3</td>
        <td class="zentriert">12</td>
        <td class="zentriert">5</td>
        <td class="zentriert">-</td>
        <td class="zentriert">-</td>
        <td class="zentriert">4</td>
        <td class="rechts">120'</td>
        <td class="rechts">2.450'</td>
      </tr>
    </tbody>
    <tfoot>
      <tr>
        <td></td>
        <td>Total 24/25:</td>
        <td class="zentriert">34</td>
        <td class="zentriert">20</td>
        <td class="zentriert">10</td>
        <td class="zentriert">-</td>
        <td class="zentriert">3</td>
        <td class="zentriert">12</td>
        <td class="zentriert">5</td>
        <td class="zentriert">-</td>
        <td class="zentriert">-</td>
        <td class="zentriert">4</td>
        <td class="rechts">120'</td>
        <td class="rechts">2.450'</td>
      </tr>
    </tfoot>
  </table>
</div>
<div class="box">
  <h2 class="content-box-headline"><a name="ES1"></a>LaLiga</h2>
  <div class="responsive-table">
    <table>
      <thead><tr><th>Matchday</th></tr></thead>
      <tbody>
        <tr>
          <td class="zentriert"><a href="/laliga/spieltag/wettbewerb/ES1/saison_id/2024/spieltag/1">1</a></td>
          <td class="zentriert">Aug 17, 2024</td>
          <td class="zentriert"><a href="/fc-valencia/spielplan/verein/1049/saison_id/2024" title="Valencia CF"><img src="https://tmssl.akamaized.net/images/wappen/verysmall/1049.png"></a></td>
          <td class="no-border-links">(14.)</td>
          <td class="zentriert"><a href="/fc-barcelona/spielplan/verein/131/saison_id/2024" title="FC Barcelona"><img src="https://tmssl.akamaized.net/images/wappen/verysmall/131.png"></a></td>
          <td class="no-border-links">(1.)</td>
          <td class="zentriert"><a href="/spielbericht/index/spielbericht/4424101"><span class="greentext">1:2</span></a></td>
          <td class="zentriert"><a title="Centre-Forward">CF</a><span class="kapitaenicon-table" title="Captain"></span></td>
          <td class="zentriert">2</td>
          <td class="zentriert"></td>
          <td class="zentriert"></td>
          <td class="zentriert">45'</td>
          <td class="zentriert"></td>
          <td class="zentriert"></td>
          <td class="zentriert"></td>
          <td class="zentriert">78'</td>
          <td class="rechts">78'</td>
        </tr>
        <tr>
          <td class="zentriert"><a href="/laliga/spieltag/wettbewerb/ES1/saison_id/2024/spieltag/2">2</a></td>
          <td class="zentriert">Aug 24, 2024 (2)</td>
          <td class="zentriert"><a href="/fc-barcelona/spielplan/verein/131/saison_id/2024" title="FC Barcelona"><img src="x.png"></a></td>
          <td></td>
          <td class="zentriert"><a href="/athletic-bilbao/spielplan/verein/621/saison_id/2024" title="Athletic Bilbao"><img src="y.png"></a></td>
          <td></td>
          <td class="zentriert"><a href="/spielbericht/index/spielbericht/4424110"><span class="bluetext">2:2<span> aet</span></span></a></td>
          <td colspan="10">Injured (muscle injury)</td>
        </tr>
        <tr><td colspan="17">Information not yet available</td></tr>
        <tr>
          <td>3</td><td>-</td><td>no clubs</td><td></td><td></td><td></td>
          <td><a href="/x"><span class="redtext">0:1</span></a></td><td colspan="10">On the bench</td>
        </tr>
      </tbody>
      <tfoot><tr><td colspan="17">Squad: 34, Starting eleven: 30, On the bench: 2, Suspended: 1, Injured: 3</td></tr></tfoot>
    </table>
  </div>
</div>
</body></html>
"""

CAREER_HTML = """
<html><body>
<select name="saison">
  <option value="ges" selected>All seasons</option>
  <option value="2024">24/25</option>
  <option value="2023">23/24</option>
</select>
<div id="yw1"><table class="items">
  <tbody>
    <tr>
      <td><img src="es1.png"></td>
      <td><a href="/laliga/leistungsdatendetails/spieler/28003/saison/ges/wettbewerb/ES1" title="LaLiga">LaLiga</a></td>
      <td>520</td><td>474</td><td>268</td><td>1</td><td>30</td><td>40</td><td>70</td><td>-</td><td>-</td><td>60</td><td>85'</td><td>40.234'</td>
    </tr>
  </tbody>
  <tfoot><tr>
    <td></td><td>Total:</td>
    <td>520</td><td>474</td><td>268</td><td>1</td><td>30</td><td>40</td><td>70</td><td>-</td><td>-</td><td>60</td><td>85'</td><td>40.234'</td>
  </tr></tfoot>
</table></div>
</body></html>
"""

GOALKEEPER_HTML = """
<html><body><div id="yw1"><table class="items"><tbody></tbody>
<tfoot><tr>
  <td></td><td>Total 24/25:</td>
  <td>30</td><td>-</td><td>-</td><td>1</td><td>-</td><td>2</td><td>-</td><td>-</td><td>28</td><td>12</td><td>2.700'</td>
</tr></tfoot>
</table></div></body></html>
"""


@pytest.fixture
def scraper(make_page, make_http, store, settings):
    return PlayerStatScraper(make_page(), store, settings, http=make_http(), classifier=FieldClassifier())


@pytest.mark.parametrize("text,expected", [("-", 0), ("", 0), ("12", 12), ("2.450'", 2450), ("90+3", 93), ("✔", 90)])
def test_parse_counter(text, expected):
    assert parse_counter(text) == expected


def test_parse_counter_rejects_text():
    with pytest.raises(ParseFailure):
        parse_counter("n/a")


def test_competition_page_link():
    assert competition_page_link("/laliga/leistungsdatendetails/spieler/28003/saison/2024/wettbewerb/ES1", "ES1") == (
        "/laliga/startseite/wettbewerb/ES1"
    )


def test_stats_url(scraper):
    assert scraper.stats_url("28003", "2024") == "/player/leistungsdatendetails/spieler/28003/plus/1?saison=2024"


def test_parse_season_ids(scraper):
    assert scraper.parse_season_ids(SEASON_HTML) == ["2024", "2023"]


def test_parse_season(scraper):
    season = scraper.parse_season_html(SEASON_HTML, "28003", "2024")

    assert season.is_scraped
    assert season.id == PlayerSeasonStat(player_id="28003", season_id="2024").id
    assert (season.appearances, season.goals, season.assists, season.own_goals) == (34, 20, 10, 0)
    assert (season.substitutions_on, season.substitutions_off) == (3, 12)
    assert (season.yellow_cards, season.second_yellow_cards, season.red_cards) == (5, 0, 0)
    assert (season.penalty_goals, season.minutes_per_goal, season.minutes_played) == (4, 120, 2450)
    assert season.goals_conceded is None

    (stat,) = season.competition_stats
    assert stat.competition_id == "ES1"
    assert stat.competition_name == "LaLiga"
    assert stat.competition_link == "https://www.transfermarkt.com/laliga/startseite/wettbewerb/ES1"
    assert stat.competition_logo == "https://tmssl.akamaized.net/images/logo/verysmall/es1.png"
    assert (stat.appearances, stat.goals) == (34, 20)
    assert (stat.squad, stat.starting_eleven, stat.on_the_bench, stat.suspended, stat.injured) == (34, 30, 2, 1, 3)

    played, missed = stat.match_stats
    assert played.date == dt.date(2024, 8, 17)
    assert (played.home_club_id, played.away_club_id) == ("1049", "131")
    assert (played.home_club_name, played.away_club_name) == ("Valencia CF", "FC Barcelona")
    assert (played.home_club_goals, played.away_club_goals) == (1, 2)
    assert played.match_result is MatchResult.WIN
    assert played.match_result_link == "https://www.transfermarkt.com/spielbericht/index/spielbericht/4424101"
    assert played.match_day == "1"
    assert played.position is Position.CENTRE_FORWARD
    assert played.is_captain
    assert (played.goals, played.assists, played.yellow_card) == (2, 0, 45)
    assert (played.substituted_off, played.minutes_played) == (78, 78)
    assert played.not_playing_reason is NotPlayingReason.NONE

    assert missed.date == dt.date(2024, 8, 24)
    assert missed.match_result is MatchResult.DRAW
    assert missed.is_result_addition
    assert not missed.is_result_penalties
    assert missed.not_playing_reason is NotPlayingReason.INJURED
    assert missed.minutes_played is None


def test_parse_goalkeeper_columns(scraper):
    season = scraper.parse_season_html(GOALKEEPER_HTML, "74857", "2024", Position.GOALKEEPER)
    assert (season.appearances, season.own_goals, season.substitutions_on, season.yellow_cards) == (30, 0, 1, 2)
    assert (season.goals_conceded, season.clean_sheets, season.minutes_played) == (28, 12, 2700)
    assert season.assists is None
    assert season.penalty_goals is None


def test_parse_career(scraper):
    career = scraper.parse_career_html(CAREER_HTML, "28003")
    assert (career.appearances, career.goals, career.assists, career.minutes_played) == (520, 474, 268, 40234)
    (comp,) = career.competition_stats
    assert (comp.competition_id, comp.competition_name, comp.goals) == ("ES1", "LaLiga", 474)


@pytest.mark.asyncio
async def test_get_player_stat_merges_into_stored_aggregate(make_page, make_http, store, settings):
    await competition_service.set_country(store, Competition(id="ES1", name="LaLiga"), "157")
    await player_service.upsert_players(store, [Player(id="28003", position=Position.CENTRE_FORWARD)])
    old_2023 = PlayerSeasonStat(player_id="28003", season_id="2023", goals=50, is_scraped=True)
    old_2024 = PlayerSeasonStat(player_id="28003", season_id="2024", goals=1, is_scraped=True)
    await player_stat_service.insert_player_stat(
        store, PlayerStat(player_id="28003", season_stats=[old_2023, old_2024])
    )

    page = make_page(pages={
        "/player/leistungsdatendetails/spieler/28003/plus/1?saison=ges": CAREER_HTML,
        "/player/leistungsdatendetails/spieler/28003/plus/1?saison=2024": SEASON_HTML,
    })
    scraper = PlayerStatScraper(page, store, settings, http=make_http(), classifier=FieldClassifier())

    result = await scraper.get_player_stat("28003", season_ids=["2024"], force=True)

    assert [s.season_id for s in result.season_stats] == ["2023", "2024"]
    assert [s.goals for s in result.season_stats] == [50, 20]
    assert result.career.goals == 474
    assert len(page.goto_calls) == 2

    stored = await player_stat_service.get_player_stat(store, "28003")
    assert [s.goals for s in stored.season_stats] == [50, 20]
    assert stored.career.goals == 474


@pytest.mark.asyncio
async def test_get_player_stat_uses_stored_seasons_without_force(make_page, make_http, store, settings):
    season = PlayerSeasonStat(player_id="28003", season_id="2024", goals=1, is_scraped=True)
    await player_stat_service.insert_player_stat(store, PlayerStat(player_id="28003", season_stats=[season]))
    page = make_page()
    scraper = PlayerStatScraper(page, store, settings, http=make_http(), classifier=FieldClassifier())

    result = await scraper.get_player_stat("28003", season_ids=["2024"])

    assert [s.goals for s in result.season_stats] == [1]
    assert page.goto_calls == []


@pytest.mark.asyncio
async def test_get_player_stat_all_seasons_scraped_needs_no_navigation(make_page, make_http, store, settings):
    season = PlayerSeasonStat(player_id="28003", season_id="2024", goals=1, is_scraped=True)
    await player_stat_service.insert_player_stat(store, PlayerStat(player_id="28003", season_stats=[season]))
    page = make_page()
    scraper = PlayerStatScraper(page, store, settings, http=make_http(), classifier=FieldClassifier())

    result = await scraper.get_player_stat("28003", force=False)

    assert [s.goals for s in result.season_stats] == [1]
    assert page.goto_calls == []


@pytest.mark.asyncio
async def test_get_player_stat_scrapes_only_pending_seasons(make_page, make_http, store, settings):
    await competition_service.set_country(store, Competition(id="ES1", name="LaLiga"), "157")
    done = PlayerSeasonStat(player_id="28003", season_id="2023", goals=50, is_scraped=True)
    pending = PlayerSeasonStat(player_id="28003", season_id="2024")
    await player_stat_service.insert_player_stat(store, PlayerStat(player_id="28003", season_stats=[done, pending]))
    page = make_page(pages={"/player/leistungsdatendetails/spieler/28003/plus/1?saison=2024": SEASON_HTML})
    scraper = PlayerStatScraper(page, store, settings, http=make_http(), classifier=FieldClassifier())

    result = await scraper.get_player_stat("28003", force=False)

    assert page.goto_calls == ["/player/leistungsdatendetails/spieler/28003/plus/1?saison=2024"]
    assert [(s.season_id, s.goals, s.is_scraped) for s in result.season_stats] == [
        ("2023", 50, True), ("2024", 20, True),
    ]
    stored = await player_stat_service.get_player_stat(store, "28003")
    assert scraper.pending_seasons(stored) == []


def test_pending_seasons_with_requested_ids():
    stored = PlayerStat(player_id="28003", season_stats=[
        PlayerSeasonStat(player_id="28003", season_id="2023", is_scraped=True),
        PlayerSeasonStat(player_id="28003", season_id="2024"),
    ])
    assert PlayerStatScraper.pending_seasons(stored) == ["2024"]
    assert PlayerStatScraper.pending_seasons(stored, ["2022", "2023"]) == ["2022"]
