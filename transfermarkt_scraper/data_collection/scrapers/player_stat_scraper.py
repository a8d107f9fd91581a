"""
Player Stat Scraper

Detaillierte Leistungsdaten eines Spielers:
 - ``?saison=ges``: Liste der Saisons (Dropdown) und Karrieresummen je Wettbewerb
 - ``?saison=<id>``: Saisonsumme (tfoot), Zeilen je Wettbewerb, Fußzeile je Wettbewerb
   ("Squad: 34, Starting eleven: 30, ...") und Einzelspiele je Wettbewerb

Torhüter haben eine andere Spaltenreihenfolge (Gegentore/Zu-Null statt Vorlagen/Elfmeter).
Unbekannte Wettbewerbe laufen über die Resolution Engine, das Ergebnis über die Reconciliation.
"""

from __future__ import annotations

import re
from typing import Any, Optional
from urllib.parse import urlsplit

from bs4 import BeautifulSoup, Tag

from ...common.codecs import date_from_string
from ...common.parsing import clean_text, club_id_from_href, competition_id_from_href, is_cell_empty
from ...database.reconciliation import reconcile_player_stats
from ...database.services import competitions as competition_service
from ...database.services import player_stats as player_stat_service
from ...database.services import players as player_service
from ...domain.contracts import CompetitionRef, Unresolved
from ...domain.enums import MatchResult, NotPlayingReason, Position
from ...domain.errors import ParseFailure, ResolutionCancelled, ScrapingError
from ...domain.models import (
    PlayerCareerCompetitionStat,
    PlayerCareerStat,
    PlayerSeasonCompetitionMatchStat,
    PlayerSeasonCompetitionStat,
    PlayerSeasonStat,
    PlayerStat,
)
from ..field_classifier import SEASON_COMPETITION_STAT, FieldClassifier, default_classifier
from ..resolution import ResolutionEngine
from .base import BaseScraper

CAREER_SEASON = "ges"

COMMON_COLUMNS = {"appearances": 2, "goals": 3}
GOALKEEPER_COLUMNS = {
    **COMMON_COLUMNS,
    "own_goals": 4,
    "substitutions_on": 5,
    "substitutions_off": 6,
    "yellow_cards": 7,
    "second_yellow_cards": 8,
    "red_cards": 9,
    "goals_conceded": 10,
    "clean_sheets": 11,
    "minutes_played": 12,
}
FIELD_PLAYER_COLUMNS = {
    **COMMON_COLUMNS,
    "assists": 4,
    "own_goals": 5,
    "substitutions_on": 6,
    "substitutions_off": 7,
    "yellow_cards": 8,
    "second_yellow_cards": 9,
    "red_cards": 10,
    "penalty_goals": 11,
    "minutes_per_goal": 12,
    "minutes_played": 13,
}
MATCH_COLUMNS = {
    "goals": 8,
    "assists": 9,
    "own_goals": 10,
    "yellow_card": 11,
    "second_yellow_card": 12,
    "red_card": 13,
    "substituted_on": 14,
    "substituted_off": 15,
    "minutes_played": 16,
}
RESULT_CLASSES = {"greentext": MatchResult.WIN, "redtext": MatchResult.LOSS, "bluetext": MatchResult.DRAW}
TICK = "✔"

_AGE_SUFFIX_RE = re.compile(r"\s*\(\d+\)")


def parse_counter(text: Optional[str]) -> int:
    """Zählerzelle: leer/"-" = 0, "45+2" = 47, "1.234'" = 1234, Haken = 90."""
    if is_cell_empty(text):
        return 0
    value = text.replace("'", "").replace(".", "").replace(" ", "").strip()
    if value == TICK:
        return 90
    try:
        return sum(int(part) for part in value.split("+"))
    except ValueError as e:
        raise ParseFailure("counter", text) from e


def competition_page_link(href: str, competition_id: str) -> str:
    """Leistungsdaten-Link -> Startseite des Wettbewerbs ('/laliga/.../wettbewerb/ES1' -> '/laliga/startseite/wettbewerb/ES1')."""
    slug = urlsplit(href).path.strip("/").split("/")[0]
    return f"/{slug}/startseite/wettbewerb/{competition_id}"


def columns_for(position: Position) -> dict[str, int]:
    return GOALKEEPER_COLUMNS if position is Position.GOALKEEPER else FIELD_PLAYER_COLUMNS


class PlayerStatScraper(BaseScraper):
    name = "player_stat"

    def __init__(self, *args, classifier: Optional[FieldClassifier] = None, **kwargs):
        super().__init__(*args, **kwargs)
        self.classifier = classifier or default_classifier()

    def stats_url(self, player_id: str, season_id: str) -> str:
        return f"{self.settings.player_stats_path}/{player_id}{self.settings.detailed_view_path}?saison={season_id}"

    # ------------------------------------------------------------------
    # Parsing
    # ------------------------------------------------------------------

    def _cells(self, row: Tag) -> list[Tag]:
        return row.find_all("td", recursive=False)

    def _counters(self, cells: list[Tag], columns: dict[str, int], log) -> dict[str, Any]:
        values: dict[str, Any] = {}
        for field, index in columns.items():
            if index >= len(cells):
                values[field] = None
                continue
            try:
                values[field] = parse_counter(cells[index].get_text(" ", strip=True))
            except ParseFailure as e:
                log.warning("%s; leaving %s unset", e, field)
                values[field] = None
        return values

    def parse_season_ids(self, html: str) -> list[str]:
        soup = self.parse_html(html)
        ids = [opt["value"] for opt in soup.select("select[name='saison'] option[value]")]
        return [i for i in ids if i and i != CAREER_SEASON]

    def _competition_box(self, soup: BeautifulSoup, competition_id: str) -> Optional[Tag]:
        anchor = soup.select_one(f"a[name='{competition_id}']")
        if anchor is None:
            return None
        for parent in anchor.parents:
            if parent.select_one("div.responsive-table > table"):
                return parent
        return None

    def parse_season_html(
        self, html: str, player_id: str, season_id: str, position: Position = Position.UNKNOWN, url: Optional[str] = None
    ) -> PlayerSeasonStat:
        soup = self.parse_html(html)
        log = self.page_logger(url)
        columns = columns_for(position)

        footer = soup.select("#yw1 > table.items > tfoot tr > td")
        season = PlayerSeasonStat(
            player_id=player_id, season_id=season_id, is_scraped=True, **self._counters(footer, columns, log)
        )

        for row in soup.select("#yw1 > table.items > tbody > tr"):
            cells = self._cells(row)
            if len(cells) < 3:
                continue
            link = cells[1].select_one("a[href]")
            competition_id = competition_id_from_href(link["href"]) if link else None
            if not competition_id:
                log.warning("Competition row without competition link skipped")
                continue
            logo = cells[0].select_one("img")
            stat = PlayerSeasonCompetitionStat(
                player_id=player_id,
                season_id=season_id,
                competition_id=competition_id,
                competition_name=clean_text(link.get("title") or link.get_text(" ")),
                competition_link=self.absolute(competition_page_link(link["href"], competition_id)),
                competition_logo=logo.get("src") if logo else None,
                **self._counters(cells, columns, log),
            )
            box = self._competition_box(soup, competition_id)
            if box is not None:
                tfoot = box.select_one("div.responsive-table > table > tfoot")
                if tfoot is not None:
                    self.classifier.assign_pairs(SEASON_COMPETITION_STAT, tfoot.get_text(" ", strip=True), stat, log=log)
                stat.match_stats = self.parse_match_rows(box, player_id, log)
            season.competition_stats.append(stat)
        return season

    def _club_cell(self, cell: Tag) -> dict[str, Optional[str]]:
        a = cell.select_one("a[href]")
        img = cell.select_one("img")
        href = a["href"] if a else None
        return {
            "id": club_id_from_href(href),
            "name": clean_text((a.get("title") if a else None) or cell.get_text(" ")),
            "link": self.absolute(href),
            "logo": img.get("src") if img else None,
        }

    def _result_cell(self, cell: Tag) -> dict[str, Any]:
        a = cell.select_one("a")
        span = a.select_one(":scope > span") if a else None
        if span is None:
            raise ParseFailure("result", cell.get_text(" ", strip=True))
        score = span.get_text(" ", strip=True).split(" ")[0].split(":")
        try:
            home, away = int(score[0]), int(score[1])
        except (ValueError, IndexError) as e:
            raise ParseFailure("result", span.get_text(" ", strip=True)) from e
        extra = span.select_one(":scope > span")
        extra_text = extra.get_text(" ", strip=True).lower() if extra else ""
        classes = span.get("class") or ["bluetext"]
        return {
            "home_club_goals": home,
            "away_club_goals": away,
            "match_result": next((RESULT_CLASSES[c] for c in classes if c in RESULT_CLASSES), MatchResult.UNKNOWN),
            "match_result_link": self.absolute(a.get("href")),
            "is_result_addition": "aet" in extra_text,
            "is_result_penalties": "on pens" in extra_text,
        }

    def parse_match_rows(self, box: Tag, player_id: str, log) -> list[PlayerSeasonCompetitionMatchStat]:
        matches: list[PlayerSeasonCompetitionMatchStat] = []
        for row in box.select("div.responsive-table > table > tbody > tr"):
            cells = self._cells(row)
            text = row.get_text(" ", strip=True)
            if len(cells) < 8 or not text or "information not yet available" in text.lower():
                continue
            try:
                day = date_from_string(_AGE_SUFFIX_RE.sub("", cells[1].get_text(" ", strip=True)))
                result = self._result_cell(cells[6])
            except ParseFailure as e:
                log.warning("%s; match row skipped", e)
                continue
            home, away = self._club_cell(cells[2]), self._club_cell(cells[4])
            if day is None or not home["id"] or not away["id"]:
                log.warning("Match row without date or club ids skipped: %s", text[:80])
                continue

            matchday = cells[0].select_one("a")
            values: dict[str, Any] = {
                "player_id": player_id,
                "home_club_id": home["id"],
                "away_club_id": away["id"],
                "date": day,
                "match_day": clean_text(cells[0].get_text(" ")),
                "link": self.absolute(matchday.get("href")) if matchday else None,
                "home_club_name": home["name"],
                "home_club_logo": home["logo"],
                "home_club_link": home["link"],
                "away_club_name": away["name"],
                "away_club_logo": away["logo"],
                "away_club_link": away["link"],
                **result,
            }
            if row.select_one("td[colspan]") is None:
                position = cells[7].select_one("a")
                values["position"] = Position.from_label(position.get("title") if position else None)
                values["is_captain"] = bool(position and position.find_next_sibling("span"))
                values.update(self._counters(cells, MATCH_COLUMNS, log))
            else:
                values["not_playing_reason"] = NotPlayingReason.from_label(cells[7].get_text(" ", strip=True))
            matches.append(PlayerSeasonCompetitionMatchStat(**values))
        return matches

    def parse_career_html(self, html: str, player_id: str, position: Position = Position.UNKNOWN, url: Optional[str] = None) -> PlayerCareerStat:
        soup = self.parse_html(html)
        log = self.page_logger(url)
        columns = columns_for(position)
        totals = self._counters(soup.select("#yw1 > table.items > tfoot tr > td"), columns, log)
        career = PlayerCareerStat(**{k: v or 0 for k, v in totals.items() if k in PlayerCareerStat.model_fields})
        for row in soup.select("#yw1 > table.items > tbody > tr"):
            cells = self._cells(row)
            link = cells[1].select_one("a[href]") if len(cells) > 1 else None
            competition_id = competition_id_from_href(link["href"]) if link else None
            if not competition_id:
                continue
            counters = self._counters(cells, columns, log)
            career.competition_stats.append(PlayerCareerCompetitionStat(
                player_id=player_id,
                competition_id=competition_id,
                competition_name=clean_text(link.get("title") or link.get_text(" ")),
                **{k: v or 0 for k, v in counters.items() if k in PlayerCareerCompetitionStat.model_fields},
            ))
        return career

    # ------------------------------------------------------------------
    # Flow
    # ------------------------------------------------------------------

    async def _resolve_competitions(self, season: PlayerSeasonStat, seen: set[str]) -> None:
        engine = ResolutionEngine(self.page, self.http, self.settings, store=self.store, log=self.logger)
        for stat in season.competition_stats:
            if stat.competition_id in seen or not stat.competition_link:
                continue
            seen.add(stat.competition_id)
            stored = await competition_service.get_competition(self.store, stat.competition_id)
            if stored is not None and stored.country_id:
                continue
            ref = CompetitionRef(stat.competition_id, stat.competition_name or stat.competition_id, stat.competition_link)
            outcome = await engine.resolve_country_for_competition(ref, cancel=self.cancel)
            if isinstance(outcome, Unresolved) and isinstance(outcome.reason, ResolutionCancelled):
                self.check_cancelled()

    @staticmethod
    def pending_seasons(stored: PlayerStat, season_ids: Optional[list[str]] = None) -> list[str]:
        """Seasons still to scrape; without *season_ids* every stored season is considered."""
        scraped = {s.season_id for s in stored.season_stats if s.is_scraped}
        if season_ids is None:
            season_ids = [s.season_id for s in stored.season_stats]
        return [s for s in season_ids if s not in scraped]

    async def _scrape_seasons(
        self, player_id: str, season_ids: list[str], position: Position, keep: set[str]
    ) -> list[PlayerSeasonStat]:
        seasons: list[PlayerSeasonStat] = []
        seen: set[str] = set()
        for season_id in season_ids:
            url = self.stats_url(player_id, season_id)
            try:
                html = await self.fetch_page(url)
                season = self.parse_season_html(html, player_id, season_id, position, url)
            except ScrapingError as e:
                self.logger.error("Season %s of player %s failed: %s", season_id, player_id, e)
                # Platzhalter, damit der nächste Lauf die Saison erneut versucht
                if season_id not in keep:
                    seasons.append(PlayerSeasonStat(player_id=player_id, season_id=season_id))
                continue
            await self._resolve_competitions(season, seen)
            seasons.append(season)
        return seasons

    async def get_player_stat(
        self, player_id: str, season_ids: Optional[list[str]] = None, force: Optional[bool] = None
    ) -> PlayerStat:
        force = self.settings.force_scraping if force is None else force
        async with self.inflight.hold(("player_stat", player_id)) as waited:
            stored = await player_stat_service.get_player_stat(self.store, player_id)
            player = await player_service.get_player(self.store, player_id)
            position = player.position if player else Position.UNKNOWN
            scraped = {s.season_id for s in stored.season_stats if s.is_scraped} if stored else set()

            if stored is not None and (waited or not force):
                pending = self.pending_seasons(stored, season_ids)
                if not pending:
                    self.logger.info("Using stored stats of player %s", player_id)
                    return stored
                if not force:
                    self.logger.info("Scraping %d pending seasons of player %s", len(pending), player_id)
                    seasons = await self._scrape_seasons(player_id, pending, position, scraped)
                    return await reconcile_player_stats(self.store, player_id, seasons)

            career_url = self.stats_url(player_id, CAREER_SEASON)
            career_html = await self.fetch_page(career_url)
            career = self.parse_career_html(career_html, player_id, position, career_url)
            if season_ids is None:
                season_ids = self.parse_season_ids(career_html)

            seasons = await self._scrape_seasons(player_id, season_ids, position, scraped)
            return await reconcile_player_stats(self.store, player_id, seasons, career)
