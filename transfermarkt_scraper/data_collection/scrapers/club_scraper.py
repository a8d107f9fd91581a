"""
Club Scraper

Vereinstabelle einer Wettbewerbsseite (``#yw1 table.items``) der konfigurierten Saison.
"""

from __future__ import annotations

from typing import Optional

from ...common.codecs import money_from_string
from ...common.parsing import clean_text, club_id_from_href, is_cell_empty, parse_float, parse_int
from ...database.services import clubs as club_service
from ...database.services import competitions as competition_service
from ...domain.errors import ParseFailure, ScrapingError
from ...domain.models import Club
from .base import BaseScraper


class ClubScraper(BaseScraper):
    name = "club"

    def competition_clubs_url(self, competition_link: str) -> str:
        return f"{competition_link.rstrip('/')}{self.settings.season_path}{self.settings.season_id}"

    def parse_clubs_html(self, html: str, competition_id: str, url: Optional[str] = None) -> list[Club]:
        soup = self.parse_html(html)
        log = self.page_logger(url)
        clubs: list[Club] = []
        for tr in soup.select("#yw1 table.items > tbody > tr"):
            tds = tr.find_all("td", recursive=False)
            if len(tds) < 7:
                continue
            a = tds[1].select_one("a[title]")
            club_id = club_id_from_href(a.get("href") if a else None)
            if not club_id:
                log.warning("Club row without club link skipped")
                continue
            crest = tds[0].select_one("img")
            players = tds[2].select_one("a") or tds[2]
            club = Club(
                id=club_id,
                name=clean_text(a.get("title")),
                link=self.absolute(a["href"]),
                crest=crest.get("src", "").replace("tiny", "head") if crest else None,
                competition_ids=[competition_id],
                players_count=parse_int(players.get_text()),
                age_average=parse_float(tds[3].get_text()),
                foreigners_count=parse_int(tds[4].get_text()),
            )
            for attr, td in (("market_value_average", tds[5]), ("market_value", tds[6])):
                text = td.get_text(" ", strip=True)
                if is_cell_empty(text):
                    continue
                try:
                    setattr(club, attr, money_from_string(text))
                except ParseFailure as e:
                    log.warning("%s; leaving field unset", e)
            clubs.append(club)
        return clubs

    async def get_clubs(self, competition_id: str, force: Optional[bool] = None) -> list[Club]:
        force = self.settings.force_scraping if force is None else force
        async with self.inflight.hold(("clubs", competition_id)) as waited:
            if waited or not force:
                stored = await club_service.get_clubs_by_competition(self.store, competition_id)
                if stored:
                    self.logger.info("Using %d stored clubs of %s", len(stored), competition_id)
                    return stored

            competition = await competition_service.get_competition(self.store, competition_id)
            if competition is None or not competition.link:
                raise ScrapingError(f"Competition {competition_id} unknown; scrape it first")

            url = self.competition_clubs_url(competition.link)
            html = await self.fetch_page(url)
            clubs = self.parse_clubs_html(html, competition_id, url)
            self.logger.info("Scraped %d clubs of %s", len(clubs), competition_id)
            return await club_service.upsert_clubs(self.store, clubs)
