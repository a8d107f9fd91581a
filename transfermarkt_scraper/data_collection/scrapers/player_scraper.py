"""
Player Scraper

Kader eines Vereins aus der Detailansicht (``{club.link}{detailed_view_path}``),
anschließend Marktwertverlauf je Spieler über den MarketValueScraper.
"""

from __future__ import annotations

import re
from typing import Any, Callable, Optional

from ...common.codecs import date_from_string, height_from_string, money_from_string
from ...common.parsing import clean_text, image_id_from_url, is_cell_empty, parse_int, player_id_from_href
from ...database.services import clubs as club_service
from ...database.services import players as player_service
from ...domain.enums import Foot, Position
from ...domain.errors import ParseFailure, ScrapingError
from ...domain.models import Player
from .base import BaseScraper
from .market_value_scraper import MarketValueScraper

_AGE_RE = re.compile(r"\((\d+)\)")


def _parse_field(log, field: str, parser: Callable[[str], Any], text: Optional[str]) -> Any:
    if is_cell_empty(text):
        return None
    try:
        return parser(text)
    except ParseFailure as e:
        log.warning("%s; leaving %s unset", e, field)
        return None


class PlayerScraper(BaseScraper):
    name = "player"

    def __init__(self, *args, market_values: Optional[MarketValueScraper] = None, **kwargs):
        super().__init__(*args, **kwargs)
        self.market_values = market_values or MarketValueScraper(
            self.page, self.store, self.settings, http=self.http, inflight=self.inflight, cancel=self.cancel
        )

    def squad_url(self, club_link: str) -> str:
        return f"{club_link.rstrip('/')}{self.settings.detailed_view_path}"

    def parse_players_html(self, html: str, club_id: str, url: Optional[str] = None) -> list[Player]:
        soup = self.parse_html(html)
        log = self.page_logger(url)
        players: list[Player] = []
        for tr in soup.select("#yw1 table.items > tbody > tr"):
            tds = tr.find_all("td", recursive=False)
            if len(tds) < 10:
                continue
            link = tds[1].select_one(".hauptlink a")
            player_id = player_id_from_href(link.get("href") if link else None)
            if not player_id:
                log.warning("Player row without player link skipped")
                continue

            portrait = tds[1].select_one("table.inline-table img")
            position = tds[1].select_one("table.inline-table tr:nth-of-type(2)")
            birth = clean_text(tds[2].get_text(" "))
            age = _AGE_RE.search(birth or "")

            players.append(Player(
                id=player_id,
                club_id=club_id,
                name=clean_text(tds[1].select_one(".hauptlink").get_text(" ")),
                link=self.absolute(link["href"]),
                portrait=(portrait.get("data-src") or portrait.get("src")) if portrait else None,
                number=clean_text(tds[0].get_text(" ")) if not is_cell_empty(tds[0].get_text()) else None,
                position=Position.from_label(position.get_text(" ", strip=True) if position else None),
                date_of_birth=_parse_field(log, "date_of_birth", date_from_string, _AGE_RE.sub("", birth or "")),
                age=int(age.group(1)) if age else None,
                nationalities=Player.nationalities_from_flag_urls([img.get("src", "") for img in tds[3].select("img")]),
                height=_parse_field(log, "height", height_from_string, tds[4].get_text(strip=True)),
                foot=Foot.from_label(tds[5].get_text(strip=True)),
                contract_start=_parse_field(log, "contract_start", date_from_string, tds[6].get_text(strip=True)),
                contract_end=_parse_field(log, "contract_end", date_from_string, tds[8].get_text(strip=True)),
                market_value=_parse_field(log, "market_value", money_from_string, tds[9].get_text(strip=True)),
            ))
        return players

    async def get_players(self, club_id: str, force: Optional[bool] = None) -> list[Player]:
        force = self.settings.force_scraping if force is None else force
        async with self.inflight.hold(("players", club_id)) as waited:
            if waited or not force:
                stored = await player_service.get_players_by_club(self.store, club_id)
                if stored:
                    self.logger.info("Using %d stored players of club %s", len(stored), club_id)
                    return stored

            club = await club_service.get_club(self.store, club_id)
            if club is None or not club.link:
                raise ScrapingError(f"Club {club_id} unknown; scrape its competition first")

            url = self.squad_url(club.link)
            html = await self.fetch_page(url)
            players = self.parse_players_html(html, club_id, url)
            for player in players:
                try:
                    player.market_values = await self.market_values.get_market_values(player.id)
                except ScrapingError as e:
                    self.logger.warning("Market values of player %s unavailable: %s", player.id, e)
            saved = await player_service.upsert_players(self.store, players)
            await club_service.set_player_ids(self.store, club_id, [p.id for p in saved])
            self.logger.info("Scraped %d players of club %s", len(saved), club_id)
            return saved
