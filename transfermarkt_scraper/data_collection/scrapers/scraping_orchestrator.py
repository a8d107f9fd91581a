"""
Scraping Orchestrator für den Transfermarkt Scraper

Koordiniert die Kaskade Länder -> Wettbewerbe -> Vereine -> Spieler -> Statistiken.
Alle Scraper teilen sich Page, Store, HTTP-Client, SingleFlight und Cancel-Event eines
Request Scopes. Fehler einer Entität brechen ihre Geschwister nicht ab.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from typing import Any, Optional

from ...common.http import HttpClient
from ...common.inflight import SingleFlight
from ...core.config import Settings
from ...core.config import settings as default_settings
from ...database.services.clubs import wipe_clubs
from ...database.services.competitions import wipe_competitions
from ...database.services.countries import wipe_countries
from ...database.services.player_stats import wipe_player_stats
from ...database.services.players import wipe_players
from ...domain.errors import ScraperError
from .base import BaseScraper
from .club_scraper import ClubScraper
from .competition_scraper import CompetitionScraper
from .country_scraper import CountryScraper
from .market_value_scraper import MarketValueScraper
from .player_scraper import PlayerScraper
from .player_stat_scraper import PlayerStatScraper


class ScrapingOrchestrator:
    """Orchestriert alle Scraping-Aktivitäten eines Request Scopes"""

    def __init__(
        self,
        page,
        store,
        settings: Optional[Settings] = None,
        http: Optional[HttpClient] = None,
        cancel: Optional[asyncio.Event] = None,
    ):
        self.page = page
        self.store = store
        self.settings = settings or default_settings
        self.http = http or HttpClient.from_settings(self.settings)
        self.inflight = SingleFlight()
        self.cancel = cancel or asyncio.Event()
        self.scrapers: dict[str, BaseScraper] = {}
        self.logger = logging.getLogger("scraping_orchestrator")

        shared = dict(settings=self.settings, http=self.http, inflight=self.inflight, cancel=self.cancel)
        market_values = MarketValueScraper(page, store, **shared)
        for scraper in (
            CountryScraper(page, store, **shared),
            CompetitionScraper(page, store, **shared),
            ClubScraper(page, store, **shared),
            market_values,
            PlayerScraper(page, store, market_values=market_values, **shared),
            PlayerStatScraper(page, store, **shared),
        ):
            self.register_scraper(scraper)

    def register_scraper(self, scraper: BaseScraper):
        """Registriert einen Scraper unter seinem Namen"""
        self.scrapers[scraper.name] = scraper
        self.logger.debug("Registered scraper: %s", scraper.name)

    @property
    def countries(self) -> CountryScraper:
        return self.scrapers["country"]

    @property
    def competitions(self) -> CompetitionScraper:
        return self.scrapers["competition"]

    @property
    def clubs(self) -> ClubScraper:
        return self.scrapers["club"]

    @property
    def players(self) -> PlayerScraper:
        return self.scrapers["player"]

    @property
    def player_stats(self) -> PlayerStatScraper:
        return self.scrapers["player_stat"]

    def cancel_all(self) -> None:
        """Signalisiert allen Scrapern (und laufenden Resolutions) den Abbruch"""
        self.cancel.set()

    @staticmethod
    def _new_result() -> dict[str, Any]:
        return {"status": "success", "items_scraped": 0, "errors": []}

    def _record_error(self, result: dict[str, Any], entity: str, key: str, error: Exception) -> None:
        result["status"] = "partial"
        result["errors"].append({"id": key, "error": str(error)})
        self.logger.error("Scraping %s %s failed: %s", entity, key, error)

    async def scrape_all(self, force: Optional[bool] = None, competition_ids: Optional[list[str]] = None) -> dict[str, Any]:
        """Läuft die komplette Kaskade; optional nur für *competition_ids*.

        Rückgabe: Status je Entitätstyp (``items_scraped``, ``errors``) plus Dauer.
        """
        start_time = datetime.now()
        results = {name: self._new_result() for name in ("countries", "competitions", "clubs", "players", "player_stats")}

        try:
            countries = await self.countries.get_countries(force)
            results["countries"]["items_scraped"] = len(countries)
        except ScraperError as e:
            results["countries"] = {"status": "error", "items_scraped": 0, "errors": [{"id": "*", "error": str(e)}]}
            self.logger.error("Scraping countries failed: %s", e)
            countries = []

        wanted = competition_ids or [cid for country in countries for cid in country.competition_ids]
        for competition_id in dict.fromkeys(wanted):
            self.cancel_check()
            try:
                await self.competitions.get_competition(competition_id, force)
                results["competitions"]["items_scraped"] += 1
                clubs = await self.clubs.get_clubs(competition_id, force)
                results["clubs"]["items_scraped"] += len(clubs)
            except ScraperError as e:
                self._record_error(results["competitions"], "competition", competition_id, e)
                continue

            for club in clubs:
                self.cancel_check()
                try:
                    players = await self.players.get_players(club.id, force)
                    results["players"]["items_scraped"] += len(players)
                except ScraperError as e:
                    self._record_error(results["players"], "club", club.id, e)
                    continue

                for player in players:
                    self.cancel_check()
                    try:
                        await self.player_stats.get_player_stat(player.id, force=force)
                        results["player_stats"]["items_scraped"] += 1
                    except ScraperError as e:
                        self._record_error(results["player_stats"], "player", player.id, e)

        results["duration_seconds"] = (datetime.now() - start_time).total_seconds()
        self.logger.info(
            "Scrape finished: %s",
            ", ".join(f"{k}={v['items_scraped']}" for k, v in results.items() if isinstance(v, dict)),
        )
        return results

    def cancel_check(self) -> None:
        if self.cancel.is_set():
            raise asyncio.CancelledError("scraping cancelled")

    async def clean_database(self) -> None:
        """Leert alle fünf Collections"""
        for wipe in (wipe_player_stats, wipe_players, wipe_clubs, wipe_competitions, wipe_countries):
            await wipe(self.store)
        self.logger.info("Database cleaned")
