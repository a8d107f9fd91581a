"""
Country Scraper

Liest die Länderauswahl der Startseite. Jeder Klick auf ein Land löst die
Quick-Select-Anfrage aus; deren Antwort liefert Länder-ID und Wettbewerbe.
Verarbeitung in Batches, damit ein Fehler nicht den ganzen Lauf kostet.
"""

from __future__ import annotations

from typing import Optional

from ...common.parsing import clean_text
from ...database.services import competitions as competition_service
from ...database.services import countries as country_service
from ...domain.contracts import QuickSelectEntry
from ...domain.errors import ResolutionTimeout, ScrapingError
from ...domain.models import Competition, Country
from ..resolution import ResolutionEngine
from .base import BaseScraper

SELECTOR_ANCHOR = "img[alt='Countries']"
SELECTOR_BUTTON = "div[role='button']"
SELECTOR_DROPDOWN = ".selector-dropdown"
SELECTOR_ITEM = "li"


class CountryScraper(BaseScraper):
    name = "country"

    def build_country(self, name: Optional[str], country_id: str, entries: list[QuickSelectEntry]) -> tuple[Country, list[Competition]]:
        competitions = [
            Competition(id=e.id, name=e.name, link=self.absolute(e.link), country_id=country_id)
            for e in entries
        ]
        country = Country(
            id=country_id,
            name=clean_text(name),
            flag=f"{self.settings.flag_url.rstrip('/')}/{country_id}.png",
            competition_ids=[c.id for c in competitions],
        )
        return country, competitions

    async def get_countries(self, force: Optional[bool] = None) -> list[Country]:
        force = self.settings.force_scraping if force is None else force
        async with self.inflight.hold(("countries",)) as waited:
            if waited or not force:
                stored = await country_service.get_countries(self.store)
                if stored:
                    self.logger.info("Using %d stored countries", len(stored))
                    return stored
            return await self._scrape_countries()

    async def _open_dropdown(self, selector, max_attempts: int = 5):
        button = selector.locator(SELECTOR_BUTTON)
        dropdown = selector.locator(SELECTOR_DROPDOWN)
        for attempt in range(1, max_attempts + 1):
            await button.click()
            try:
                await dropdown.wait_for(state="visible", timeout=500)
                return dropdown
            except Exception:
                self.logger.debug("Country dropdown not visible at attempt %d", attempt)
        raise ScrapingError("Country dropdown did not open", self.settings.base_url)

    async def _scrape_countries(self) -> list[Country]:
        await self.fetch_page("/")
        selector = self.page.locator(SELECTOR_ANCHOR).locator("..")
        dropdown = await self._open_dropdown(selector)
        total = await dropdown.locator(SELECTOR_ITEM).count()
        if self.settings.country_limit:
            total = min(total, self.settings.country_limit)
        self.logger.info("Scraping %d countries", total)

        engine = ResolutionEngine(self.page, self.http, self.settings, log=self.logger)
        countries: list[Country] = []
        batch_size = max(1, self.settings.country_batch_size)
        for start in range(0, total, batch_size):
            batch_countries: list[Country] = []
            batch_competitions: list[Competition] = []
            for index in range(start, min(start + batch_size, total)):
                self.check_cancelled()
                dropdown = await self._open_dropdown(selector)
                item = dropdown.locator(SELECTOR_ITEM).nth(index)
                name = await item.text_content()
                try:
                    capture = await engine.capture_quick_select(item.click, self.cancel)
                except ResolutionTimeout as e:
                    self.logger.warning("No quick-select data for country %r: %s", clean_text(name), e)
                    continue
                for country_id, entries in capture.items():
                    country, competitions = self.build_country(name, country_id, entries)
                    self.logger.info("Adding country: %s (%s, %d competitions)", country.name, country.id, len(competitions))
                    batch_countries.append(country)
                    batch_competitions.extend(competitions)
            await country_service.upsert_countries(self.store, batch_countries)
            await competition_service.register_competitions(self.store, batch_competitions)
            countries.extend(batch_countries)
        return countries
