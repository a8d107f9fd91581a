"""
Competition Scraper

Kopfbereich einer Wettbewerbsseite (Info-Box + Club-Info) über den Field Classifier.
Unbekannte Länder werden über die Resolution Engine bestimmt.
"""

from __future__ import annotations

from typing import Optional

from ...common.parsing import clean_text, link_path
from ...database.services import competitions as competition_service
from ...domain.contracts import CompetitionRef, Resolved
from ...domain.errors import ScrapingError
from ...domain.models import Competition
from ..field_classifier import COMPETITION, FieldClassifier, default_classifier
from ..resolution import ResolutionEngine
from .base import BaseScraper


class CompetitionScraper(BaseScraper):
    name = "competition"

    def __init__(self, *args, classifier: Optional[FieldClassifier] = None, **kwargs):
        super().__init__(*args, **kwargs)
        self.classifier = classifier or default_classifier()

    def parse_competition_html(self, html: str, competition: Competition, url: Optional[str] = None) -> Competition:
        """Überträgt Name, Logo und alle ``label: value`` Paare des Kopfbereichs auf *competition*."""
        soup = self.parse_html(html)
        log = self.page_logger(url)

        headline = soup.select_one("h1.data-header__headline-wrapper")
        if headline is not None:
            competition.name = clean_text(headline.get_text(" ")) or competition.name

        logo = soup.select_one("div.data-header__profile-container img")
        if logo is not None and logo.get("src"):
            competition.logo = logo["src"]
        elif not competition.logo:
            competition.logo = f"{self.settings.logo_url.rstrip('/')}/{competition.id.lower()}.png"

        for label_el in soup.select(".data-header__details .data-header__label, .data-header__club-info .data-header__label"):
            content = label_el.select_one(".data-header__content")
            if content is None:
                continue
            raw = content.get_text(" ", strip=True)
            content.extract()
            label = label_el.get_text(" ", strip=True)
            self.classifier.classify_and_assign(COMPETITION, label, raw, competition, log)

        market_value = soup.select_one(".data-header__market-value-wrapper")
        if market_value is not None:
            unit = market_value.select_one("p")
            label = unit.get_text(" ", strip=True) if unit else "Total market value"
            if unit is not None:
                unit.extract()
            self.classifier.classify_and_assign(COMPETITION, label, market_value.get_text("", strip=True), competition, log)

        return competition

    async def get_competition(
        self,
        competition_id: str,
        force: Optional[bool] = None,
        link: Optional[str] = None,
        name: Optional[str] = None,
    ) -> Competition:
        force = self.settings.force_scraping if force is None else force
        async with self.inflight.hold(("competition", competition_id)) as waited:
            stored = await competition_service.get_competition(self.store, competition_id)
            if stored is not None and stored.is_scraped and (waited or not force):
                self.logger.info("Using stored competition %s", competition_id)
                return stored

            competition = stored or Competition(id=competition_id, name=name, link=self.absolute(link))
            if not competition.link:
                raise ScrapingError(f"No link known for competition {competition_id}; scrape countries first")
            return await self._scrape_competition(competition)

    async def _scrape_competition(self, competition: Competition) -> Competition:
        if not competition.country_id:
            engine = ResolutionEngine(self.page, self.http, self.settings, store=self.store, log=self.logger)
            ref = CompetitionRef(competition.id, competition.name or competition.id, competition.link)
            outcome = await engine.resolve_country_for_competition(ref, cancel=self.cancel)
            if isinstance(outcome, Resolved):
                competition.country_id = outcome.country.id
            else:
                self.logger.warning("Competition %s stored without country: %s", competition.id, outcome.reason)

        # Der Quick-Select-Trigger navigiert bereits zur Wettbewerbsseite
        if link_path(self.page.url) == link_path(competition.link):
            self.check_cancelled()
            html = await self.page.content()
        else:
            html = await self.fetch_page(competition.link)

        self.parse_competition_html(html, competition, competition.link)
        competition.is_scraped = True
        return await competition_service.upsert_competition(self.store, competition)
