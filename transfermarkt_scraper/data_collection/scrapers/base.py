"""
Base classes and utilities for the Transfermarkt scrapers.
"""

import asyncio
import logging
from typing import Optional

from bs4 import BeautifulSoup

from ...common.http import HttpClient
from ...common.inflight import SingleFlight
from ...common.logging_utils import scrape_logger
from ...common.parsing import soup_from_html
from ...common.playwright_utils import navigate
from ...core.config import Settings
from ...core.config import settings as default_settings


class BaseScraper:
    """Basisklasse: eine Page aus dem Request Scope, Store, Settings, Logger ``scraper.{name}``.

    Innerhalb eines Scopes laufen alle Seitenaktionen strikt nacheinander.
    """

    name = "base"

    def __init__(
        self,
        page,
        store,
        settings: Optional[Settings] = None,
        http: Optional[HttpClient] = None,
        inflight: Optional[SingleFlight] = None,
        cancel: Optional[asyncio.Event] = None,
    ):
        self.page = page
        self.store = store
        self.settings = settings or default_settings
        self.http = http or HttpClient.from_settings(self.settings)
        self.inflight = inflight or SingleFlight()
        self.cancel = cancel or asyncio.Event()
        self.logger = logging.getLogger(f"scraper.{self.name}")

    def check_cancelled(self) -> None:
        if self.cancel.is_set():
            raise asyncio.CancelledError(f"{self.name} cancelled")

    def absolute(self, link: Optional[str]) -> Optional[str]:
        if not link:
            return link
        return link if link.startswith("http") else f"{self.settings.base_url}{link}"

    def page_logger(self, url: Optional[str] = None) -> logging.LoggerAdapter:
        return scrape_logger(self.logger.name, url)

    async def fetch_page(self, url: str) -> str:
        """Navigiert die Page und gibt das HTML zurück"""
        self.check_cancelled()
        self.logger.debug("Navigating to %s", url)
        await navigate(self.page, url, backoff_base=self.settings.http_backoff_base)
        return await self.page.content()

    def parse_html(self, html: str) -> BeautifulSoup:
        """Parst HTML mit BeautifulSoup"""
        return soup_from_html(html)
