"""
Market Value Scraper

Marktwertverlauf eines Spielers über den JSON-Endpunkt (kein Browser nötig).
"""

from __future__ import annotations

from typing import Any

from ...common.codecs import date_from_string, money_from_string
from ...common.parsing import clean_text, image_id_from_url, parse_int
from ...domain.errors import ParseFailure
from ...domain.models import MarketValue
from .base import BaseScraper


class MarketValueScraper(BaseScraper):
    name = "market_value"

    def market_value_url(self, player_id: str) -> str:
        return f"{self.settings.market_value_path}/{player_id}"

    def parse_market_values(self, payload: Any, url: str | None = None) -> list[MarketValue]:
        log = self.page_logger(url)
        items = payload.get("list") if isinstance(payload, dict) else None
        values: list[MarketValue] = []
        for item in items or []:
            try:
                day = date_from_string(item.get("datum_mw"))
                value = item.get("y")
                if value is None:
                    value = money_from_string(item.get("mw"))
            except ParseFailure as e:
                log.warning("%s; market value entry skipped", e)
                continue
            if day is None:
                log.warning("Market value entry without date skipped")
                continue
            crest = item.get("wappen") or None
            values.append(MarketValue(
                date=day,
                value=float(value),
                age=parse_int(str(item.get("age") or "")),
                club_id=image_id_from_url(crest),
                club_name=clean_text(item.get("verein")),
                club_crest=crest,
            ))
        return values

    async def get_market_values(self, player_id: str) -> list[MarketValue]:
        self.check_cancelled()
        url = self.market_value_url(player_id)
        payload = await self.http.get_json(url)
        values = self.parse_market_values(payload, url)
        self.logger.debug("Player %s: %d market values", player_id, len(values))
        return values
