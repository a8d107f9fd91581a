"""Plain async HTTP access for pages that need no browser (search results, market value JSON)."""

from __future__ import annotations

import asyncio
import logging
import random
from typing import Any, Optional

import aiohttp

from ..domain.errors import ScrapingError

logger = logging.getLogger("scraper.http")

# Shared defaults
DEFAULT_USER_AGENT = "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36"
ACCEPT_LANGUAGE = "en-US,en;q=0.9"
ACCEPT_HTML = "text/html,application/xhtml+xml,application/xml;q=0.9,image/avif,image/webp,*/*;q=0.8"
ACCEPT_JSON = "application/json, text/plain, */*"
RETRY_STATUSES = (429, 502, 503, 504)


def build_headers(user_agent: str, *, accept_json: bool = False) -> dict[str, str]:
    return {
        "User-Agent": user_agent,
        "Accept-Language": ACCEPT_LANGUAGE,
        "Accept": ACCEPT_JSON if accept_json else ACCEPT_HTML,
    }


class HttpClient:
    """aiohttp session wrapper with retry/backoff; non-2xx ends in ScrapingError.

    Relative URLs are resolved against ``base_url``.
    """

    def __init__(self, base_url: str, *, timeout_s: float = 10.0, retries: int = 3,
                 backoff_base: float = 1.0, user_agent: Optional[str] = None):
        self.base_url = base_url.rstrip("/")
        self.timeout_s = timeout_s
        self.retries = max(1, retries)
        self.backoff_base = backoff_base
        self.user_agent = user_agent or DEFAULT_USER_AGENT
        self.session: Optional[aiohttp.ClientSession] = None

    @classmethod
    def from_settings(cls, settings) -> "HttpClient":
        return cls(
            settings.base_url,
            timeout_s=settings.http_timeout_s,
            retries=settings.http_retries,
            backoff_base=settings.http_backoff_base,
            user_agent=settings.user_agent,
        )

    async def start(self) -> None:
        if self.session is None:
            self.session = aiohttp.ClientSession(
                connector=aiohttp.TCPConnector(limit=10),
                timeout=aiohttp.ClientTimeout(total=self.timeout_s),
            )

    async def close(self) -> None:
        if self.session is not None:
            await self.session.close()
            self.session = None

    async def __aenter__(self) -> "HttpClient":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    def absolute(self, url: str) -> str:
        return url if url.startswith("http") else f"{self.base_url}{url}"

    async def _request(self, url: str, *, accept_json: bool) -> Any:
        await self.start()
        url = self.absolute(url)
        headers = build_headers(self.user_agent, accept_json=accept_json)
        last_err: Exception | None = None
        for attempt in range(1, self.retries + 1):
            try:
                async with self.session.get(url, headers=headers) as r:
                    if r.status in RETRY_STATUSES:
                        raise aiohttp.ClientResponseError(
                            r.request_info, r.history, status=r.status, message=f"HTTP {r.status}"
                        )
                    if r.status >= 400:
                        raise ScrapingError(f"HTTP {r.status}", url)
                    if accept_json:
                        return await r.json(content_type=None)
                    return await r.text()
            except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
                last_err = e
                if attempt >= self.retries:
                    break
                sleep_s = self.backoff_base * (2 ** (attempt - 1)) + random.uniform(0.2, 0.6)
                logger.debug("Attempt %d for %s failed: %s -> sleep %.2fs", attempt, url, e, sleep_s)
                await asyncio.sleep(sleep_s)
        raise ScrapingError(f"GET failed after {self.retries} attempts: {last_err}", url)

    async def get_text(self, url: str) -> str:
        return await self._request(url, accept_json=False)

    async def get_json(self, url: str) -> Any:
        return await self._request(url, accept_json=True)


__all__ = ["HttpClient", "DEFAULT_USER_AGENT", "build_headers"]
