from __future__ import annotations

# Shared async Playwright helpers: one browser per run, one context+page per request scope

import asyncio
import contextlib
import logging
import random
import re
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Optional

from playwright.async_api import Browser, BrowserContext, Page, async_playwright

from ..domain.errors import ScrapingError

logger = logging.getLogger("scraper.playwright")


class PlaywrightFetchError(ScrapingError):
    pass


class BrowserHandle:
    """Single shared Chromium instance; scopes are cheap, the browser is not."""

    def __init__(self, *, headless: bool = True):
        self.headless = headless
        self._playwright = None
        self.browser: Optional[Browser] = None

    @classmethod
    def from_settings(cls, settings) -> "BrowserHandle":
        return cls(headless=settings.headless_mode)

    async def start(self) -> "BrowserHandle":
        if self.browser is None:
            self._playwright = await async_playwright().start()
            try:
                self.browser = await self._playwright.chromium.launch(headless=self.headless)
            except Exception:
                await self._playwright.stop()
                self._playwright = None
                raise
            logger.info("Browser started (headless=%s)", self.headless)
        return self

    async def stop(self) -> None:
        if self.browser is not None:
            with contextlib.suppress(Exception):
                await self.browser.close()
            self.browser = None
        if self._playwright is not None:
            with contextlib.suppress(Exception):
                await self._playwright.stop()
            self._playwright = None

    async def __aenter__(self) -> "BrowserHandle":
        return await self.start()

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.stop()


async def _abort_route(route: Any) -> None:
    await route.abort()


@asynccontextmanager
async def request_scope(handle: BrowserHandle, settings) -> AsyncIterator[Page]:
    """Fresh context + page with base URL, default timeout and the consent script blocked.

    Context and page are released on every exit path (success, error, cancellation).
    """
    if handle.browser is None:
        await handle.start()
    context_args: dict[str, Any] = {"base_url": settings.base_url, "locale": settings.locale}
    if settings.user_agent:
        context_args["user_agent"] = settings.user_agent
    context: BrowserContext = await handle.browser.new_context(**context_args)
    page: Optional[Page] = None
    try:
        context.set_default_timeout(settings.default_timeout_ms)
        await context.route(re.compile(settings.consent_script_pattern), _abort_route)
        page = await context.new_page()
        yield page
    finally:
        if page is not None:
            with contextlib.suppress(Exception):
                await page.close()
        with contextlib.suppress(Exception):
            await context.close()


async def navigate(page: Page, url: str, *, retries: int = 2, backoff_base: float = 1.0,
                   wait_until: str = "domcontentloaded") -> None:
    """page.goto with retries; raises PlaywrightFetchError when exhausted."""
    last_err: Exception | None = None
    backoff = backoff_base
    for attempt in range(1, retries + 1):
        try:
            await page.goto(url, wait_until=wait_until)
            return
        except asyncio.CancelledError:
            raise
        except Exception as e:  # pragma: no cover - network/env variability
            last_err = e
        if attempt < retries:
            await asyncio.sleep(backoff + random.uniform(0, 0.5))
            backoff = min(backoff * 2, 8.0)
    raise PlaywrightFetchError(f"Failed to open page after {retries} attempts: {last_err}", url)


__all__ = [
    "BrowserHandle",
    "PlaywrightFetchError",
    "request_scope",
    "navigate",
]
