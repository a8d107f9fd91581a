"""Country resolution for competitions met while browsing.

Two paths, tried in order:

1. Quick-select interception: a one-shot route handler on the site's quick-select request
   captures ``country id -> [competition]`` while a UI action (by default navigating to the
   competition page) triggers it. The capture future is raced against a timeout and the
   cancellation event; the route is always unregistered afterwards.
2. Search fallback: the site search is fetched page by page over plain HTTP and parsed with
   BeautifulSoup until a row links to exactly the competition's link. The page bound comes
   from the reported hit count of the first page (capped by ``search_max_pages``).

Nothing here raises for "country not found": callers get ``Resolved`` or ``Unresolved``.
Task cancellation (``CancelledError``) is re-raised after the route is released.
"""

from __future__ import annotations

import asyncio
import logging
import re
from typing import Any, Awaitable, Callable, Optional
from urllib.parse import quote, urlsplit

from ..common.parsing import clean_text, competition_id_from_href, image_id_from_url, link_path, soup_from_html
from ..domain.contracts import (
    CompetitionRef,
    QuickSelectEntry,
    Resolved,
    ResolutionOutcome,
    SearchPage,
    SearchRow,
    Unresolved,
)
from ..domain.enums import Cup
from ..domain.errors import ResolutionCancelled, ResolutionNotFound, ResolutionTimeout, ScrapingError
from ..domain.models import Competition, Country
from ..database.services import competitions as competition_service
from ..database.services import countries as country_service

logger = logging.getLogger("scraper.resolution")

INTERNATIONAL_ID = "international"
INTERNATIONAL_NAME = "International"

_HITS_RE = re.compile(r"(\d[\d.,]*)\s*(?:hits|treffer|results)", re.IGNORECASE)
_PARENS_RE = re.compile(r"\s*\(.*?\)")

Trigger = Callable[[], Awaitable[Any]]
QuickSelectCapture = dict[str, list[QuickSelectEntry]]


# ---------------------------------------------------------------------------
# Pure parsers
# ---------------------------------------------------------------------------

def parse_quick_select(payload: Any) -> list[QuickSelectEntry]:
    """``[{"id": "ES1", "name": "LaLiga", "link": "/laliga/..."}]`` -> entries; junk items are skipped."""
    entries: list[QuickSelectEntry] = []
    for item in payload if isinstance(payload, list) else []:
        if isinstance(item, dict) and item.get("id") and item.get("link"):
            entries.append(QuickSelectEntry(id=str(item["id"]), name=str(item.get("name") or ""), link=str(item["link"])))
    return entries


def country_id_from_quick_select_url(url: str) -> str:
    # .../quickselect/competitions/157
    return urlsplit(url).path.rstrip("/").rsplit("/", 1)[-1]


def _competition_box(soup):
    for box in soup.select("div.box"):
        headline = box.select_one("h2")
        text = (headline.get_text(" ", strip=True) if headline else "").lower()
        if "competition" in text or "wettbewerb" in text:
            return box, text
    return soup, ""


def parse_search_page(html: str) -> SearchPage:
    """Competition rows of one search result page plus the total hit count (if shown)."""
    soup = soup_from_html(html)
    box, headline = _competition_box(soup)
    total = None
    m = _HITS_RE.search(headline)
    if m:
        total = int(re.sub(r"[.,]", "", m.group(1)))

    rows: list[SearchRow] = []
    for tr in box.select("table.items > tbody > tr"):
        a = tr.select_one("td.hauptlink a[href]")
        if a is None:
            continue
        flag = tr.select_one("img.flaggenrahmen")
        subtitle = tr.select_one("table.inline-table tr:nth-of-type(2) td")
        cup = Cup.from_label(subtitle.get_text(" ", strip=True)) if subtitle else Cup.UNKNOWN
        rows.append(SearchRow(
            link=a["href"],
            name=clean_text(a.get("title") or a.get_text()),
            competition_id=competition_id_from_href(a["href"]),
            flag_src=flag.get("src") if flag else None,
            country_name=clean_text(flag.get("title")) if flag else None,
            has_country_cell=flag is not None,
            is_international=cup is Cup.INTERNATIONAL,
        ))
    return SearchPage(rows=rows, total=total)


def country_from_search_row(row: SearchRow) -> Country:
    """Country of a search hit; international cups and rows without a flag map to "International"."""
    if not row.has_country_cell or row.is_international:
        return Country(id=INTERNATIONAL_ID, name=INTERNATIONAL_NAME)
    flag = (row.flag_src or "").replace("verysmall", "head").split("?")[0]
    country_id = image_id_from_url(flag)
    if not country_id:
        raise ScrapingError(f"Country flag without id: {row.flag_src!r}")
    return Country(id=country_id, name=row.country_name, flag=flag)


def search_query(name: str) -> str:
    # "Premier League (bis 1992)" -> "Premier League"
    return _PARENS_RE.sub("", name).strip()


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------

class ResolutionEngine:
    """Finds a competition's country via quick-select capture, then via site search."""

    def __init__(self, page, http, settings, store=None, log: logging.Logger | logging.LoggerAdapter | None = None):
        self.page = page
        self.http = http
        self.settings = settings
        self.store = store
        self.log = log or logger

    async def resolve_country_for_competition(
        self,
        ref: CompetitionRef,
        trigger: Optional[Trigger] = None,
        cancel: Optional[asyncio.Event] = None,
    ) -> ResolutionOutcome:
        cancel = cancel or asyncio.Event()
        if cancel.is_set():
            return Unresolved(ResolutionCancelled(f"Resolution of {ref.id} cancelled"))

        outcome = await self._from_store(ref)
        if outcome is None:
            outcome = await self._resolve(ref, trigger, cancel)
        if isinstance(outcome, Resolved) and outcome.path != "store" and self.store is not None:
            await self._persist(ref, outcome.country)
        return outcome

    async def _resolve(self, ref: CompetitionRef, trigger: Optional[Trigger], cancel: asyncio.Event) -> ResolutionOutcome:
        try:
            capture = await self.capture_quick_select(trigger or self._default_trigger(ref), cancel)
        except ResolutionCancelled as e:
            return Unresolved(e)
        except ResolutionTimeout as e:
            self.log.info("%s; falling back to search for %r", e, search_query(ref.name))
        else:
            country = self.match_capture(ref, capture)
            if country is not None:
                return Resolved(await self._named(country), "quick_select")
            self.log.info(
                "Competition %s not in quick-select capture; falling back to search for %r",
                ref.id, search_query(ref.name),
            )
        return await self.search(ref, cancel)

    # -- store ----------------------------------------------------------------

    async def _from_store(self, ref: CompetitionRef) -> Optional[Resolved]:
        if self.store is None:
            return None
        competition = await competition_service.get_competition(self.store, ref.id)
        if competition is None or not competition.country_id:
            return None
        country = await country_service.get_country(self.store, competition.country_id)
        return Resolved(country or Country(id=competition.country_id), "store")

    async def _named(self, country: Country) -> Country:
        # Der Quick-Select kennt nur die ID; den Namen trägt der Länder-Scrape nach
        if self.store is None or country.name:
            return country
        stored = await country_service.get_country(self.store, country.id)
        if stored is None:
            return country
        return country.model_copy(update={"name": stored.name, "flag": stored.flag or country.flag})

    async def _persist(self, ref: CompetitionRef, country: Country) -> None:
        await country_service.add_competition(self.store, country, ref.id)
        competition = await competition_service.get_competition(self.store, ref.id)
        if competition is None:
            competition = Competition(id=ref.id, name=ref.name, link=ref.link)
        await competition_service.set_country(self.store, competition, country.id)

    # -- quick-select -------------------------------------------------------

    def _default_trigger(self, ref: CompetitionRef) -> Trigger:
        async def navigate() -> None:
            await self.page.goto(ref.link, wait_until="domcontentloaded")

        return navigate

    async def capture_quick_select(self, trigger: Trigger, cancel: asyncio.Event) -> QuickSelectCapture:
        """Arm the route, run *trigger*, wait for the first capture.

        Raises ResolutionTimeout when nothing was captured in time and ResolutionCancelled
        when *cancel* fires first.
        """
        loop = asyncio.get_running_loop()
        captured: asyncio.Future = loop.create_future()
        pattern = self.settings.quick_select_pattern

        async def handler(route) -> None:
            response = await route.fetch()
            await route.fulfill(response=response)
            if captured.done():
                return
            try:
                payload = await response.json()
            except ValueError as e:
                self.log.debug("Quick-select response not JSON: %s", e)
                return
            country_id = country_id_from_quick_select_url(route.request.url)
            if not captured.done():
                captured.set_result({country_id: parse_quick_select(payload)})

        await self.page.route(pattern, handler)
        try:
            try:
                await self._first_of(trigger(), cancel, timeout=None)
            except (ResolutionCancelled, asyncio.CancelledError):
                raise
            except Exception as e:
                if not captured.done():
                    raise ResolutionTimeout(f"Quick-select trigger failed: {e}") from e
            return await self._first_of(captured, cancel, timeout=self.settings.quick_select_timeout_ms / 1000)
        finally:
            if not captured.done():
                captured.cancel()
            await self.page.unroute(pattern, handler)

    async def _first_of(self, awaitable, cancel: asyncio.Event, timeout: Optional[float]):
        """Await *awaitable* unless *cancel* fires or *timeout* elapses first; the loser is cancelled."""
        work = asyncio.ensure_future(awaitable)
        stop = asyncio.ensure_future(cancel.wait())
        try:
            done, _ = await asyncio.wait({work, stop}, timeout=timeout, return_when=asyncio.FIRST_COMPLETED)
        finally:
            for task in (work, stop):
                if not task.done():
                    task.cancel()
        if work in done:
            return work.result()
        if stop in done:
            raise ResolutionCancelled("Resolution cancelled")
        raise ResolutionTimeout(f"No quick-select capture within {timeout:.1f}s")

    def match_capture(self, ref: CompetitionRef, capture: QuickSelectCapture) -> Optional[Country]:
        target = link_path(ref.link)
        matches: list[tuple[str, QuickSelectEntry]] = [
            (country_id, entry)
            for country_id, entries in capture.items()
            for entry in entries
            if entry.id == ref.id or (target and link_path(entry.link) == target)
        ]
        if not matches:
            return None
        if len(matches) > 1:
            self.log.warning(
                "Competition %s matched %d quick-select entries (%s); using the first",
                ref.id, len(matches), ", ".join(cid for cid, _ in matches),
            )
        country_id = matches[0][0]
        return Country(
            id=country_id,
            flag=f"{self.settings.flag_url.rstrip('/')}/{country_id}.png",
            competition_ids=[ref.id],
        )

    # -- search -------------------------------------------------------------

    def search_url(self, query: str, page_no: int) -> str:
        q = quote(query)
        if page_no == 1:
            return f"{self.settings.search_path}?query={q}"
        return f"{self.settings.search_path}?Wettbewerb_page={page_no}&query={q}"

    async def search(self, ref: CompetitionRef, cancel: asyncio.Event) -> ResolutionOutcome:
        query = search_query(ref.name)
        target = link_path(ref.link)
        page_no, last_page = 1, 1
        while page_no <= last_page:
            url = self.search_url(query, page_no)
            self.log.debug("Searching competition %r, page %d", query, page_no)
            try:
                html = await self._first_of(self.http.get_text(url), cancel, timeout=None)
            except ResolutionCancelled as e:
                return Unresolved(e)
            except ScrapingError as e:
                self.log.warning("Search for %r failed: %s", query, e)
                return Unresolved(ResolutionNotFound(f"Search for {query!r} failed: {e}"))

            result = parse_search_page(html)
            if page_no == 1:
                last_page = min(result.page_count(), self.settings.search_max_pages)
            for row in result.rows:
                if link_path(row.link) == target:
                    try:
                        country = country_from_search_row(row)
                    except ScrapingError as e:
                        self.log.warning("%s", e)
                        return Unresolved(ResolutionNotFound(str(e)))
                    self.log.info("Resolved %s to country %s via search page %d", ref.id, country.id, page_no)
                    return Resolved(country, "search")
            page_no += 1

        reason = ResolutionNotFound(f"Competition {ref.id} ({ref.link}) not found in {last_page} search page(s)")
        self.log.warning("%s", reason)
        return Unresolved(reason)


__all__ = [
    "ResolutionEngine",
    "parse_quick_select",
    "parse_search_page",
    "country_from_search_row",
    "country_id_from_quick_select_url",
    "search_query",
]
