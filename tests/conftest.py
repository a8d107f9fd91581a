"""Global pytest fixtures for the test suite.

Centralizes:
 - Project root path insertion (so individual tests don't repeat sys.path hacks)
 - In-memory document store with the DocumentStore interface
 - Dummy Playwright page/route and HTTP client doubles
 - HTML builders for Transfermarkt search result pages
"""

import copy
import sys
import types
from collections import defaultdict
from pathlib import Path
from urllib.parse import parse_qs, urlsplit

import pytest

# Ensure project root (containing transfermarkt_scraper/) is on sys.path once
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from transfermarkt_scraper.core.config import Settings  # noqa: E402
from transfermarkt_scraper.domain.errors import ScrapingError  # noqa: E402


# -------------------- Store -------------------- #

def _contains(doc, predicate):
    for key, expected in predicate.items():
        actual = doc.get(key)
        if isinstance(expected, list):
            if not isinstance(actual, list) or any(item not in actual for item in expected):
                return False
        elif actual != expected:
            return False
    return True


class InMemoryStore:
    """Same operations as DocumentStore; documents are deep-copied in and out."""

    def __init__(self):
        self.collections = defaultdict(dict)
        self.calls = []

    async def find_by_id(self, collection, doc_id):
        self.calls.append(("find_by_id", collection, doc_id))
        return copy.deepcopy(self.collections[collection].get(doc_id))

    async def find(self, collection, predicate=None):
        self.calls.append(("find", collection, predicate))
        docs = self.collections[collection]
        return [copy.deepcopy(docs[k]) for k in sorted(docs) if _contains(docs[k], predicate or {})]

    async def insert_many(self, collection, docs):
        self.calls.append(("insert_many", collection, [d["id"] for d in docs]))
        for doc in docs:
            self.collections[collection].setdefault(doc["id"], copy.deepcopy(doc))
        return len(docs)

    async def upsert(self, collection, doc):
        self.calls.append(("upsert", collection, doc["id"]))
        self.collections[collection][doc["id"]] = copy.deepcopy(doc)

    async def update_field(self, collection, doc_id, field, value):
        self.calls.append(("update_field", collection, doc_id, field))
        doc = self.collections[collection].get(doc_id)
        if doc is None:
            return False
        doc[field] = copy.deepcopy(value)
        return True

    async def wipe(self, collection):
        self.calls.append(("wipe", collection))
        self.collections[collection].clear()


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def settings():
    return Settings(
        quick_select_timeout_ms=50,
        search_max_pages=50,
        force_scraping=False,
        http_backoff_base=0.0,
    )


# -------------------- Playwright doubles -------------------- #

class DummyResponse:
    def __init__(self, payload):
        self._payload = payload

    async def json(self):
        if isinstance(self._payload, Exception):
            raise self._payload
        return self._payload


class DummyRequest:
    def __init__(self, url):
        self.url = url


class DummyRoute:
    def __init__(self, url, payload):
        self.request = DummyRequest(url)
        self._payload = payload
        self.fulfilled = False

    async def fetch(self):
        return DummyResponse(self._payload)

    async def fulfill(self, response=None):  # noqa: ARG002
        self.fulfilled = True


class DummyPage:
    """Records navigation and serves HTML per URL path.

    *quick_select* maps a country id to the payload the site's quick-select request
    would return when a page is opened; each goto fires it through the registered route.
    """

    def __init__(self, pages=None, quick_select=None, fail=False):
        self.pages = pages or {}
        self.quick_select = quick_select or {}
        self.fail = fail
        self.url = "about:blank"
        self.goto_calls = []
        self.routes = []
        self.unrouted = []

    async def route(self, pattern, handler):
        self.routes.append((pattern, handler))

    async def unroute(self, pattern, handler):
        self.unrouted.append((pattern, handler))
        self.routes = [r for r in self.routes if r != (pattern, handler)]

    async def goto(self, url, wait_until="domcontentloaded", timeout=0):  # noqa: ARG002
        self.goto_calls.append(url)
        if self.fail:
            raise RuntimeError("goto failed")
        self.url = url
        for country_id, payload in self.quick_select.items():
            for _, handler in list(self.routes):
                await handler(DummyRoute(f"https://www.transfermarkt.com/quickselect/competitions/{country_id}", payload))

    async def content(self):
        parts = urlsplit(self.url)
        key = parts.path + (f"?{parts.query}" if parts.query else "")
        return self.pages.get(key, self.pages.get(parts.path, "<html><body></body></html>"))


class DummyHttp:
    """HttpClient double; search pages are served by their page number."""

    def __init__(self, search_pages=None, json_payloads=None, fail=False):
        self.search_pages = search_pages or {}
        self.json_payloads = json_payloads or {}
        self.fail = fail
        self.calls = []

    def absolute(self, url):
        return url if url.startswith("http") else f"https://www.transfermarkt.com{url}"

    async def get_text(self, url):
        self.calls.append(url)
        if self.fail:
            raise ScrapingError("HTTP 503", url)
        query = parse_qs(urlsplit(url).query)
        page_no = int(query.get("Wettbewerb_page", ["1"])[0])
        return self.search_pages.get(page_no, "<html><body></body></html>")

    async def get_json(self, url):
        self.calls.append(url)
        if self.fail:
            raise ScrapingError("HTTP 503", url)
        return self.json_payloads.get(url.rsplit("/", 1)[-1], {"list": []})


@pytest.fixture
def make_page():
    return DummyPage


@pytest.fixture
def make_http():
    return DummyHttp


# -------------------- HTML builders -------------------- #

def search_row_html(link, name, flag_src=None, country=None, subtitle="First Tier"):
    flag = f'<img class="flaggenrahmen" src="{flag_src}" title="{country}" alt="{country}">' if flag_src else ""
    return f"""
        <tr class="odd">
          <td>
            <table class="inline-table">
              <tr>
                <td rowspan="2"><img src="https://tmssl.akamaized.net/images/logo/tiny/x.png"></td>
                <td class="hauptlink"><a href="{link}" title="{name}">{name}</a></td>
              </tr>
              <tr><td>{subtitle}</td></tr>
            </table>
          </td>
          <td class="zentriert">{flag}</td>
          <td class="zentriert">20</td>
        </tr>
    """


def search_page_html(rows, total=None):
    headline = "Search results for competitions"
    if total is not None:
        headline += f" - {total} hits"
    return f"""
    <html><body>
      <div class="box">
        <h2 class="content-box-headline">Search results for clubs - 3 hits</h2>
        <table class="items"><tbody>
          <tr><td class="hauptlink"><a href="/fc-barcelona/startseite/verein/131">FC Barcelona</a></td></tr>
        </tbody></table>
      </div>
      <div class="box">
        <h2 class="content-box-headline">{headline}</h2>
        <div class="responsive-table">
          <table class="items">
            <thead><tr><th>Competition</th><th>Country</th><th>Clubs</th></tr></thead>
            <tbody>{''.join(rows)}</tbody>
          </table>
        </div>
      </div>
    </body></html>
    """


def filler_rows(prefix, count):
    return [
        search_row_html(f"/{prefix}-{i}/startseite/wettbewerb/{prefix.upper()}{i}", f"{prefix} {i}",
                        "https://tmssl.akamaized.net/images/flagge/verysmall/40.png?lm=1", "Germany")
        for i in range(count)
    ]


@pytest.fixture
def search_html():
    return types.SimpleNamespace(row=search_row_html, page=search_page_html, filler=filler_rows)
