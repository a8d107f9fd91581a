"""
Command-line interface for the Transfermarkt scraper.

Usage examples:
  transfermarkt-scraper init-db
  transfermarkt-scraper countries --force
  transfermarkt-scraper competition ES1
  transfermarkt-scraper clubs ES1 --no-force
  transfermarkt-scraper players 418
  transfermarkt-scraper stats 28003 --season 2024
  transfermarkt-scraper resolve ES1 "LaLiga" /laliga/startseite/wettbewerb/ES1
  transfermarkt-scraper scrape-all --competition ES1
  transfermarkt-scraper wipe --yes
"""

import asyncio
import contextlib
import json
import logging
from typing import Any, AsyncIterator, Awaitable, Callable, Optional

import click

from ..common.http import HttpClient
from ..common.logging_utils import configure_logging
from ..common.playwright_utils import BrowserHandle, request_scope
from ..core.config import settings
from ..data_collection.resolution import ResolutionEngine
from ..data_collection.scrapers.scraping_orchestrator import ScrapingOrchestrator
from ..database.document_store import DocumentStore
from ..database.manager import DatabaseManager
from ..domain.contracts import CompetitionRef, Resolved
from ..domain.errors import ScraperError

logger = logging.getLogger("cli")

# Ohne Angabe gilt settings.force_scraping (FORCE_SCRAPING)
force_option = click.option(
    "--force/--no-force",
    default=None,
    help="Scrape again, or reuse stored data. Defaults to FORCE_SCRAPING.",
)


@contextlib.asynccontextmanager
async def _session(browser: bool = True) -> AsyncIterator[ScrapingOrchestrator]:
    """DB, Store, Browser, Request Scope und HTTP-Client für einen CLI-Lauf."""
    db = DatabaseManager()
    await db.initialize()
    try:
        store = DocumentStore(db)
        async with HttpClient.from_settings(settings) as http:
            if not browser:
                yield ScrapingOrchestrator(None, store, settings, http=http)
                return
            async with BrowserHandle.from_settings(settings) as handle:
                async with request_scope(handle, settings) as page:
                    yield ScrapingOrchestrator(page, store, settings, http=http)
    finally:
        await db.close()


def _dump(value: Any) -> Any:
    if hasattr(value, "model_dump"):
        return value.model_dump(mode="json")
    if isinstance(value, list):
        return [_dump(v) for v in value]
    if isinstance(value, dict):
        return {k: _dump(v) for k, v in value.items()}
    return value


def _run(job: Callable[[ScrapingOrchestrator], Awaitable[Any]], browser: bool = True) -> None:
    configure_logging("transfermarkt-scraper")

    async def _main() -> Any:
        async with _session(browser) as orchestrator:
            return await job(orchestrator)

    try:
        result = asyncio.run(_main())
    except ScraperError as e:
        logger.error("%s", e)
        raise SystemExit(1) from e
    click.echo(json.dumps(_dump(result), indent=2, ensure_ascii=False, default=str))


@click.group()
def cli():
    """Transfermarkt Scraper"""


@cli.command(name="init-db")
@click.option("--drop", is_flag=True, help="Drop the document tables first.")
def init_db(drop: bool):
    """Create the document tables"""
    configure_logging("transfermarkt-scraper")

    async def _main():
        db = DatabaseManager()
        await db.initialize()
        try:
            if drop:
                await db.drop_tables()
            await db.create_tables()
            return await db.health_check()
        finally:
            await db.close()

    click.echo(json.dumps(asyncio.run(_main()), indent=2, default=str))


@cli.command(name="scrape-all")
@force_option
@click.option("--competition", "competitions", multiple=True, help="Limit the cascade to these competition ids.")
def scrape_all(force: Optional[bool], competitions: tuple[str, ...]):
    """Countries -> competitions -> clubs -> players -> stats"""
    _run(lambda o: o.scrape_all(force, list(competitions) or None))


@cli.command()
@force_option
def countries(force: Optional[bool]):
    """Scrape the country selector"""
    _run(lambda o: o.countries.get_countries(force))


@cli.command()
@click.argument("competition_id")
@click.option("--link", default=None, help="Competition page link, if not stored yet.")
@force_option
def competition(competition_id: str, link: Optional[str], force: Optional[bool]):
    """Scrape a competition header"""
    _run(lambda o: o.competitions.get_competition(competition_id, force, link=link))


@cli.command()
@click.argument("competition_id")
@force_option
def clubs(competition_id: str, force: Optional[bool]):
    """Scrape the clubs of a competition"""
    _run(lambda o: o.clubs.get_clubs(competition_id, force))


@cli.command()
@click.argument("club_id")
@force_option
def players(club_id: str, force: Optional[bool]):
    """Scrape the squad of a club including market values"""
    _run(lambda o: o.players.get_players(club_id, force))


@cli.command(name="market-values")
@click.argument("player_id")
def market_values(player_id: str):
    """Fetch the market value history of a player"""
    _run(lambda o: o.scrapers["market_value"].get_market_values(player_id), browser=False)


@cli.command()
@click.argument("player_id")
@click.option("--season", "seasons", multiple=True, help="Season ids (default: all seasons of the player).")
@force_option
def stats(player_id: str, seasons: tuple[str, ...], force: Optional[bool]):
    """Scrape the detailed performance data of a player"""
    _run(lambda o: o.player_stats.get_player_stat(player_id, list(seasons) or None, force))


@cli.command()
@click.argument("competition_id")
@click.argument("name")
@click.argument("link")
def resolve(competition_id: str, name: str, link: str):
    """Resolve the country of a competition"""

    async def _job(o: ScrapingOrchestrator):
        engine = ResolutionEngine(o.page, o.http, o.settings, store=o.store)
        outcome = await engine.resolve_country_for_competition(
            CompetitionRef(competition_id, name, o.http.absolute(link)), cancel=o.cancel
        )
        if isinstance(outcome, Resolved):
            return {"resolved": True, "path": outcome.path, "country": outcome.country}
        return {"resolved": False, "reason": f"{type(outcome.reason).__name__}: {outcome.reason}"}

    _run(_job)


@cli.command()
@click.confirmation_option(prompt="Delete all scraped documents?")
def wipe():
    """Delete all documents of all collections"""

    async def _job(o: ScrapingOrchestrator):
        await o.clean_database()
        return {"wiped": True}

    _run(_job, browser=False)


if __name__ == "__main__":
    cli()
