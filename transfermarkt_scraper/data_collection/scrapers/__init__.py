"""
Transfermarkt Scrapers Package

Note: avoid importing scraper modules at package import time to keep imports
lightweight (unit tests for the parsers only need their own module). Import
concrete scrapers from their modules directly, e.g.:

    from transfermarkt_scraper.data_collection.scrapers.club_scraper import ClubScraper
"""

__all__: list[str] = []
