"""
Applications Package für den Transfermarkt Scraper

Enthält die Kommandozeilenschnittstelle (``transfermarkt_scraper.apps.cli``).
"""
