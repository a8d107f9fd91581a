"""
Transfermarkt Scraper
Länder, Wettbewerbe, Vereine, Spieler, Marktwerte und Leistungsdaten von Transfermarkt
"""

__version__ = "0.1.0"

# NOTE:
# Avoid importing heavy modules (like configuration) at package import time to
# keep "import transfermarkt_scraper" lightweight and side-effect free, particularly
# for unit tests that only need single parsers.

__all__: list[str] = []
