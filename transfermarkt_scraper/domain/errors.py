"""Fehlerklassen des Scrapers.

Field- und entity-lokale Fehler (ParseFailure, ClassificationMiss, Resolution*) werden
lokal behandelt und geloggt; InvalidKey und StoreFailure werden immer propagiert.
"""

from __future__ import annotations


class ScraperError(Exception):
    """Basis aller Scraper-Fehler."""


class ParseFailure(ScraperError):
    """Text eines einzelnen Feldes konnte nicht konvertiert werden."""

    def __init__(self, field: str, raw: str | None, reason: str | None = None):
        self.field = field
        self.raw = raw
        msg = f"Cannot parse {field} from {raw!r}"
        if reason:
            msg = f"{msg}: {reason}"
        super().__init__(msg)


class ClassificationMiss(ScraperError):
    """Label passt zu keinem Katalogeintrag."""

    def __init__(self, entity_type: str, label: str):
        self.entity_type = entity_type
        self.label = label
        super().__init__(f"No {entity_type} field for label {label!r}")


class ResolutionError(ScraperError):
    """Land eines Wettbewerbs konnte nicht bestimmt werden."""


class ResolutionTimeout(ResolutionError):
    pass


class ResolutionNotFound(ResolutionError):
    pass


class ResolutionCancelled(ResolutionError):
    pass


class InvalidKey(ScraperError):
    """Identity kann nicht aus leeren Schlüsselteilen gebildet werden.

    Bewusst keine ValueError-Unterklasse: pydantic würde sie sonst in einen
    ValidationError verpacken.
    """


class StoreFailure(ScraperError):
    """Operation auf dem Document Store fehlgeschlagen."""

    def __init__(self, operation: str, collection: str, cause: BaseException | None = None):
        self.operation = operation
        self.collection = collection
        msg = f"{operation} on {collection} failed"
        if cause is not None:
            msg = f"{msg}: {cause}"
        super().__init__(msg)


class ScrapingError(ScraperError):
    """Navigation, HTTP-Abruf oder Pflicht-Element fehlgeschlagen."""

    def __init__(self, message: str, url: str | None = None):
        self.url = url
        super().__init__(f"{message} (url={url})" if url else message)


__all__ = [
    "ScraperError",
    "ParseFailure",
    "ClassificationMiss",
    "ResolutionError",
    "ResolutionTimeout",
    "ResolutionNotFound",
    "ResolutionCancelled",
    "InvalidKey",
    "StoreFailure",
    "ScrapingError",
]
