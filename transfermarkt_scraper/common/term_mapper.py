"""Generic term mapping utilities.

`TermMapper` centralises label -> canonical value mappings used by the scrapers.

Design goals:
 - Normalise input (case-fold, strip accents, collapse whitespace, remove punctuation)
 - Exact lookup via a pre-built dictionary of normalised synonyms
 - Ordered *contains* matching for scraped labels, because the site wraps labels in
   varying whitespace, colons and markup ("ø-Market value:" must match "ø-Market value")
 - Runtime extension (register / bulk update / YAML file) without touching code

Die Reihenfolge der Registrierung ist relevant für `find_contained`: spezifischere
Begriffe müssen vor allgemeinen registriert werden ("Foreigners" vor "Players").
"""

from __future__ import annotations

import re
import unicodedata
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, Mapping, Optional

import yaml

_WHITESPACE_RE = re.compile(r"\s+")
_PUNCT_RE = re.compile(r"[\.,;:_/\\()+\-\[\]{}]+")


def _strip_accents(value: str) -> str:
    """Return *value* with accents removed (NFKD decomposition -> drop marks)."""
    normalized = unicodedata.normalize("NFKD", value)
    return "".join(ch for ch in normalized if not unicodedata.combining(ch))


def _base_normalize(value: str) -> str:
    """Lowercase, trim, remove accents, punctuation -> space, collapse whitespace."""
    v = value.replace(" ", " ").lower().strip()
    v = _strip_accents(v)
    v = _PUNCT_RE.sub(" ", v)
    v = _WHITESPACE_RE.sub(" ", v).strip()
    return v


@dataclass
class TermMapper:
    """Normalising synonym mapper.

    Attributes
    -----------
    mappings: Dict[str, str]
        Normalised synonym -> canonical value, in registration order.
    label: str
        Domain name (e.g. "competition_info_box") for log messages.
    """

    mappings: Dict[str, str] = field(default_factory=dict)
    label: str = ""

    @classmethod
    def from_groups(cls, groups: Mapping[str, Iterable[str]], label: str = "") -> "TermMapper":
        """Create a TermMapper from canonical -> iterable of synonyms.

        Example
        -------
        groups = {"clubs_count": ["Number of teams"], "players_count": ["Players"]}
        mapper = TermMapper.from_groups(groups, label="competition_info_box")
        """
        inst = cls(label=label)
        inst.register_groups(groups)
        return inst

    def register(self, canonical: str, *synonyms: str) -> None:
        """Register synonyms for a canonical value (idempotent, existing order is kept)."""
        for term in synonyms or (canonical,):
            norm = _base_normalize(term)
            if norm:
                self.mappings[norm] = canonical

    def register_groups(self, groups: Mapping[str, Iterable[str]]) -> None:
        for canonical, syns in groups.items():
            self.register(canonical, *list(syns))

    def lookup(self, value: Optional[str]) -> Optional[str]:
        if not value:
            return None
        return self.mappings.get(_base_normalize(value))

    def find_contained(self, value: Optional[str]) -> Optional[str]:
        """First canonical whose synonym is contained in *value* (registration order)."""
        if not value:
            return None
        norm = _base_normalize(value)
        for synonym, canonical in self.mappings.items():
            if synonym in norm:
                return canonical
        return None


def normalize_text(value: str) -> str:
    """Public wrapper so other modules share the same normalisation."""
    return _base_normalize(value)


def load_groups_file(path: str | Path) -> dict[str, dict[str, list[str]]]:
    """Read a YAML file of ``section -> canonical -> [synonyms]``.

    Example::

        competition_info_box:
          clubs_count: [Number of teams, Anzahl Vereine]

    Errors propagate; a missing file is the caller's decision.
    """
    data = yaml.safe_load(Path(path).read_text(encoding="utf-8")) or {}
    out: dict[str, dict[str, list[str]]] = {}
    for section, groups in data.items():
        if not isinstance(groups, dict):
            continue
        out[section] = {
            str(canonical): [str(s) for s in ([syns] if isinstance(syns, str) else syns or [])]
            for canonical, syns in groups.items()
        }
    return out


__all__ = ["TermMapper", "normalize_text", "load_groups_file"]
