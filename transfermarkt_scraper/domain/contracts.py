from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Union

from .errors import ResolutionError
from .models import Country

# Typed data transfer objects shared across layers


@dataclass(frozen=True)
class CompetitionRef:
    """A competition met while browsing: site id, display name and link."""

    id: str
    name: str
    link: str


@dataclass
class QuickSelectEntry:
    id: str
    name: str
    link: str


@dataclass
class SearchRow:
    link: str
    name: Optional[str] = None
    competition_id: Optional[str] = None
    flag_src: Optional[str] = None
    country_name: Optional[str] = None
    has_country_cell: bool = False
    is_international: bool = False


@dataclass
class SearchPage:
    rows: list[SearchRow] = field(default_factory=list)
    total: Optional[int] = None

    def page_count(self) -> int:
        """Pages of the whole result set, derived from the first page's size."""
        if not self.rows:
            return 1
        total = self.total if self.total is not None else len(self.rows)
        return max(1, -(-total // len(self.rows)))


@dataclass
class Resolved:
    country: Country
    path: str  # "store" | "quick_select" | "search"


@dataclass
class Unresolved:
    reason: ResolutionError


ResolutionOutcome = Union[Resolved, Unresolved]
