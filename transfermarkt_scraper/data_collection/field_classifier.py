"""Label -> typed field classification for scraped key/value fragments.

The site renders most entity facts as ``label: value`` pairs (competition info box,
club-info list, statistic table footers). This module maps the free-text label onto a
`FieldTag` through a per-entity-type catalog and applies the tag's parser to the raw
value, mutating the target entity.

Failures stay local: an unparsable value leaves the field ``None`` and logs a warning,
an unknown label logs a `ClassificationMiss` and does not touch the target.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Callable, Mapping, Optional

from ..common.codecs import money_from_string
from ..common.parsing import clean_text, is_cell_empty, parse_float, parse_int, parse_int_token
from ..common.term_mapper import TermMapper, load_groups_file
from ..domain.enums import Cup, Tier
from ..domain.errors import ClassificationMiss, ParseFailure

logger = logging.getLogger("scraper.field_classifier")


class FieldTag(str, Enum):
    UNKNOWN = "unknown"
    # Competition
    CLUBS_COUNT = "clubs_count"
    PLAYERS_COUNT = "players_count"
    FOREIGNERS_COUNT = "foreigners_count"
    MARKET_VALUE = "market_value"
    MARKET_VALUE_AVERAGE = "market_value_average"
    AGE_AVERAGE = "age_average"
    CUP = "cup"
    PARTICIPANTS = "participants"
    TIER = "tier"
    CURRENT_CHAMPION = "current_champion"
    MOST_TIMES_CHAMPION = "most_times_champion"
    COEFFICIENT = "coefficient"
    # Season competition statistic footer
    SQUAD = "squad"
    STARTING_ELEVEN = "starting_eleven"
    SUBSTITUTED_IN = "substitutions_on"
    SUBSTITUTED_OFF = "substitutions_off"
    ON_THE_BENCH = "on_the_bench"
    SUSPENDED = "suspended"
    INJURED = "injured"


COMPETITION = "competition"
SEASON_COMPETITION_STAT = "season_competition_stat"

# Reihenfolge = Priorität beim contains-Match
DEFAULT_CATALOGS: dict[str, dict[FieldTag, list[str]]] = {
    COMPETITION: {
        FieldTag.CLUBS_COUNT: ["Number of teams"],
        FieldTag.FOREIGNERS_COUNT: ["Foreigners"],
        FieldTag.MARKET_VALUE_AVERAGE: ["ø-Market value"],
        FieldTag.MARKET_VALUE: ["Total market value"],
        FieldTag.AGE_AVERAGE: ["ø-Age"],
        FieldTag.CUP: ["Type of cup"],
        FieldTag.PARTICIPANTS: ["Participants"],
        FieldTag.TIER: ["League level"],
        FieldTag.CURRENT_CHAMPION: ["Reigning champion"],
        FieldTag.MOST_TIMES_CHAMPION: ["Record-holding champions"],
        FieldTag.COEFFICIENT: ["UEFA coefficient"],
        FieldTag.PLAYERS_COUNT: ["Players"],
    },
    SEASON_COMPETITION_STAT: {
        FieldTag.SQUAD: ["Squad"],
        FieldTag.STARTING_ELEVEN: ["Starting eleven"],
        FieldTag.SUBSTITUTED_IN: ["Substituted in"],
        FieldTag.SUBSTITUTED_OFF: ["Substituted off"],
        FieldTag.ON_THE_BENCH: ["On the bench"],
        FieldTag.SUSPENDED: ["Suspended"],
        FieldTag.INJURED: ["Injured"],
    },
}


def _money(text: str) -> Optional[float]:
    return money_from_string(text)


def _age(text: str) -> Optional[float]:
    value = parse_float(text)
    return round(value, 2) if value is not None else None


def _coefficient(text: str) -> Optional[float]:
    # "Pos 4  73,500 Points" -> letzte Zahl
    numbers = [parse_float(tok) for tok in text.split() if parse_float(tok) is not None]
    return numbers[-1] if numbers else None


# Tag -> Parser; Attributname am Ziel = tag.value
PARSERS: dict[FieldTag, Callable[[str], Any]] = {
    FieldTag.CLUBS_COUNT: parse_int_token,
    FieldTag.PLAYERS_COUNT: parse_int,
    FieldTag.FOREIGNERS_COUNT: parse_int_token,
    FieldTag.MARKET_VALUE: _money,
    FieldTag.MARKET_VALUE_AVERAGE: _money,
    FieldTag.AGE_AVERAGE: _age,
    FieldTag.CUP: Cup.match_label,
    FieldTag.PARTICIPANTS: parse_int_token,
    FieldTag.TIER: Tier.match_label,
    FieldTag.CURRENT_CHAMPION: clean_text,
    FieldTag.MOST_TIMES_CHAMPION: clean_text,
    FieldTag.COEFFICIENT: _coefficient,
    FieldTag.SQUAD: parse_int,
    FieldTag.STARTING_ELEVEN: parse_int,
    FieldTag.SUBSTITUTED_IN: parse_int,
    FieldTag.SUBSTITUTED_OFF: parse_int,
    FieldTag.ON_THE_BENCH: parse_int,
    FieldTag.SUSPENDED: parse_int,
    FieldTag.INJURED: parse_int,
}


class FieldClassifier:
    """Per-entity-type label catalogs plus the tag-specific value parsers."""

    def __init__(self, catalogs: Mapping[str, Mapping[FieldTag, list[str]]] | None = None):
        self.catalogs: dict[str, TermMapper] = {}
        for entity_type, groups in (catalogs or DEFAULT_CATALOGS).items():
            self.catalogs[entity_type] = TermMapper.from_groups(
                {tag.value: labels for tag, labels in groups.items()}, label=entity_type
            )

    @classmethod
    def with_overrides(cls, path: str | None) -> "FieldClassifier":
        """Default catalogs, extended by the YAML file at *path* (if given)."""
        inst = cls()
        if path:
            for entity_type, groups in load_groups_file(path).items():
                mapper = inst.catalogs.setdefault(entity_type, TermMapper(label=entity_type))
                for tag_name, labels in groups.items():
                    mapper.register(FieldTag(tag_name).value, *labels)
            logger.info("Loaded field label overrides from %s", path)
        return inst

    def _catalog(self, entity_type: str) -> TermMapper:
        try:
            return self.catalogs[entity_type]
        except KeyError:
            raise ValueError(
                f"Unknown entity type '{entity_type}'. Supported: {', '.join(sorted(self.catalogs))}"
            )

    def classify(self, entity_type: str, label: str | None) -> FieldTag:
        canonical = self._catalog(entity_type).find_contained(label)
        if canonical is None:
            logger.warning("%s", ClassificationMiss(entity_type, label or ""))
            return FieldTag.UNKNOWN
        return FieldTag(canonical)

    def apply_value(self, tag: FieldTag, raw_text: str | None, target: Any, log: logging.Logger | logging.LoggerAdapter | None = None) -> bool:
        """Parse *raw_text* for *tag* and assign it to *target*. Returns True if a value was set."""
        log = log or logger
        if tag is FieldTag.UNKNOWN:
            return False
        text = (raw_text or "").replace("\xa0", " ")
        if is_cell_empty(text):
            setattr(target, tag.value, None)
            return False
        try:
            value = PARSERS[tag](text)
            if value is None:
                raise ParseFailure(tag.value, raw_text)
        except ParseFailure as e:
            log.warning("%s; leaving field unset", e)
            setattr(target, tag.value, None)
            return False
        setattr(target, tag.value, value)
        return True

    def classify_and_assign(self, entity_type: str, label: str | None, raw_text: str | None, target: Any,
                            log: logging.Logger | logging.LoggerAdapter | None = None) -> FieldTag:
        tag = self.classify(entity_type, label)
        self.apply_value(tag, raw_text, target, log)
        return tag

    def assign_pairs(self, entity_type: str, text: str | None, target: Any, separator: str = ",",
                     log: logging.Logger | logging.LoggerAdapter | None = None) -> list[FieldTag]:
        """Apply a ``"Squad: 34, Starting eleven: 30, ..."`` style sequence of pairs."""
        tags: list[FieldTag] = []
        for chunk in (text or "").split(separator):
            if ":" not in chunk:
                continue
            label, raw = chunk.rsplit(":", 1)
            tags.append(self.classify_and_assign(entity_type, label, raw, target, log))
        return tags


_DEFAULT: FieldClassifier | None = None


def default_classifier() -> FieldClassifier:
    global _DEFAULT
    if _DEFAULT is None:
        from ..core.config import settings

        _DEFAULT = FieldClassifier.with_overrides(settings.field_labels_path)
    return _DEFAULT


def classify_and_assign(entity_type: str, label: str | None, raw_text: str | None, target: Any) -> FieldTag:
    return default_classifier().classify_and_assign(entity_type, label, raw_text, target)


__all__ = [
    "FieldTag",
    "FieldClassifier",
    "COMPETITION",
    "SEASON_COMPETITION_STAT",
    "DEFAULT_CATALOGS",
    "default_classifier",
    "classify_and_assign",
]
