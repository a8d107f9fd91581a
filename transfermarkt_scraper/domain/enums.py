"""Tagged enums with one bidirectional display-label table per type.

``Tier.FIRST_TIER.label == "First Tier"`` and ``Tier.from_label("first tier") is Tier.FIRST_TIER``.
Lookups are case-insensitive; types with a keyword list additionally match by substring
(the site embeds e.g. the cup type in longer sentences).
"""

from __future__ import annotations

from enum import Enum
from typing import Optional


class LabeledEnum(Enum):
    @property
    def label(self) -> str:
        return _LABELS[type(self)].get(self, "")

    @classmethod
    def match_label(cls, text: Optional[str]):
        """Like `from_label`, but ``None`` when neither a label nor a keyword matches."""
        if not text:
            return None
        needle = " ".join(text.replace("\xa0", " ").split()).lower()
        for member, label in _LABELS[cls].items():
            if label and label.lower() == needle:
                return member
        for keyword, member in _KEYWORDS.get(cls, ()):
            if keyword in needle:
                return member
        return None

    @classmethod
    def from_label(cls, text: Optional[str]):
        member = cls.match_label(text)
        return _DEFAULTS[cls] if member is None else member

    def __str__(self) -> str:  # pragma: no cover - convenience
        return self.label


class Tier(LabeledEnum):
    NONE = 0
    FIRST_TIER = 1
    SECOND_TIER = 2
    THIRD_TIER = 3
    YOUTH_LEAGUE = 4
    UNKNOWN = 5


class Cup(LabeledEnum):
    NONE = 0
    UNKNOWN = 1
    DOMESTIC = 2
    SUPERCUP = 3
    INTERNATIONAL = 4


class Foot(LabeledEnum):
    UNKNOWN = 0
    RIGHT = 1
    LEFT = 2
    BOTH = 3


class Position(LabeledEnum):
    UNKNOWN = 0
    GOALKEEPER = 1
    CENTRE_BACK = 2
    LEFT_BACK = 3
    RIGHT_BACK = 4
    DEFENSIVE_MIDFIELD = 5
    CENTRAL_MIDFIELD = 6
    ATTACKING_MIDFIELD = 7
    LEFT_WINGER = 8
    RIGHT_WINGER = 9
    CENTRE_FORWARD = 10
    RIGHT_MIDFIELD = 11
    LEFT_MIDFIELD = 12
    SECOND_STRIKER = 13


class MatchResult(LabeledEnum):
    UNKNOWN = 0
    WIN = 1
    DRAW = 2
    LOSS = 3


class NotPlayingReason(LabeledEnum):
    NONE = 0
    ON_THE_BENCH = 1
    NOT_IN_SQUAD = 2
    INJURED = 3
    RED_CARD_SUSPENSION = 4
    OTHER = 5


_LABELS: dict[type, dict[LabeledEnum, str]] = {
    Tier: {
        Tier.NONE: "",
        Tier.FIRST_TIER: "First Tier",
        Tier.SECOND_TIER: "Second Tier",
        Tier.THIRD_TIER: "Third Tier",
        Tier.YOUTH_LEAGUE: "Youth league",
        Tier.UNKNOWN: "Unknown",
    },
    Cup: {
        Cup.NONE: "",
        Cup.UNKNOWN: "Unknown Cup",
        Cup.DOMESTIC: "Domestic Cup",
        Cup.SUPERCUP: "Domestic Super Cup",
        Cup.INTERNATIONAL: "International Cup",
    },
    Foot: {
        Foot.UNKNOWN: "unknown",
        Foot.RIGHT: "right",
        Foot.LEFT: "left",
        Foot.BOTH: "both",
    },
    Position: {
        Position.UNKNOWN: "Unknown",
        Position.GOALKEEPER: "Goalkeeper",
        Position.CENTRE_BACK: "Centre-Back",
        Position.LEFT_BACK: "Left-Back",
        Position.RIGHT_BACK: "Right-Back",
        Position.DEFENSIVE_MIDFIELD: "Defensive Midfield",
        Position.CENTRAL_MIDFIELD: "Central Midfield",
        Position.ATTACKING_MIDFIELD: "Attacking Midfield",
        Position.LEFT_WINGER: "Left Winger",
        Position.RIGHT_WINGER: "Right Winger",
        Position.CENTRE_FORWARD: "Centre-Forward",
        Position.RIGHT_MIDFIELD: "Right Midfield",
        Position.LEFT_MIDFIELD: "Left Midfield",
        Position.SECOND_STRIKER: "Second Striker",
    },
    MatchResult: {
        MatchResult.UNKNOWN: "Unknown",
        MatchResult.WIN: "Win",
        MatchResult.DRAW: "Draw",
        MatchResult.LOSS: "Loss",
    },
    NotPlayingReason: {
        NotPlayingReason.NONE: "None",
        NotPlayingReason.ON_THE_BENCH: "On the Bench",
        NotPlayingReason.NOT_IN_SQUAD: "Not in Squad",
        NotPlayingReason.INJURED: "Injured",
        NotPlayingReason.RED_CARD_SUSPENSION: "Red Card Suspension",
        NotPlayingReason.OTHER: "Other",
    },
}

_DEFAULTS: dict[type, LabeledEnum] = {
    Tier: Tier.UNKNOWN,
    Cup: Cup.UNKNOWN,
    Foot: Foot.UNKNOWN,
    Position: Position.UNKNOWN,
    MatchResult: MatchResult.UNKNOWN,
    NotPlayingReason: NotPlayingReason.OTHER,
}

# Reihenfolge zählt: spezifischere Schlüsselwörter zuerst
_KEYWORDS: dict[type, tuple[tuple[str, LabeledEnum], ...]] = {
    Tier: (
        ("youth", Tier.YOUTH_LEAGUE),
        ("first tier", Tier.FIRST_TIER),
        ("second tier", Tier.SECOND_TIER),
        ("third tier", Tier.THIRD_TIER),
    ),
    Cup: (
        ("super cup", Cup.SUPERCUP),
        ("supercup", Cup.SUPERCUP),
        ("international", Cup.INTERNATIONAL),
        ("domestic", Cup.DOMESTIC),
        ("national", Cup.DOMESTIC),
    ),
    NotPlayingReason: (
        ("bench", NotPlayingReason.ON_THE_BENCH),
        ("not in squad", NotPlayingReason.NOT_IN_SQUAD),
        ("suspen", NotPlayingReason.RED_CARD_SUSPENSION),
        ("injur", NotPlayingReason.INJURED),
    ),
}


__all__ = [
    "LabeledEnum",
    "Tier",
    "Cup",
    "Foot",
    "Position",
    "MatchResult",
    "NotPlayingReason",
]
