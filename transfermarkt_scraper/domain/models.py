"""
Domain models for scraped Transfermarkt data using Pydantic.

Every entity gets its identifier at construction time and the identifier is frozen
afterwards. Site-keyed entities (Country, Competition, Club, Player) use the site id;
composite-keyed statistics derive theirs via ``identity_of`` from their key parts.
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Any, ClassVar, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from ..common.identity import identity_of
from .enums import Cup, Foot, MatchResult, NotPlayingReason, Position, Tier
from .errors import InvalidKey


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Entity(BaseModel):
    """Basis: Identität wird beim Erzeugen vergeben und ist danach unveränderlich."""

    model_config = ConfigDict(extra="ignore")

    id: str = Field(default="", frozen=True)
    update_date: datetime = Field(default_factory=_utcnow)

    # Felder, aus denen die Identität berechnet wird; leer = Site-ID wird direkt übernommen
    identity_fields: ClassVar[tuple[str, ...]] = ()

    @classmethod
    def identity_parts(cls, data: dict[str, Any]) -> list[Any]:
        return [data.get(name) for name in cls.identity_fields]

    @model_validator(mode="before")
    @classmethod
    def _assign_identity(cls, data: Any) -> Any:
        if not isinstance(data, dict) or data.get("id"):
            return data
        if not cls.identity_fields:
            raise InvalidKey(f"{cls.__name__} requires a site id")
        return {**data, "id": identity_of(cls.identity_parts(data))}

    def to_document(self) -> dict[str, Any]:
        return self.model_dump(mode="json")


# ---------------------------------------------------------------------------
# Site-keyed entities
# ---------------------------------------------------------------------------

class Country(Entity):
    name: Optional[str] = None
    flag: Optional[str] = None
    competition_ids: list[str] = Field(default_factory=list)


class Competition(Entity):
    name: Optional[str] = None
    link: Optional[str] = None
    logo: Optional[str] = None
    country_id: Optional[str] = None
    tier: Optional[Tier] = Tier.UNKNOWN
    cup: Optional[Cup] = Cup.NONE
    clubs_count: Optional[int] = None
    players_count: Optional[int] = None
    foreigners_count: Optional[int] = None
    participants: Optional[int] = None
    age_average: Optional[float] = None
    market_value: Optional[float] = None
    market_value_average: Optional[float] = None
    coefficient: Optional[float] = None
    current_champion: Optional[str] = None
    most_times_champion: Optional[str] = None
    is_scraped: bool = False


class Club(Entity):
    name: Optional[str] = None
    link: Optional[str] = None
    crest: Optional[str] = None
    competition_ids: list[str] = Field(default_factory=list)
    players_count: Optional[int] = None
    age_average: Optional[float] = None
    foreigners_count: Optional[int] = None
    market_value: Optional[float] = None
    market_value_average: Optional[float] = None
    player_ids: list[str] = Field(default_factory=list)


class MarketValue(BaseModel):
    """Bewertung zu einem Zeitpunkt; keine eigene Identität, gehört genau einem Player."""

    date: date
    value: float
    age: Optional[int] = None
    club_id: Optional[str] = None
    club_name: Optional[str] = None
    club_crest: Optional[str] = None


class Player(Entity):
    club_id: Optional[str] = None
    name: Optional[str] = None
    link: Optional[str] = None
    portrait: Optional[str] = None
    number: Optional[str] = None
    position: Position = Position.UNKNOWN
    date_of_birth: Optional[date] = None
    age: Optional[int] = None
    nationalities: list[str] = Field(default_factory=list)
    height: Optional[int] = None
    foot: Foot = Foot.UNKNOWN
    contract_start: Optional[date] = None
    contract_end: Optional[date] = None
    market_value: Optional[float] = None
    market_values: list[MarketValue] = Field(default_factory=list)
    player_stat_id: str = Field(default="", frozen=True)

    @model_validator(mode="before")
    @classmethod
    def _assign_stat_id(cls, data: Any) -> Any:
        if isinstance(data, dict) and data.get("id") and not data.get("player_stat_id"):
            return {**data, "player_stat_id": identity_of([data["id"], "stat"])}
        return data

    def nationality_flag_urls(self, flag_url: str) -> list[str]:
        return [f"{flag_url.rstrip('/')}/{country_id}.png" for country_id in self.nationalities]

    @staticmethod
    def nationalities_from_flag_urls(urls: list[str]) -> list[str]:
        from ..common.parsing import image_id_from_url

        return [cid for cid in (image_id_from_url(u) for u in urls) if cid]


# ---------------------------------------------------------------------------
# Statistics (composite keys)
# ---------------------------------------------------------------------------

class StatCounters(BaseModel):
    appearances: Optional[int] = None
    goals: Optional[int] = None
    assists: Optional[int] = None
    own_goals: Optional[int] = None
    substitutions_on: Optional[int] = None
    substitutions_off: Optional[int] = None
    yellow_cards: Optional[int] = None
    second_yellow_cards: Optional[int] = None
    red_cards: Optional[int] = None
    penalty_goals: Optional[int] = None
    goals_conceded: Optional[int] = None
    clean_sheets: Optional[int] = None
    minutes_per_goal: Optional[int] = None
    minutes_played: Optional[int] = None


class PlayerSeasonCompetitionMatchStat(Entity):
    identity_fields: ClassVar[tuple[str, ...]] = ("player_id", "home_club_id", "away_club_id", "date")

    player_id: str
    home_club_id: str
    away_club_id: str
    date: date
    match_day: Optional[str] = None
    link: Optional[str] = None
    home_club_name: Optional[str] = None
    home_club_logo: Optional[str] = None
    home_club_link: Optional[str] = None
    away_club_name: Optional[str] = None
    away_club_logo: Optional[str] = None
    away_club_link: Optional[str] = None
    home_club_goals: Optional[int] = None
    away_club_goals: Optional[int] = None
    match_result: MatchResult = MatchResult.UNKNOWN
    match_result_link: Optional[str] = None
    is_result_addition: bool = False
    is_result_penalties: bool = False
    position: Position = Position.UNKNOWN
    is_captain: bool = False
    goals: Optional[int] = None
    assists: Optional[int] = None
    own_goals: Optional[int] = None
    yellow_card: Optional[int] = None
    second_yellow_card: Optional[int] = None
    red_card: Optional[int] = None
    substituted_on: Optional[int] = None
    substituted_off: Optional[int] = None
    minutes_played: Optional[int] = None
    not_playing_reason: NotPlayingReason = NotPlayingReason.NONE

    @classmethod
    def identity_parts(cls, data: dict[str, Any]) -> list[Any]:
        day = data.get("date")
        if isinstance(day, (date, datetime)):
            day = day.strftime("%Y%m%d")
        elif isinstance(day, str):
            day = day.replace("-", "")
        return [data.get("player_id"), data.get("home_club_id"), data.get("away_club_id"), day]


class PlayerSeasonCompetitionStat(Entity, StatCounters):
    identity_fields: ClassVar[tuple[str, ...]] = ("player_id", "season_id", "competition_id")

    player_id: str
    season_id: str
    competition_id: str
    competition_name: Optional[str] = None
    competition_link: Optional[str] = None
    competition_logo: Optional[str] = None
    squad: Optional[int] = None
    starting_eleven: Optional[int] = None
    on_the_bench: Optional[int] = None
    suspended: Optional[int] = None
    injured: Optional[int] = None
    match_stats: list[PlayerSeasonCompetitionMatchStat] = Field(default_factory=list)


class PlayerSeasonStat(Entity, StatCounters):
    identity_fields: ClassVar[tuple[str, ...]] = ("player_id", "season_id")

    player_id: str
    season_id: str
    is_scraped: bool = False
    competition_stats: list[PlayerSeasonCompetitionStat] = Field(default_factory=list)


class PlayerCareerCompetitionStat(Entity):
    identity_fields: ClassVar[tuple[str, ...]] = ("player_id", "competition_id")

    player_id: str
    competition_id: str
    competition_name: Optional[str] = None
    appearances: int = 0
    goals: int = 0
    assists: int = 0
    own_goals: int = 0
    substitutions_on: int = 0
    substitutions_off: int = 0
    yellow_cards: int = 0
    second_yellow_cards: int = 0
    red_cards: int = 0
    penalty_goals: int = 0
    minutes_per_goal: int = 0
    minutes_played: int = 0


class PlayerCareerStat(BaseModel):
    appearances: int = 0
    goals: int = 0
    assists: int = 0
    own_goals: int = 0
    substitutions_on: int = 0
    substitutions_off: int = 0
    yellow_cards: int = 0
    second_yellow_cards: int = 0
    red_cards: int = 0
    penalty_goals: int = 0
    minutes_per_goal: int = 0
    minutes_played: int = 0
    competition_stats: list[PlayerCareerCompetitionStat] = Field(default_factory=list)


class PlayerStat(Entity):
    """Aggregat je Spieler; Wurzel der Reconciliation."""

    player_id: str
    season_stats: list[PlayerSeasonStat] = Field(default_factory=list)
    career: Optional[PlayerCareerStat] = None

    @classmethod
    def identity_parts(cls, data: dict[str, Any]) -> list[Any]:
        return [data.get("player_id"), "stat"]

    identity_fields: ClassVar[tuple[str, ...]] = ("player_id",)


__all__ = [
    "Entity",
    "Country",
    "Competition",
    "Club",
    "MarketValue",
    "Player",
    "StatCounters",
    "PlayerSeasonCompetitionMatchStat",
    "PlayerSeasonCompetitionStat",
    "PlayerSeasonStat",
    "PlayerCareerCompetitionStat",
    "PlayerCareerStat",
    "PlayerStat",
]
