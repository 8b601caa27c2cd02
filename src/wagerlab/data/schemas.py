"""Pydantic schemas for odds-source payloads."""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Literal, Union

from pydantic import AfterValidator, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

LeagueId = Literal["nfl", "ncaaf"]


class _FeedModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


def _nonzero(value: int) -> int:
    if value == 0:
        raise ValueError("0 is not a valid American price")
    return value


AmericanOdds = Annotated[int, AfterValidator(_nonzero)]


class Side(BaseModel):
    """One priced outcome of a two-sided market."""

    model_config = ConfigDict(frozen=True)

    key: str
    label: str
    odds: int


class MoneylineMarket(_FeedModel):
    kind: Literal["moneyline"] = Field("moneyline", alias="type")
    home_odds: AmericanOdds | None = None
    away_odds: AmericanOdds | None = None

    def sides(self, home: str, away: str) -> tuple[Side, Side] | None:
        if self.home_odds is None or self.away_odds is None:
            return None
        return (
            Side(key="ML:HOME", label=f"{home} ML", odds=self.home_odds),
            Side(key="ML:AWAY", label=f"{away} ML", odds=self.away_odds),
        )


class SpreadMarket(_FeedModel):
    kind: Literal["spread"] = Field("spread", alias="type")
    home: float
    away: float
    home_odds: AmericanOdds | None = None
    away_odds: AmericanOdds | None = None

    def sides(self, home: str, away: str) -> tuple[Side, Side] | None:
        if self.home_odds is None or self.away_odds is None:
            return None
        return (
            Side(
                key=f"SPREAD:HOME:{format_line(self.home)}",
                label=f"{home} {format_line(self.home, signed=True)}",
                odds=self.home_odds,
            ),
            Side(
                key=f"SPREAD:AWAY:{format_line(self.away)}",
                label=f"{away} {format_line(self.away, signed=True)}",
                odds=self.away_odds,
            ),
        )


class TotalMarket(_FeedModel):
    kind: Literal["total"] = Field("total", alias="type")
    line: float
    over_odds: AmericanOdds | None = None
    under_odds: AmericanOdds | None = None

    def sides(self, home: str, away: str) -> tuple[Side, Side] | None:
        if self.over_odds is None or self.under_odds is None:
            return None
        line = format_line(self.line)
        return (
            Side(key=f"TOTAL:OVER:{line}", label=f"Over {line}", odds=self.over_odds),
            Side(key=f"TOTAL:UNDER:{line}", label=f"Under {line}", odds=self.under_odds),
        )


class PropMarket(_FeedModel):
    kind: Literal["prop"] = Field("prop", alias="type")
    name: str
    line: float
    over_odds: AmericanOdds | None = None
    under_odds: AmericanOdds | None = None

    def sides(self, home: str, away: str) -> tuple[Side, Side] | None:
        if self.over_odds is None or self.under_odds is None:
            return None
        slug = "_".join(self.name.split())
        line = format_line(self.line)
        return (
            Side(key=f"PROP:{slug}:OVER:{line}", label=f"{self.name} Over {line}", odds=self.over_odds),
            Side(key=f"PROP:{slug}:UNDER:{line}", label=f"{self.name} Under {line}", odds=self.under_odds),
        )


MarketQuote = Annotated[
    Union[MoneylineMarket, SpreadMarket, TotalMarket],
    Field(discriminator="kind"),
]


class GameSummary(_FeedModel):
    id: str
    home: str
    away: str
    starts_at: datetime
    league: LeagueId | None = None

    @property
    def matchup(self) -> str:
        return f"{self.away} @ {self.home}"


class GameDetails(GameSummary):
    markets: list[MarketQuote] = Field(default_factory=list)
    props: list[PropMarket] = Field(default_factory=list)

    def market(self, kind: str) -> MoneylineMarket | SpreadMarket | TotalMarket | None:
        return next((m for m in self.markets if m.kind == kind), None)


def format_line(value: float, signed: bool = False) -> str:
    """``-3.5`` / ``47`` / ``+3.5`` style line text."""

    text = f"{value:g}"
    if signed and value >= 0:
        return f"+{text}"
    return text
