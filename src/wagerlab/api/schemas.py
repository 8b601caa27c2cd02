"""Pydantic schemas for the wagerlab API."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from wagerlab.activity.log import ActivityEvent
from wagerlab.data.schemas import AmericanOdds
from wagerlab.ev.featured import FeaturedPick
from wagerlab.parlays.types import ParlayLeg, PlacementResult
from wagerlab.session import ParlaySummary, RiskStatus


class LegIn(BaseModel):
    id: str
    label: str
    odds: AmericanOdds
    fair_probability: float | None = Field(default=None, ge=0.0, le=1.0)

    def to_leg(self) -> ParlayLeg:
        return ParlayLeg(id=self.id, label=self.label, odds=self.odds, fair_probability=self.fair_probability)


class LegOut(BaseModel):
    id: str
    label: str
    odds: int
    fair_probability: float | None = None
    reserved_amount: int | None = None
    reservation_key: str | None = None

    @classmethod
    def from_leg(cls, leg: ParlayLeg) -> LegOut:
        return cls(
            id=leg.id,
            label=leg.label,
            odds=leg.odds,
            fair_probability=leg.fair_probability,
            reserved_amount=leg.reserved_amount,
            reservation_key=leg.reservation_key,
        )


class ParlayResponse(BaseModel):
    legs: list[LegOut]
    stake: int
    combined_decimal: float
    combined_american: int
    fair_probability: float | None
    potential_return: float
    potential_profit: float
    suggested_stake: int | None
    expected_value: float | None
    slip: str

    @classmethod
    def from_summary(cls, summary: ParlaySummary, slip: str) -> ParlayResponse:
        return cls(
            legs=[LegOut.from_leg(leg) for leg in summary.legs],
            stake=summary.stake,
            combined_decimal=summary.combined_decimal,
            combined_american=summary.combined_american,
            fair_probability=summary.fair_probability,
            potential_return=summary.potential_return,
            potential_profit=summary.potential_profit,
            suggested_stake=summary.suggested_stake,
            expected_value=summary.expected_value,
            slip=slip,
        )


class ClearRequest(BaseModel):
    refund: bool = True


class ClearResponse(BaseModel):
    cleared: int
    refund_total: int


class StakeRequest(BaseModel):
    stake: float


class PlaceRequest(BaseModel):
    stake: float | None = None


class PlacementResponse(BaseModel):
    stake: int
    american_odds: int
    labels: list[str]
    period_key: str
    released: int

    @classmethod
    def from_result(cls, result: PlacementResult) -> PlacementResponse:
        return cls(
            stake=result.stake,
            american_odds=result.american_odds,
            labels=list(result.labels),
            period_key=result.period_key,
            released=result.released,
        )


class RiskResponse(BaseModel):
    period_key: str
    limit: int
    consumed: int
    realized: int
    reserved: int
    remaining: int

    @classmethod
    def from_status(cls, status: RiskStatus) -> RiskResponse:
        return cls(
            period_key=status.period_key,
            limit=status.limit,
            consumed=status.consumed,
            realized=status.realized,
            reserved=status.reserved,
            remaining=status.remaining,
        )


class FeaturedPickResponse(BaseModel):
    id: str
    game_id: str
    league: str | None
    matchup: str
    label: str
    parlay_label: str
    odds: int
    ev: float
    fair_probability: float
    kind: str
    prop_name: str | None = None
    suggested_stake: int | None = None

    @classmethod
    def from_pick(cls, pick: FeaturedPick, stake: int | None) -> FeaturedPickResponse:
        return cls(
            id=pick.id,
            game_id=pick.game_id,
            league=pick.league,
            matchup=pick.matchup,
            label=pick.label,
            parlay_label=pick.parlay_label,
            odds=pick.odds,
            ev=pick.ev,
            fair_probability=pick.fair_probability,
            kind=pick.kind,
            prop_name=pick.prop_name,
            suggested_stake=stake,
        )


class ActivityEventResponse(BaseModel):
    timestamp: datetime
    kind: str
    amounts: dict[str, float]
    labels: list[str]
    period_key: str | None = None

    @classmethod
    def from_event(cls, event: ActivityEvent) -> ActivityEventResponse:
        return cls(
            timestamp=event.timestamp,
            kind=event.kind,
            amounts=dict(event.amounts),
            labels=list(event.labels),
            period_key=event.period_key,
        )


class SettingsUpdate(BaseModel):
    """Partial settings change; omitted fields keep their current value."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    odds_format: str | None = None
    bankroll: float | None = None
    kelly: float | None = None
    max_per_bet_mode: str | None = None
    max_per_bet_pct: float | None = None
    max_per_bet_usd: float | None = None
    risk_period: str | None = None
    period_mode: str | None = None
    period_limit_pct: float | None = None
    period_limit_usd: float | None = None

    def changes(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)
