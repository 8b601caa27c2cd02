"""Bettor settings snapshot read by the wager engine."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from wagerlab.ev.odds_math import OddsFormat, round_half_up
from wagerlab.risk.ledger import PeriodType

CapMode = Literal["pct", "usd"]

MIN_BANKROLL = 50


class BettorSettings(BaseModel):
    """User-owned sizing preferences.

    Values are clamped rather than rejected, mirroring how the settings form
    coerces input. Instances are frozen; use :meth:`updated` to derive a new
    snapshot.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="ignore",
    )

    odds_format: OddsFormat = "american"
    bankroll: int = Field(default=1000)
    kelly: float = Field(default=0.25)
    max_per_bet_mode: CapMode = "pct"
    max_per_bet_pct: float = Field(default=2.0)
    max_per_bet_usd: int = Field(default=25)
    risk_period: PeriodType = "daily"
    period_mode: CapMode = "pct"
    period_limit_pct: float = Field(default=5.0)
    period_limit_usd: int = Field(default=50)

    @field_validator("bankroll", mode="before")
    @classmethod
    def _clamp_bankroll(cls, value: Any) -> int:
        return max(MIN_BANKROLL, round_half_up(float(value)))

    @field_validator("kelly", mode="before")
    @classmethod
    def _clamp_kelly(cls, value: Any) -> float:
        return min(max(float(value), 0.0), 1.0)

    @field_validator("max_per_bet_pct", "period_limit_pct", mode="before")
    @classmethod
    def _clamp_pct(cls, value: Any) -> float:
        return min(max(float(value), 0.0), 100.0)

    @field_validator("max_per_bet_usd", "period_limit_usd", mode="before")
    @classmethod
    def _clamp_usd(cls, value: Any) -> int:
        return max(0, round_half_up(float(value)))

    def per_bet_cap(self) -> int:
        if self.max_per_bet_mode == "usd":
            return self.max_per_bet_usd
        return round_half_up(self.bankroll * self.max_per_bet_pct / 100)

    def period_limit(self) -> int:
        if self.period_mode == "usd":
            return self.period_limit_usd
        return round_half_up(self.bankroll * self.period_limit_pct / 100)

    def updated(self, **changes: Any) -> BettorSettings:
        """Return a validated copy with ``changes`` applied (snake_case or camelCase keys)."""

        data = self.model_dump()
        for name, value in changes.items():
            if value is None:
                continue
            data[_attribute_name(name)] = value
        return BettorSettings.model_validate(data)

    def to_snapshot(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)


def _attribute_name(name: str) -> str:
    for field_name, info in BettorSettings.model_fields.items():
        if name in (field_name, info.alias):
            return field_name
    raise KeyError(f"Unknown bettor setting: {name!r}")
