"""Bettor settings tests."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from wagerlab.risk.profile import BettorSettings


def test_defaults() -> None:
    settings = BettorSettings()
    assert settings.bankroll == 1000
    assert settings.kelly == 0.25
    assert settings.risk_period == "daily"
    assert settings.per_bet_cap() == 20
    assert settings.period_limit() == 50


def test_values_are_clamped() -> None:
    settings = BettorSettings(bankroll=10, kelly=3, max_per_bet_pct=250, period_limit_usd=-4)
    assert settings.bankroll == 50
    assert settings.kelly == 1.0
    assert settings.max_per_bet_pct == 100.0
    assert settings.period_limit_usd == 0


def test_dollar_modes() -> None:
    settings = BettorSettings().updated(maxPerBetMode="usd", max_per_bet_usd=35.4, period_mode="usd", periodLimitUsd=120)
    assert settings.per_bet_cap() == 35
    assert settings.period_limit() == 120


def test_updated_validates_and_leaves_original() -> None:
    original = BettorSettings()
    changed = original.updated(bankroll=2500.6, kelly=None)
    assert changed.bankroll == 2501
    assert changed.kelly == 0.25
    assert original.bankroll == 1000
    with pytest.raises(ValidationError):
        original.updated(risk_period="yearly")
    with pytest.raises(KeyError):
        original.updated(colour="blue")


def test_snapshot_uses_camel_case() -> None:
    snapshot = BettorSettings(odds_format="decimal").to_snapshot()
    assert snapshot["oddsFormat"] == "decimal"
    assert set(snapshot) >= {"maxPerBetMode", "periodLimitPct", "riskPeriod"}
    assert BettorSettings.model_validate(snapshot).odds_format == "decimal"
