"""Betting session orchestration and persistence tests."""

from __future__ import annotations

from datetime import datetime, timedelta
from pathlib import Path

import pytest

from wagerlab.db.database import SnapshotStore, open_store
from wagerlab.errors import BudgetExceeded, EmptyParlay
from wagerlab.parlays.types import ParlayLeg
from wagerlab.session import BettingSession


class FakeClock:
    def __init__(self) -> None:
        self.now = datetime(2025, 10, 5, 14, 0)

    def __call__(self) -> datetime:
        return self.now


def _leg(idx: int, odds: int = 100, prob: float | None = 0.6) -> ParlayLeg:
    return ParlayLeg(id=f"nfl_00{idx}:ML:HOME", label=f"Team {idx} ML", odds=odds, fair_probability=prob)


@pytest.fixture
def store(tmp_path: Path) -> SnapshotStore:
    return open_store(f"sqlite:///{tmp_path / 'wagerlab.db'}")


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def session(store: SnapshotStore, clock: FakeClock) -> BettingSession:
    betting = BettingSession(store, clock=clock)
    betting.update_settings(
        max_per_bet_mode="usd",
        max_per_bet_usd=20,
        period_mode="usd",
        period_limit_usd=200,
    )
    return betting


def test_fresh_session_defaults(clock: FakeClock) -> None:
    betting = BettingSession(clock=clock)
    assert betting.settings.bankroll == 1000
    assert betting.legs == ()
    assert betting.stake == 100
    status = betting.risk_status()
    assert status.limit == 50
    assert status.remaining == 50
    assert status.period_key == "2025-10-05"


def test_add_leg_reserves_and_logs(session: BettingSession) -> None:
    outcome = session.add_leg(_leg(1))
    assert outcome.reservation is not None
    assert outcome.reservation.amount == 20
    status = session.risk_status()
    assert status.consumed == 20
    assert status.reserved == 20
    assert status.remaining == 180
    event = session.activity.events[0]
    assert event.kind == "add"
    assert event.amounts["reserved"] == 20
    assert event.labels == ("Team 1 ML",)


def test_duplicate_add_does_not_log(session: BettingSession) -> None:
    session.add_leg(_leg(1))
    session.add_leg(_leg(1))
    assert len(session.legs) == 1
    assert len(session.activity) == 1
    assert session.risk_status().consumed == 20


def test_budget_rejection_propagates(session: BettingSession) -> None:
    session.update_settings(period_limit_usd=30)
    session.add_leg(_leg(1))
    with pytest.raises(BudgetExceeded) as excinfo:
        session.add_leg(_leg(2))
    assert excinfo.value.remaining == 10
    assert len(session.legs) == 1
    assert len(session.activity) == 1


def test_state_survives_reload(session: BettingSession, store: SnapshotStore, clock: FakeClock) -> None:
    session.add_leg(_leg(1))
    session.add_leg(_leg(2, prob=None))
    session.set_stake(42.6)

    reloaded = BettingSession(store, clock=clock)
    assert [leg.id for leg in reloaded.legs] == [leg.id for leg in session.legs]
    assert reloaded.legs[0].reservation_key == "2025-10-05"
    assert reloaded.stake == 43
    assert reloaded.settings.per_bet_cap() == 20
    assert reloaded.risk_status().consumed == 20
    assert [e.kind for e in reloaded.activity.events] == ["add", "add"]


def test_remove_and_clear(session: BettingSession) -> None:
    session.add_leg(_leg(1))
    session.add_leg(_leg(2))
    session.add_leg(_leg(3))
    removed = session.remove_leg("nfl_001:ML:HOME")
    assert removed.refund == 20
    assert session.remove_leg("missing").removed is None

    cleared = session.clear(refund=True)
    assert cleared.refund_total == 40
    assert session.legs == ()
    assert session.risk_status().consumed == 0
    assert [e.kind for e in session.activity.events][:2] == ["clear", "remove"]
    assert session.clear().cleared == 0


def test_place_realizes_stake(session: BettingSession) -> None:
    with pytest.raises(EmptyParlay):
        session.place()
    session.add_leg(_leg(1))
    session.add_leg(_leg(2))
    session.set_stake(50)

    summary = session.parlay_summary()
    assert summary.combined_american == 300
    assert summary.potential_return == pytest.approx(200.0)
    assert summary.fair_probability == pytest.approx(0.36)
    assert summary.suggested_stake == 20

    result = session.place()
    assert result.stake == 50
    assert result.released == 40
    assert session.legs == ()
    status = session.risk_status()
    assert status.consumed == 50
    assert status.realized == 50
    event = session.activity.events[0]
    assert event.kind == "place"
    assert event.amounts["stake"] == 50
    assert event.labels == ("Team 1 ML", "Team 2 ML")


def test_reset_risk_and_rollover(session: BettingSession, clock: FakeClock) -> None:
    session.add_leg(_leg(1))
    session.place(20)
    assert session.reset_risk().consumed == 0

    session.add_leg(_leg(2))
    clock.now += timedelta(days=1)
    assert session.risk_status().consumed == 0
    assert session.remove_leg("nfl_002:ML:HOME").refund == 20
    assert session.risk_status().consumed == 0


def test_slip_text_uses_odds_format(session: BettingSession) -> None:
    session.add_leg(_leg(1))
    assert "Combined odds: +100" in session.slip_text()
    session.update_settings(odds_format="decimal")
    assert "Combined odds: 2.00" in session.slip_text()


def test_old_settings_snapshot_is_migrated(store: SnapshotStore, clock: FakeClock) -> None:
    store.save("settings", 2, {"oddsFormat": "decimal", "bankroll": 2000, "kelly": 0.5})
    betting = BettingSession(store, clock=clock)
    assert betting.settings.odds_format == "decimal"
    assert betting.settings.bankroll == 2000
    assert betting.settings.period_limit() == 100


def test_old_parlay_snapshot_gains_stake(store: SnapshotStore, clock: FakeClock) -> None:
    store.save("parlay", 1, {"legs": [{"id": "x", "label": "X ML", "odds": 120}]})
    betting = BettingSession(store, clock=clock)
    assert betting.stake == 100
    assert betting.legs[0].reservation is None


def test_incompatible_snapshots_fall_back(store: SnapshotStore, clock: FakeClock) -> None:
    store.save("risk", 1, {"periodKey": "2025-10-05", "consumed": 99})
    store.save("history", 1, [{"kind": "add"}])
    betting = BettingSession(store, clock=clock)
    assert betting.risk_status().consumed == 0
    assert len(betting.activity) == 0


def test_non_mapping_snapshots_fall_back(store: SnapshotStore, clock: FakeClock) -> None:
    store.save("risk", 3, ["bad"])
    store.save("parlay", 2, ["bad"])
    store.save("settings", 3, ["bad"])
    store.save("history", 1, {"kind": "add"})
    betting = BettingSession(store, clock=clock)
    assert betting.risk_status().consumed == 0
    assert betting.legs == ()
    assert betting.stake == 100
    assert betting.settings.bankroll == 1000
    assert len(betting.activity) == 0


def test_parlay_expected_value_uses_exact_combined_price(session: BettingSession) -> None:
    session.add_leg(ParlayLeg(id="a", label="Chiefs ML -150", odds=-150, fair_probability=0.6))
    session.add_leg(ParlayLeg(id="b", label="Ravens ML +130", odds=130, fair_probability=0.45))
    summary = session.parlay_summary()
    assert summary.combined_american == 283
    assert summary.combined_decimal == pytest.approx(23 / 6)
    assert summary.expected_value == pytest.approx(3.5)
