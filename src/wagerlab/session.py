"""Orchestrating context that owns ledger, parlay, settings and activity state.

A :class:`BettingSession` is the single writer for one bettor. User actions go
through its methods, which call the wager engine, record an activity event and
save every touched snapshot before returning. Callers that dispatch from
several threads or event handlers must serialise their calls.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from pydantic import ValidationError

from wagerlab.activity.log import ActivityEvent, ActivityLog
from wagerlab.config import get_settings
from wagerlab.db.database import SnapshotStore, register_migration
from wagerlab.errors import BudgetExceeded
from wagerlab.ev.featured import FeaturedPick
from wagerlab.ev.odds_math import ev_for_decimal_stake, round_half_up
from wagerlab.parlays.combiner import (
    combined_american_odds,
    combined_decimal_odds,
    combined_fair_probability,
    format_slip,
    potential_profit,
    potential_return,
)
from wagerlab.parlays.engine import P, WagerEngine
from wagerlab.parlays.types import AddOutcome, ClearOutcome, ParlayLeg, PlacementResult, RemoveOutcome
from wagerlab.risk.ledger import RiskLedger
from wagerlab.risk.profile import BettorSettings

logger = logging.getLogger(__name__)

RISK_VERSION = 3
PARLAY_VERSION = 2
SETTINGS_VERSION = 3
HISTORY_VERSION = 1

DEFAULT_STAKE = 100

_BAD_SNAPSHOT = (ValidationError, AttributeError, KeyError, TypeError, ValueError)


@register_migration("settings", 1)
@register_migration("settings", 2)
def _settings_add_caps(payload: dict[str, Any]) -> dict[str, Any]:
    # pre-cap snapshots only carried oddsFormat/bankroll/kelly; defaults fill the rest
    return dict(payload)


@register_migration("parlay", 1)
def _parlay_add_stake(payload: dict[str, Any]) -> dict[str, Any]:
    return {"legs": list(payload.get("legs", [])), "stake": DEFAULT_STAKE}


@dataclass(frozen=True)
class RiskStatus:
    period_key: str
    limit: int
    consumed: int
    realized: int
    remaining: int

    @property
    def reserved(self) -> int:
        return self.consumed - self.realized


@dataclass(frozen=True)
class ParlaySummary:
    legs: tuple[ParlayLeg, ...]
    stake: int
    combined_decimal: float
    combined_american: int
    fair_probability: float | None
    potential_return: float
    potential_profit: float
    suggested_stake: int | None
    expected_value: float | None


class BettingSession:
    def __init__(
        self,
        store: SnapshotStore | None = None,
        *,
        clock: Callable[[], datetime] | None = None,
        activity_cap: int | None = None,
    ) -> None:
        self._store = store
        self._clock = clock or datetime.now
        self._settings = self._load_settings()
        self.ledger = self._load_ledger()
        self.engine = WagerEngine(self.ledger)
        self._legs, self._stake = self._load_parlay()
        self.activity = self._load_history(activity_cap or get_settings().activity_log_cap)

    # -- persistence -------------------------------------------------------

    def _load(self, name: str, version: int) -> Any | None:
        if self._store is None:
            return None
        return self._store.load(name, version)

    def _save(self, *names: str) -> None:
        if self._store is None:
            return
        payloads = {
            "settings": (SETTINGS_VERSION, lambda: self._settings.to_snapshot()),
            "risk": (RISK_VERSION, lambda: self.ledger.snapshot()),
            "parlay": (
                PARLAY_VERSION,
                lambda: {"legs": [leg.to_snapshot() for leg in self._legs], "stake": self._stake},
            ),
            "history": (HISTORY_VERSION, lambda: self.activity.to_snapshot()),
        }
        for name in names:
            version, build = payloads[name]
            self._store.save(name, version, build())
        logger.debug("Saved snapshots: %s", ", ".join(names))

    def _load_settings(self) -> BettorSettings:
        data = self._load("settings", SETTINGS_VERSION)
        if data is not None:
            try:
                return BettorSettings.model_validate(data)
            except _BAD_SNAPSHOT as exc:
                logger.warning("Ignoring invalid settings snapshot: %s", exc)
        return BettorSettings()

    def _load_ledger(self) -> RiskLedger:
        data = self._load("risk", RISK_VERSION)
        if data is not None:
            try:
                return RiskLedger.from_snapshot(data, clock=self._clock)
            except _BAD_SNAPSHOT as exc:
                logger.warning("Ignoring invalid risk snapshot: %s", exc)
        return RiskLedger(clock=self._clock)

    def _load_parlay(self) -> tuple[tuple[ParlayLeg, ...], int]:
        data = self._load("parlay", PARLAY_VERSION)
        if data is not None:
            try:
                legs = tuple(ParlayLeg.from_snapshot(item) for item in data.get("legs", []))
                return legs, max(1, round_half_up(float(data.get("stake", DEFAULT_STAKE))))
            except _BAD_SNAPSHOT as exc:
                logger.warning("Ignoring invalid parlay snapshot: %s", exc)
        return (), DEFAULT_STAKE

    def _load_history(self, cap: int) -> ActivityLog:
        data = self._load("history", HISTORY_VERSION)
        events: list[ActivityEvent] = []
        if data is not None:
            try:
                events = [ActivityEvent.from_snapshot(item) for item in data]
            except _BAD_SNAPSHOT as exc:
                logger.warning("Ignoring invalid history snapshot: %s", exc)
        return ActivityLog(events, cap=cap, clock=self._clock)

    # -- read models -------------------------------------------------------

    @property
    def settings(self) -> BettorSettings:
        return self._settings

    @property
    def legs(self) -> tuple[ParlayLeg, ...]:
        return self._legs

    @property
    def stake(self) -> int:
        return self._stake

    def risk_status(self) -> RiskStatus:
        period = self._settings.risk_period
        limit = self._settings.period_limit()
        return RiskStatus(
            period_key=self.ledger.current_key(period),
            limit=limit,
            consumed=self.ledger.consumed(period),
            realized=self.ledger.realized(period),
            remaining=self.ledger.remaining(period, limit),
        )

    def parlay_summary(self) -> ParlaySummary:
        legs = self._legs
        fair = combined_fair_probability(legs) if legs else None
        decimal = combined_decimal_odds(legs)
        american = combined_american_odds(legs) if legs else 0
        expected = None
        if fair is not None and legs:
            expected = ev_for_decimal_stake(decimal, fair, self._stake)
        return ParlaySummary(
            legs=legs,
            stake=self._stake,
            combined_decimal=decimal,
            combined_american=american,
            fair_probability=fair,
            potential_return=potential_return(legs, self._stake) if legs else 0.0,
            potential_profit=potential_profit(legs, self._stake) if legs else 0.0,
            suggested_stake=self.engine.suggest_parlay_stake(legs, self._settings),
            expected_value=expected,
        )

    def slip_text(self) -> str:
        return format_slip(self._legs, self._stake, self._settings.odds_format)

    def size_picks(self, picks: Iterable[P]) -> list[tuple[P, int | None]]:
        return self.engine.size_picks(picks, self._settings)

    # -- mutations ---------------------------------------------------------

    def update_settings(self, **changes: Any) -> BettorSettings:
        self._settings = self._settings.updated(**changes)
        self._save("settings")
        return self._settings

    def add_leg(self, pick: ParlayLeg | FeaturedPick) -> AddOutcome:
        leg = pick.to_leg() if isinstance(pick, FeaturedPick) else pick
        try:
            outcome = self.engine.add_pick(leg, self._legs, self._settings)
        except BudgetExceeded as exc:
            logger.warning("Leg %s rejected: %s", leg.id, exc)
            raise
        if not outcome.added:
            return outcome
        self._legs = outcome.legs
        reserved = outcome.reservation.amount if outcome.reservation else 0
        self.activity.log(
            "add",
            {"reserved": reserved, "odds": leg.odds},
            [leg.label],
            period_key=outcome.reservation.key if outcome.reservation else None,
        )
        self._save("parlay", "risk", "history")
        return outcome

    def remove_leg(self, leg_id: str) -> RemoveOutcome:
        outcome = self.engine.remove_pick(leg_id, self._legs, self._settings)
        if outcome.removed is None:
            return outcome
        self._legs = outcome.legs
        self.activity.log(
            "remove",
            {"refund": outcome.refund, "odds": outcome.removed.odds},
            [outcome.removed.label],
            period_key=outcome.removed.reservation_key,
        )
        self._save("parlay", "risk", "history")
        return outcome

    def clear(self, refund: bool = True) -> ClearOutcome:
        labels = [leg.label for leg in self._legs]
        outcome = self.engine.clear_parlay(self._legs, self._settings, refund=refund)
        if not outcome.cleared:
            return outcome
        self._legs = outcome.legs
        self.activity.log(
            "clear",
            {"refund": outcome.refund_total, "count": outcome.cleared},
            labels,
            period_key=self.ledger.current_key(self._settings.risk_period),
        )
        self._save("parlay", "risk", "history")
        return outcome

    def set_stake(self, value: float) -> int:
        self._stake = max(1, round_half_up(value))
        self._save("parlay")
        return self._stake

    def place(self, stake: float | None = None) -> PlacementResult:
        """Place the queued parlay at ``stake`` (default: the working stake)."""

        amount = self._stake if stake is None else stake
        result = self.engine.place_parlay(self._legs, amount, self._settings)
        self._legs = ()
        self.activity.log(
            "place",
            {"stake": result.stake, "american": result.american_odds, "released": result.released},
            result.labels,
            period_key=result.period_key,
        )
        self._save("parlay", "risk", "history")
        return result

    def reset_risk(self) -> RiskStatus:
        self.ledger.reset(self._settings.risk_period)
        self._save("risk")
        return self.risk_status()

    def clear_history(self) -> None:
        self.activity.clear_all()
        self._save("history")
