"""Stake sizing and parlay budget orchestration."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from typing import Protocol, TypeVar

from wagerlab.errors import BudgetExceeded, EmptyParlay, NonPositiveStake, UndefinedFairProbability
from wagerlab.ev.odds_math import american_to_decimal, kelly_fraction, kelly_fraction_for_decimal, round_half_up
from wagerlab.parlays.combiner import (
    combined_american_odds,
    combined_decimal_odds,
    combined_fair_probability,
)
from wagerlab.parlays.types import (
    AddOutcome,
    ClearOutcome,
    ParlayLeg,
    PlacementResult,
    RemoveOutcome,
    Reservation,
)
from wagerlab.risk.ledger import RiskLedger
from wagerlab.risk.profile import BettorSettings

logger = logging.getLogger(__name__)


class PricedPick(Protocol):
    odds: int
    fair_probability: float | None


P = TypeVar("P", bound=PricedPick)


def _capped_stake(fraction: float, bankroll: float, cap: float) -> int:
    if fraction <= 0:
        return 0
    raw = round_half_up(bankroll * fraction)
    return max(0, min(raw, round_half_up(cap)))


def size_single_pick(
    odds: int,
    fair_probability: float | None,
    bankroll: float,
    kelly_multiplier: float,
    per_bet_cap: float,
) -> int:
    """Fractional-Kelly stake in whole dollars, capped at ``per_bet_cap``."""

    if fair_probability is None:
        raise UndefinedFairProbability(f"No fair probability for price {odds}")
    fraction = max(0.0, kelly_fraction(odds, fair_probability) * kelly_multiplier)
    return _capped_stake(fraction, bankroll, per_bet_cap)


def size_parlay(
    legs: Sequence[ParlayLeg],
    bankroll: float,
    kelly_multiplier: float,
    per_bet_cap: float,
    period_remaining: float,
) -> int:
    """Kelly stake against the combined price, never past the remaining budget."""

    prob = combined_fair_probability(legs)
    if prob is None:
        raise UndefinedFairProbability("Every leg needs a fair probability to size a parlay")
    fraction = max(0.0, kelly_fraction_for_decimal(combined_decimal_odds(legs), prob) * kelly_multiplier)
    return _capped_stake(fraction, bankroll, min(per_bet_cap, period_remaining))


class WagerEngine:
    """Sizes picks and keeps parlay reservations in step with a risk ledger.

    The engine never holds parlay legs itself: every operation takes the
    current legs and returns the new ones, so the owner decides when to commit
    and persist them.
    """

    def __init__(self, ledger: RiskLedger) -> None:
        self.ledger = ledger

    def size_pick(self, pick: PricedPick, settings: BettorSettings) -> int:
        return size_single_pick(
            pick.odds,
            pick.fair_probability,
            settings.bankroll,
            settings.kelly,
            settings.per_bet_cap(),
        )

    def size_picks(self, picks: Iterable[P], settings: BettorSettings) -> list[tuple[P, int | None]]:
        """Recommended stake per pick; ``None`` where no fair probability exists."""

        sized: list[tuple[P, int | None]] = []
        for pick in picks:
            try:
                sized.append((pick, self.size_pick(pick, settings)))
            except UndefinedFairProbability:
                sized.append((pick, None))
        return sized

    def suggest_parlay_stake(self, legs: Sequence[ParlayLeg], settings: BettorSettings) -> int | None:
        if not legs:
            return None
        remaining = self.ledger.remaining(settings.risk_period, settings.period_limit())
        try:
            return size_parlay(legs, settings.bankroll, settings.kelly, settings.per_bet_cap(), remaining)
        except UndefinedFairProbability:
            return None

    def add_pick(
        self,
        pick: ParlayLeg,
        legs: Sequence[ParlayLeg],
        settings: BettorSettings,
    ) -> AddOutcome:
        """Queue ``pick`` and reserve its Kelly stake.

        Adding an id that is already queued changes nothing. A rejected
        reservation raises :class:`BudgetExceeded` and a zero price raises
        :class:`InvalidOdds`; both leave the legs and the ledger untouched.
        Picks without a fair probability, or with no positive Kelly stake, are
        queued without a reservation.
        """

        if any(leg.id == pick.id for leg in legs):
            return AddOutcome(legs=tuple(legs), added=False)

        american_to_decimal(pick.odds)
        stake = 0 if pick.fair_probability is None else self.size_pick(pick, settings)
        reservation: Reservation | None = None
        if stake > 0:
            result = self.ledger.reserve(stake, settings.risk_period, settings.period_limit())
            if not result.ok:
                raise BudgetExceeded(requested=stake, remaining=result.remaining)
            reservation = Reservation(amount=stake, key=result.key)
        leg = pick.with_reservation(reservation)
        logger.debug("Added leg %s with reservation %s", leg.id, reservation)
        return AddOutcome(legs=(*legs, leg), reservation=reservation)

    def _release(self, leg: ParlayLeg, settings: BettorSettings) -> int:
        reservation = leg.reservation
        if reservation is None:
            return 0
        self.ledger.refund(reservation.amount, settings.risk_period, reservation.key)
        return reservation.amount

    def remove_pick(
        self,
        leg_id: str,
        legs: Sequence[ParlayLeg],
        settings: BettorSettings,
    ) -> RemoveOutcome:
        removed = next((leg for leg in legs if leg.id == leg_id), None)
        if removed is None:
            return RemoveOutcome(legs=tuple(legs))
        refund = self._release(removed, settings)
        remaining = tuple(leg for leg in legs if leg.id != leg_id)
        return RemoveOutcome(legs=remaining, removed=removed, refund=refund)

    def clear_parlay(
        self,
        legs: Sequence[ParlayLeg],
        settings: BettorSettings,
        refund: bool = True,
    ) -> ClearOutcome:
        total = sum(self._release(leg, settings) for leg in legs) if refund else 0
        return ClearOutcome(legs=(), cleared=len(legs), refund_total=total)

    def place_parlay(
        self,
        legs: Sequence[ParlayLeg],
        stake: float,
        settings: BettorSettings,
        combined_american: int | None = None,
    ) -> PlacementResult:
        """Swap per-leg holds for one realized stake.

        Every leg reservation is refunded first, then ``stake`` is realized as
        a single amount. The net budget effect is exactly ``stake`` regardless
        of what the legs had reserved.
        """

        if not legs:
            raise EmptyParlay()
        whole = round_half_up(stake) if stake > 0 else 0
        if whole <= 0:
            raise NonPositiveStake(stake)
        if combined_american is None:
            combined_american = combined_american_odds(legs)

        released = sum(self._release(leg, settings) for leg in legs)
        self.ledger.realize(whole, settings.risk_period)
        key = self.ledger.current_key(settings.risk_period)
        logger.info(
            "Placed %s-leg parlay at %s for $%s (released $%s)", len(legs), combined_american, whole, released
        )
        return PlacementResult(
            stake=whole,
            american_odds=combined_american,
            labels=tuple(leg.label for leg in legs),
            period_key=key,
            released=released,
            legs=tuple(legs),
        )
