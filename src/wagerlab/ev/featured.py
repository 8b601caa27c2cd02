"""Featured-picks ranking across a slate of games."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass

from wagerlab.data.odds_client import OddsSource
from wagerlab.data.schemas import GameDetails, PropMarket
from wagerlab.ev.odds_math import ev_for_stake, format_american, no_vig_pair
from wagerlab.parlays.types import ParlayLeg

logger = logging.getLogger(__name__)

#: EV is reported per this many dollars; it is a ranking unit, not a wager.
REFERENCE_STAKE = 100.0

_MARKET_ORDER = ("moneyline", "spread", "total")


@dataclass(frozen=True)
class FeaturedPick:
    id: str
    game_id: str
    league: str | None
    matchup: str
    label: str
    odds: int
    ev: float
    fair_probability: float
    kind: str
    prop_name: str | None = None

    @property
    def parlay_label(self) -> str:
        if self.kind == "moneyline":
            return f"{self.label} {format_american(self.odds)}"
        return f"{self.label} ({format_american(self.odds)})"

    def to_leg(self) -> ParlayLeg:
        """Parlay leg for this pick, keyed by the pick id."""

        return ParlayLeg(
            id=self.id,
            label=self.parlay_label,
            odds=self.odds,
            fair_probability=self.fair_probability,
        )


def game_picks(game: GameDetails, reference_stake: float = REFERENCE_STAKE) -> list[FeaturedPick]:
    """Every scoreable side of every two-sided market and prop for one game.

    Markets are emitted moneyline, spread, total, then props in feed order.
    A market missing either side is skipped.
    """

    picks: list[FeaturedPick] = []
    markets = [game.market(kind) for kind in _MARKET_ORDER]
    for market in [*markets, *game.props]:
        if market is None:
            continue
        sides = market.sides(game.home, game.away)
        if sides is None:
            logger.debug("Skipping one-sided %s market on %s", market.kind, game.id)
            continue
        fair_pair = no_vig_pair(sides[0].odds, sides[1].odds)
        prop_name = market.name if isinstance(market, PropMarket) else None
        for side, fair in zip(sides, fair_pair):
            picks.append(
                FeaturedPick(
                    id=f"{game.id}:{side.key}",
                    game_id=game.id,
                    league=game.league,
                    matchup=game.matchup,
                    label=side.label,
                    odds=side.odds,
                    ev=ev_for_stake(side.odds, fair, reference_stake),
                    fair_probability=fair,
                    kind=market.kind,
                    prop_name=prop_name,
                )
            )
    return picks


def rank_featured(
    games: Iterable[GameDetails],
    limit: int = 25,
    reference_stake: float = REFERENCE_STAKE,
) -> list[FeaturedPick]:
    """Top ``limit`` picks by EV; equal EV keeps input order."""

    picks = [pick for game in games for pick in game_picks(game, reference_stake)]
    picks.sort(key=lambda p: p.ev, reverse=True)
    return picks[: max(limit, 0)]


def fetch_featured(
    source: OddsSource,
    leagues: Iterable[str],
    limit: int = 25,
    reference_stake: float = REFERENCE_STAKE,
) -> list[FeaturedPick]:
    """Pull every league's slate from ``source`` and rank it."""

    details: list[GameDetails] = []
    for league in leagues:
        for summary in source.list_games(league):
            game = source.get_game_details(summary.id)
            if game.league is None:
                game = game.model_copy(update={"league": league})
            details.append(game)
    return rank_featured(details, limit=limit, reference_stake=reference_stake)
