"""Odds conversion, no-vig, EV and Kelly helpers.

Every function here is pure. American odds are signed integers where zero is
never a legal price; the conversions raise :class:`~wagerlab.errors.InvalidOdds`
rather than returning a sentinel.

    >>> american_to_decimal(130)
    2.3
    >>> round(implied_probability(-150), 4)
    0.6
"""

from __future__ import annotations

import math
from typing import Final, Literal

from wagerlab.errors import InvalidOdds

OddsFormat = Literal["american", "decimal"]

#: Floor applied to the implied-probability sum of a two-sided market.
NO_VIG_FLOOR: Final[float] = 1e-9

#: Payout multiples below this are treated as a push (b == 0).
_MIN_PAYOUT: Final[float] = 1e-12


def round_half_up(value: float) -> int:
    """Round to the nearest whole unit, ties toward positive infinity."""

    return int(math.floor(value + 0.5))


def american_to_decimal(odds: float) -> float:
    if odds == 0:
        raise InvalidOdds(odds)
    return 1 + (odds / 100) if odds > 0 else 1 + (100 / abs(odds))


def implied_probability(odds: float) -> float:
    """Convert American odds into the bookmaker's implied probability."""

    if odds == 0:
        raise InvalidOdds(odds)
    if odds > 0:
        return 100 / (odds + 100)
    return abs(odds) / (abs(odds) + 100)


def no_vig_pair(odds_a: float, odds_b: float) -> tuple[float, float]:
    """Strip the margin from a two-sided market by proportional normalisation."""

    imp_a = implied_probability(odds_a)
    imp_b = implied_probability(odds_b)
    total = max(imp_a + imp_b, NO_VIG_FLOOR)
    return imp_a / total, imp_b / total


def ev_for_stake(odds: float, fair_probability: float, stake: float) -> float:
    """Dollar EV of ``stake`` at ``odds`` when the true win chance is ``fair_probability``."""

    return ev_for_decimal_stake(american_to_decimal(odds), fair_probability, stake)


def ev_for_decimal_stake(decimal: float, fair_probability: float, stake: float) -> float:
    return fair_probability * (decimal - 1) * stake - (1 - fair_probability) * stake


def kelly_fraction(odds: float, fair_probability: float) -> float:
    """Full-Kelly bankroll fraction; negative when the price is worse than fair.

    Degenerate inputs (a certain or impossible outcome, or a push price with no
    payout) return ``0.0`` instead of an unbounded or undefined fraction.
    """

    return kelly_fraction_for_decimal(american_to_decimal(odds), fair_probability)


def kelly_fraction_for_decimal(decimal: float, fair_probability: float) -> float:
    b = decimal - 1
    p = min(max(fair_probability, 0.0), 1.0)
    if b < _MIN_PAYOUT or p in (0.0, 1.0):
        return 0.0
    fraction = (b * p - (1 - p)) / b
    if not math.isfinite(fraction):
        return 0.0
    return fraction


def decimal_to_american(decimal: float) -> int:
    """Inverse of :func:`american_to_decimal`; ``0`` when no legal price exists."""

    profit_multiple = decimal - 1
    if profit_multiple <= 0:
        return 0
    if profit_multiple >= 1:
        return round_half_up(profit_multiple * 100)
    return round_half_up(-100 / profit_multiple)


def format_american(odds: int) -> str:
    return f"+{odds}" if odds > 0 else str(odds)


def format_odds(odds: int, fmt: OddsFormat = "american") -> str:
    """Render an American price in the bettor's preferred format."""

    if fmt == "decimal":
        return f"{american_to_decimal(odds):.2f}"
    return format_american(odds)


def format_ev(value: float) -> str:
    sign = "+" if value >= 0 else "-"
    return f"{sign}${abs(value):.2f}"
