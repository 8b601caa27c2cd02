"""Parlay price combination.

Legs are treated as independent events: the combined fair probability is the
plain product of per-leg fair probabilities, with no correlation adjustment.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from wagerlab.ev.odds_math import (
    OddsFormat,
    american_to_decimal,
    decimal_to_american,
    format_odds,
)
from wagerlab.parlays.types import ParlayLeg


def combined_decimal_odds(legs: Iterable[ParlayLeg]) -> float:
    decimal = 1.0
    for leg in legs:
        decimal *= american_to_decimal(leg.odds)
    return decimal


def combined_american_odds(legs: Iterable[ParlayLeg]) -> int:
    return decimal_to_american(combined_decimal_odds(legs))


def combined_fair_probability(legs: Iterable[ParlayLeg]) -> float | None:
    """Product of leg fair probabilities, or ``None`` if any leg lacks one."""

    prob = 1.0
    for leg in legs:
        if leg.fair_probability is None:
            return None
        prob *= leg.fair_probability
    return prob


def potential_return(legs: Iterable[ParlayLeg], stake: float) -> float:
    return stake * combined_decimal_odds(legs)


def potential_profit(legs: Iterable[ParlayLeg], stake: float) -> float:
    return potential_return(legs, stake) - stake


def format_slip(legs: Sequence[ParlayLeg], stake: float, odds_format: OddsFormat = "american") -> str:
    """Plain-text bet slip suitable for copying elsewhere."""

    if not legs:
        return ""
    noun = "leg" if len(legs) == 1 else "legs"
    lines = [f"Parlay ({len(legs)} {noun})"]
    lines.extend(f"{idx}. {leg.label}" for idx, leg in enumerate(legs, start=1))
    if odds_format == "decimal":
        combined = f"{combined_decimal_odds(legs):.2f}"
    else:
        combined = format_odds(combined_american_odds(legs))
    lines.append("")
    lines.append(f"Combined odds: {combined}")
    lines.append(f"Stake: ${stake:.2f}")
    lines.append(f"Potential return: ${potential_return(legs, stake):.2f}")
    lines.append(f"Profit: ${potential_profit(legs, stake):.2f}")
    return "\n".join(lines)
