"""Error taxonomy shared by the wagering core."""

from __future__ import annotations


class WagerError(Exception):
    """Base class for wagerlab domain errors."""


class InvalidOdds(WagerError, ValueError):
    """Raised when a price is not a legal American quote (zero)."""

    def __init__(self, odds: float) -> None:
        super().__init__(f"{odds!r} is not a valid American price")
        self.odds = odds


class UndefinedFairProbability(WagerError):
    """Kelly or EV was requested for a pick that has no fair probability."""


class BudgetExceeded(WagerError):
    """A reservation was rejected by the risk ledger."""

    def __init__(self, requested: int, remaining: int) -> None:
        super().__init__(
            f"Stake ${requested} exceeds remaining period budget ${remaining}"
        )
        self.requested = requested
        self.remaining = remaining


class EmptyParlay(WagerError):
    """A parlay was placed with no legs."""

    def __init__(self) -> None:
        super().__init__("Cannot place a parlay with no legs")


class NonPositiveStake(WagerError):
    """A parlay was placed with a stake of zero or less."""

    def __init__(self, stake: float) -> None:
        super().__init__(f"Stake must be positive, got {stake!r}")
        self.stake = stake
