"""Period-scoped risk ledger with reserve/realize/refund semantics.

The ledger tracks one calendar bucket at a time as ``(period_key, consumed,
realized)`` where ``consumed`` is reserved plus realized budget and
``realized`` is budget already committed to placed bets. It stores no limit:
callers pass their current limit on every reservation.

Rollover is lazy. Each call recomputes the period key from the clock and
compares it with the stored one; a mismatch means the stored counters belong
to an expired period and read as zero. There is no timer.

No operation raises. :meth:`RiskLedger.reserve` reports rejection through
:class:`ReserveResult`, and stale-key realizes and refunds are silent no-ops.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Literal

from wagerlab.ev.odds_math import round_half_up

logger = logging.getLogger(__name__)

PeriodType = Literal["daily", "weekly", "monthly"]
Clock = Callable[[], datetime]


def period_key(period: PeriodType, now: datetime) -> str:
    """Calendar bucket identifier: ``2025-09-28``, ``2025-W39`` or ``2025-09``."""

    if period == "daily":
        return f"{now.year:04d}-{now.month:02d}-{now.day:02d}"
    if period == "weekly":
        iso_year, iso_week, _ = now.isocalendar()
        return f"{iso_year:04d}-W{iso_week:02d}"
    if period == "monthly":
        return f"{now.year:04d}-{now.month:02d}"
    raise ValueError(f"Unknown risk period: {period!r}")


def _whole(amount: float) -> int:
    return max(0, round_half_up(amount))


@dataclass(frozen=True)
class ReserveResult:
    ok: bool
    remaining: int
    key: str


class RiskLedger:
    """Single-writer budget counter for the active risk period."""

    def __init__(
        self,
        period_key: str = "",
        consumed: float = 0,
        realized: float = 0,
        *,
        clock: Clock | None = None,
    ) -> None:
        self._clock = clock or datetime.now
        self._period_key = period_key
        self._realized = _whole(realized)
        self._consumed = max(_whole(consumed), self._realized)

    @property
    def period_key(self) -> str:
        """Key of the stored bucket, which may already be expired."""

        return self._period_key

    def current_key(self, period: PeriodType) -> str:
        return period_key(period, self._clock())

    def _live(self, key: str) -> tuple[int, int]:
        if self._period_key == key:
            return self._consumed, self._realized
        return 0, 0

    def consumed(self, period: PeriodType) -> int:
        return self._live(self.current_key(period))[0]

    def realized(self, period: PeriodType) -> int:
        return self._live(self.current_key(period))[1]

    def remaining(self, period: PeriodType, limit: float) -> int:
        return max(0, round_half_up(limit - self.consumed(period)))

    def reserve(self, amount: float, period: PeriodType, limit: float) -> ReserveResult:
        key = self.current_key(period)
        consumed, realized = self._live(key)
        remaining = max(0, round_half_up(limit - consumed))
        amount = _whole(amount)
        if amount > remaining:
            logger.info("Reservation of %s rejected for %s; %s remaining", amount, key, remaining)
            return ReserveResult(ok=False, remaining=remaining, key=key)
        consumed += amount
        self._period_key, self._consumed, self._realized = key, consumed, realized
        return ReserveResult(ok=True, remaining=max(0, round_half_up(limit - consumed)), key=key)

    def realize(self, amount: float, period: PeriodType, key: str | None = None) -> None:
        """Commit ``amount`` as placed; additive on top of any reservations."""

        current = self.current_key(period)
        if key and key != current:
            logger.info("Ignoring realize of %s for expired period %s", amount, key)
            return
        consumed, realized = self._live(current)
        amount = _whole(amount)
        self._period_key = current
        self._consumed = consumed + amount
        self._realized = realized + amount

    def refund(self, amount: float, period: PeriodType, key: str | None = None) -> None:
        """Release reserved budget; never drops ``consumed`` below ``realized``."""

        current = self.current_key(period)
        if key and key != current:
            logger.info("Ignoring refund of %s for expired period %s", amount, key)
            return
        if self._period_key != current:
            return
        self._consumed = max(self._realized, self._consumed - _whole(amount))

    def reset(self, period: PeriodType) -> None:
        self._period_key = self.current_key(period)
        self._consumed = 0
        self._realized = 0

    def snapshot(self) -> dict[str, Any]:
        return {
            "periodKey": self._period_key,
            "consumed": self._consumed,
            "realized": self._realized,
        }

    @classmethod
    def from_snapshot(cls, data: dict[str, Any], *, clock: Clock | None = None) -> RiskLedger:
        return cls(
            period_key=str(data.get("periodKey", "")),
            consumed=float(data.get("consumed", 0)),
            realized=float(data.get("realized", 0)),
            clock=clock,
        )
