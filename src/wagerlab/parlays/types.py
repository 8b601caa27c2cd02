"""Dataclasses for parlay legs and engine outcomes."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any


@dataclass(frozen=True)
class Reservation:
    """Budget held against the risk ledger for one leg."""

    amount: int
    key: str


@dataclass(frozen=True)
class ParlayLeg:
    id: str
    label: str
    odds: int
    fair_probability: float | None = None
    reserved_amount: int | None = None
    reservation_key: str | None = None

    @property
    def reservation(self) -> Reservation | None:
        if self.reserved_amount is None or self.reservation_key is None:
            return None
        return Reservation(self.reserved_amount, self.reservation_key)

    def with_reservation(self, reservation: Reservation | None) -> ParlayLeg:
        if reservation is None:
            return replace(self, reserved_amount=None, reservation_key=None)
        return replace(self, reserved_amount=reservation.amount, reservation_key=reservation.key)

    def to_snapshot(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "label": self.label,
            "odds": self.odds,
            "fairProbability": self.fair_probability,
            "reservedAmount": self.reserved_amount,
            "reservationKey": self.reservation_key,
        }

    @classmethod
    def from_snapshot(cls, data: dict[str, Any]) -> ParlayLeg:
        return cls(
            id=str(data["id"]),
            label=str(data.get("label", data["id"])),
            odds=int(data["odds"]),
            fair_probability=data.get("fairProbability"),
            reserved_amount=data.get("reservedAmount"),
            reservation_key=data.get("reservationKey"),
        )


@dataclass(frozen=True)
class AddOutcome:
    legs: tuple[ParlayLeg, ...]
    reservation: Reservation | None = None
    added: bool = True


@dataclass(frozen=True)
class RemoveOutcome:
    legs: tuple[ParlayLeg, ...]
    removed: ParlayLeg | None = None
    refund: int = 0


@dataclass(frozen=True)
class ClearOutcome:
    legs: tuple[ParlayLeg, ...]
    cleared: int
    refund_total: int = 0


@dataclass(frozen=True)
class PlacementResult:
    """Authoritative record of a placed parlay."""

    stake: int
    american_odds: int
    labels: tuple[str, ...]
    period_key: str
    released: int = 0
    legs: tuple[ParlayLeg, ...] = field(default_factory=tuple)
