"""Bounded, most-recent-first activity log with CSV export."""

from __future__ import annotations

from collections import deque
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from datetime import datetime
from itertools import islice
from types import MappingProxyType
from typing import Any, Literal

import pandas as pd

ActivityKind = Literal["add", "remove", "clear", "place"]

DEFAULT_CAP = 500

CSV_COLUMNS = ["timestamp", "kind", "period_key", "labels", "amounts"]


@dataclass(frozen=True)
class ActivityEvent:
    timestamp: datetime
    kind: ActivityKind
    amounts: Mapping[str, float] = field(default_factory=dict)
    labels: tuple[str, ...] = ()
    period_key: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "amounts", MappingProxyType(dict(self.amounts)))
        object.__setattr__(self, "labels", tuple(self.labels))

    def to_snapshot(self) -> dict[str, Any]:
        return {
            "timestamp": self.timestamp.isoformat(),
            "kind": self.kind,
            "amounts": dict(self.amounts),
            "labels": list(self.labels),
            "periodKey": self.period_key,
        }

    @classmethod
    def from_snapshot(cls, data: Mapping[str, Any]) -> ActivityEvent:
        return cls(
            timestamp=datetime.fromisoformat(data["timestamp"]),
            kind=data["kind"],
            amounts=data.get("amounts", {}),
            labels=tuple(data.get("labels", ())),
            period_key=data.get("periodKey"),
        )


class ActivityLog:
    """Most-recent-first event list bounded at ``cap`` entries."""

    def __init__(
        self,
        events: Iterable[ActivityEvent] = (),
        cap: int = DEFAULT_CAP,
        *,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        # events arrive newest first; keep the head when the cap shrinks
        self._events: deque[ActivityEvent] = deque(islice(events, cap), maxlen=cap)
        self._clock = clock or datetime.now

    def __len__(self) -> int:
        return len(self._events)

    @property
    def events(self) -> tuple[ActivityEvent, ...]:
        return tuple(self._events)

    def log(
        self,
        kind: ActivityKind,
        amounts: Mapping[str, float] | None = None,
        labels: Iterable[str] = (),
        period_key: str | None = None,
    ) -> ActivityEvent:
        event = ActivityEvent(
            timestamp=self._clock(),
            kind=kind,
            amounts=amounts or {},
            labels=tuple(labels),
            period_key=period_key,
        )
        self._events.appendleft(event)
        return event

    def clear_all(self) -> None:
        self._events.clear()

    def to_frame(self) -> pd.DataFrame:
        rows = [
            {
                "timestamp": event.timestamp,
                "kind": event.kind,
                "period_key": event.period_key,
                "labels": " | ".join(event.labels),
                "amounts": "; ".join(f"{name}={value:g}" for name, value in event.amounts.items()),
            }
            for event in self._events
        ]
        return pd.DataFrame(rows, columns=CSV_COLUMNS)

    def to_csv(self) -> str:
        return self.to_frame().to_csv(index=False)

    def to_snapshot(self) -> list[dict[str, Any]]:
        return [event.to_snapshot() for event in self._events]
