"""Odds source clients: the HTTP feed and an in-memory mock slate."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Protocol

import httpx
from tenacity import RetryCallState, retry, stop_after_attempt, wait_fixed

from wagerlab.config import get_settings
from wagerlab.data.schemas import GameDetails, GameSummary

logger = logging.getLogger(__name__)


class OddsSource(Protocol):
    """Read-only feed of American-odds quotes."""

    def list_games(self, league: str) -> list[GameSummary]: ...

    def get_game_details(self, game_id: str) -> GameDetails: ...


def _retry_log(retry_state: RetryCallState) -> None:  # pragma: no cover - logging helper
    attempt = retry_state.attempt_number
    exception = retry_state.outcome.exception() if retry_state.outcome else None
    logger.warning("Odds API retry attempt %s due to %s", attempt, exception)


class OddsApiClient:
    """Wrapper for the odds HTTP service (``/api/odds``)."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        settings = get_settings()
        self.base_url = (base_url or settings.odds_api_base_url).rstrip("/")
        self._client = httpx.Client(
            timeout=timeout or settings.odds_api_timeout,
            transport=transport,
        )

    def __enter__(self) -> "OddsApiClient":  # pragma: no cover - context sugar
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    @retry(stop=stop_after_attempt(3), wait=wait_fixed(1), after=_retry_log, reraise=True)
    def _request(self, method: str, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        url = f"{self.base_url}{path}"
        response = self._client.request(method, url, params=params)
        response.raise_for_status()
        return response.json()

    def list_games(self, league: str) -> List[GameSummary]:
        """Return the upcoming games for a league."""

        payload = self._request("GET", "/api/odds", {"league": league})
        return [GameSummary.model_validate({"league": league, **item}) for item in payload]

    def get_game_details(self, game_id: str) -> GameDetails:
        payload = self._request("GET", f"/api/odds/{game_id}")
        return GameDetails.model_validate(payload)


class StaticOddsSource:
    """In-memory odds feed keyed by game id."""

    def __init__(self, games: Iterable[GameDetails]) -> None:
        self._games: Dict[str, GameDetails] = {game.id: game for game in games}

    def list_games(self, league: str) -> List[GameSummary]:
        return [
            GameSummary.model_validate(game.model_dump(include={"id", "home", "away", "starts_at", "league"}))
            for game in self._games.values()
            if game.league == league
        ]

    def get_game_details(self, game_id: str) -> GameDetails:
        try:
            return self._games[game_id]
        except KeyError:
            raise LookupError(f"Unknown game id: {game_id}") from None

    @classmethod
    def demo(
        cls,
        leagues: Iterable[str] = ("nfl", "ncaaf"),
        now: Callable[[], datetime] | None = None,
    ) -> "StaticOddsSource":
        """Three-game mock slate per league."""

        start = (now or (lambda: datetime.now(timezone.utc)))()
        games: List[GameDetails] = []
        for league in leagues:
            for idx, row in enumerate(_DEMO_SLATE, start=1):
                games.append(
                    GameDetails.model_validate(
                        {
                            "id": f"{league}_{idx:03d}",
                            "league": league,
                            "startsAt": start + timedelta(hours=row["hours"]),
                            **row["game"],
                        }
                    )
                )
        return cls(games)


_DEMO_SLATE: List[Dict[str, Any]] = [
    {
        "hours": 1,
        "game": {
            "home": "Chiefs",
            "away": "Ravens",
            "markets": [
                {"type": "moneyline", "homeOdds": -150, "awayOdds": 130},
                {"type": "spread", "home": -3.5, "away": 3.5, "homeOdds": -110, "awayOdds": -110},
                {"type": "total", "line": 47.5, "overOdds": -105, "underOdds": -115},
            ],
            "props": [
                {"name": "Mahomes Passing Yards", "line": 274.5, "overOdds": -115, "underOdds": -105},
                {"name": "Lamar Rushing Yards", "line": 58.5, "overOdds": 105, "underOdds": -125},
            ],
        },
    },
    {
        "hours": 3,
        "game": {
            "home": "Bills",
            "away": "Dolphins",
            "markets": [
                {"type": "moneyline", "homeOdds": -200, "awayOdds": 170},
                {"type": "spread", "home": -4.5, "away": 4.5, "homeOdds": -108, "awayOdds": -112},
                {"type": "total", "line": 51, "overOdds": -110, "underOdds": -110},
            ],
            "props": [
                {"name": "Allen Passing TDs", "line": 1.5, "overOdds": -140, "underOdds": 120},
            ],
        },
    },
    {
        "hours": 6,
        "game": {
            "home": "49ers",
            "away": "Cowboys",
            "markets": [
                {"type": "moneyline", "homeOdds": -135, "awayOdds": 115},
                {"type": "spread", "home": -2.5, "away": 2.5, "homeOdds": -115, "awayOdds": -105},
                {"type": "total", "line": 44.5, "overOdds": -102, "underOdds": -118},
            ],
            "props": [
                {"name": "Lamb Receiving Yards", "line": 82.5, "overOdds": -110, "underOdds": -110},
                {"name": "Purdy Interceptions", "line": 0.5, "overOdds": 110},
            ],
        },
    },
]
