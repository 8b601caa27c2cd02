"""Odds HTTP client tests."""

from __future__ import annotations

import httpx
import pytest

from wagerlab.data.odds_client import OddsApiClient

GAMES = [
    {"id": "nfl_001", "home": "Chiefs", "away": "Ravens", "startsAt": "2025-10-05T17:00:00Z"},
]

DETAILS = {
    "id": "nfl_001",
    "home": "Chiefs",
    "away": "Ravens",
    "startsAt": "2025-10-05T17:00:00Z",
    "markets": [
        {"type": "moneyline", "homeOdds": -150, "awayOdds": 130},
        {"type": "total", "line": 47.5, "overOdds": -105, "underOdds": -115},
    ],
    "props": [],
}


def _handler(request: httpx.Request) -> httpx.Response:
    if request.url.path == "/api/odds":
        assert request.url.params["league"] == "nfl"
        return httpx.Response(200, json=GAMES)
    if request.url.path == "/api/odds/nfl_001":
        return httpx.Response(200, json=DETAILS)
    return httpx.Response(404, json={"error": "not found"})


def test_list_games_and_details() -> None:
    client = OddsApiClient(base_url="http://odds.test/", transport=httpx.MockTransport(_handler))
    games = client.list_games("nfl")
    assert games[0].id == "nfl_001"
    assert games[0].league == "nfl"
    assert games[0].matchup == "Ravens @ Chiefs"

    details = client.get_game_details("nfl_001")
    total = details.market("total")
    assert total is not None
    assert total.over_odds == -105
    moneyline = details.market("moneyline")
    assert moneyline is not None
    assert (moneyline.home_odds, moneyline.away_odds) == (-150, 130)
    assert details.market("spread") is None
    client.close()


def test_http_errors_are_retried_then_raised(monkeypatch) -> None:
    monkeypatch.setattr(OddsApiClient._request.retry, "sleep", lambda _: None)
    calls: list[str] = []

    def failing(request: httpx.Request) -> httpx.Response:
        calls.append(request.url.path)
        return httpx.Response(503)

    client = OddsApiClient(base_url="http://odds.test", transport=httpx.MockTransport(failing))
    with pytest.raises(httpx.HTTPStatusError):
        client.list_games("nfl")
    assert len(calls) == 3
