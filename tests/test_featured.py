"""Featured-picks ranking tests."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from wagerlab.data.odds_client import StaticOddsSource
from wagerlab.data.schemas import GameDetails
from wagerlab.ev import featured


def _game(game_id: str = "nfl_001", **overrides) -> GameDetails:
    payload = {
        "id": game_id,
        "league": "nfl",
        "home": "Chiefs",
        "away": "Ravens",
        "startsAt": "2025-10-05T17:00:00Z",
        "markets": [
            {"type": "moneyline", "homeOdds": -150, "awayOdds": 130},
            {"type": "spread", "home": -3.5, "away": 3.5, "homeOdds": -110, "awayOdds": -110},
            {"type": "total", "line": 47, "overOdds": -105, "underOdds": -115},
        ],
        "props": [
            {"name": "Mahomes Passing Yards", "line": 274.5, "overOdds": -115, "underOdds": -105},
        ],
    }
    payload.update(overrides)
    return GameDetails.model_validate(payload)


def test_game_picks_ids_and_labels() -> None:
    picks = featured.game_picks(_game())
    assert [p.id for p in picks] == [
        "nfl_001:ML:HOME",
        "nfl_001:ML:AWAY",
        "nfl_001:SPREAD:HOME:-3.5",
        "nfl_001:SPREAD:AWAY:3.5",
        "nfl_001:TOTAL:OVER:47",
        "nfl_001:TOTAL:UNDER:47",
        "nfl_001:PROP:Mahomes_Passing_Yards:OVER:274.5",
        "nfl_001:PROP:Mahomes_Passing_Yards:UNDER:274.5",
    ]
    labels = [p.label for p in picks]
    assert labels[:4] == ["Chiefs ML", "Ravens ML", "Chiefs -3.5", "Ravens +3.5"]
    assert picks[0].matchup == "Ravens @ Chiefs"
    assert picks[-1].prop_name == "Mahomes Passing Yards"
    assert picks[-1].kind == "prop"


def test_game_picks_fair_probability_and_ev() -> None:
    home, away = featured.game_picks(_game())[:2]
    assert home.fair_probability + away.fair_probability == pytest.approx(1.0)
    assert away.fair_probability == pytest.approx(0.4202, abs=1e-3)
    assert home.ev < 0 and away.ev < 0


def test_one_sided_markets_are_skipped() -> None:
    game = _game(
        markets=[{"type": "moneyline", "homeOdds": -150}],
        props=[{"name": "Purdy Interceptions", "line": 0.5, "overOdds": 110}],
    )
    assert featured.game_picks(game) == []


def test_zero_odds_rejected_by_schema() -> None:
    with pytest.raises(ValidationError):
        _game(markets=[{"type": "moneyline", "homeOdds": 0, "awayOdds": 100}])


def test_rank_featured_sorts_and_truncates() -> None:
    picks = featured.rank_featured([_game("a"), _game("b", markets=[])], limit=5)
    assert len(picks) == 5
    evs = [p.ev for p in picks]
    assert evs == sorted(evs, reverse=True)
    assert featured.rank_featured([_game()], limit=0) == []


def test_rank_featured_ties_keep_input_order() -> None:
    picks = featured.rank_featured([_game("a"), _game("b")], limit=50)
    spread_home = [p.game_id for p in picks if p.label == "Chiefs -3.5"]
    assert spread_home == ["a", "b"]
    first_a = next(i for i, p in enumerate(picks) if p.game_id == "a")
    first_b = next(i for i, p in enumerate(picks) if p.game_id == "b")
    assert first_a < first_b


def test_pick_to_leg() -> None:
    picks = featured.game_picks(_game())
    leg = picks[0].to_leg()
    assert leg.id == "nfl_001:ML:HOME"
    assert leg.label == "Chiefs ML -150"
    assert leg.fair_probability == picks[0].fair_probability
    assert leg.reservation is None
    assert picks[4].to_leg().label == "Over 47 (-105)"


def test_fetch_featured_from_static_source() -> None:
    source = StaticOddsSource.demo(now=lambda: datetime(2025, 10, 5, tzinfo=timezone.utc))
    picks = featured.fetch_featured(source, ["nfl", "ncaaf"], limit=10)
    assert len(picks) == 10
    assert {p.league for p in picks} <= {"nfl", "ncaaf"}
    evs = [p.ev for p in picks]
    assert evs == sorted(evs, reverse=True)
    assert all(":" in p.id for p in picks)
