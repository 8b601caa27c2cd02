"""FastAPI surface over a single betting session."""

from __future__ import annotations

from functools import lru_cache
from typing import Annotated, Any

import httpx
from fastapi import Depends, FastAPI, HTTPException, Query, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from pydantic import ValidationError

from wagerlab import __version__
from wagerlab.api.schemas import (
    ActivityEventResponse,
    ClearRequest,
    ClearResponse,
    FeaturedPickResponse,
    LegIn,
    ParlayResponse,
    PlacementResponse,
    PlaceRequest,
    RiskResponse,
    SettingsUpdate,
    StakeRequest,
)
from wagerlab.config import get_settings
from wagerlab.data.odds_client import OddsApiClient, OddsSource
from wagerlab.data.schemas import GameDetails, GameSummary, LeagueId
from wagerlab.db.database import open_store
from wagerlab.errors import BudgetExceeded, EmptyParlay, InvalidOdds, NonPositiveStake
from wagerlab.ev.featured import fetch_featured, game_picks
from wagerlab.session import BettingSession

settings = get_settings()

app = FastAPI(
    title="wagerlab API",
    version=__version__,
    description="EV and Kelly sizing with a period risk budget for singles and parlays.",
)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@lru_cache(maxsize=1)
def get_session() -> BettingSession:
    return BettingSession(open_store())


@lru_cache(maxsize=1)
def get_odds_source() -> OddsSource:
    return OddsApiClient()


SessionDep = Annotated[BettingSession, Depends(get_session)]
OddsDep = Annotated[OddsSource, Depends(get_odds_source)]
LimitQuery = Annotated[int, Query(ge=1, le=200)]


@app.exception_handler(BudgetExceeded)
def _budget_exceeded(_: Request, exc: BudgetExceeded) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_409_CONFLICT,
        content={"detail": str(exc), "remaining": exc.remaining, "requested": exc.requested},
    )


@app.exception_handler(EmptyParlay)
@app.exception_handler(NonPositiveStake)
@app.exception_handler(InvalidOdds)
def _unprocessable(_: Request, exc: Exception) -> JSONResponse:
    return JSONResponse(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, content={"detail": str(exc)})


def _parlay(session: BettingSession) -> ParlayResponse:
    return ParlayResponse.from_summary(session.parlay_summary(), session.slip_text())


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


@app.get("/games", response_model=list[GameSummary])
def list_games(source: OddsDep, league: LeagueId = "nfl") -> list[GameSummary]:
    try:
        return source.list_games(league)
    except httpx.HTTPError as exc:
        raise HTTPException(status_code=502, detail=f"Failed to fetch odds: {exc}") from exc


def _game(source: OddsSource, game_id: str) -> GameDetails:
    try:
        return source.get_game_details(game_id)
    except LookupError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except httpx.HTTPError as exc:
        raise HTTPException(status_code=502, detail=f"Failed to fetch odds: {exc}") from exc


@app.get("/games/{game_id}", response_model=GameDetails)
def game_details(game_id: str, source: OddsDep) -> GameDetails:
    return _game(source, game_id)


@app.get("/games/{game_id}/picks", response_model=list[FeaturedPickResponse])
def picks_for_game(game_id: str, source: OddsDep, session: SessionDep) -> list[FeaturedPickResponse]:
    picks = game_picks(_game(source, game_id), settings.reference_stake)
    return [FeaturedPickResponse.from_pick(pick, stake) for pick, stake in session.size_picks(picks)]


@app.get("/featured", response_model=list[FeaturedPickResponse])
def featured(
    source: OddsDep,
    session: SessionDep,
    limit: LimitQuery = settings.featured_limit,
) -> list[FeaturedPickResponse]:
    try:
        picks = fetch_featured(source, settings.featured_leagues, limit, settings.reference_stake)
    except httpx.HTTPError as exc:
        raise HTTPException(status_code=502, detail=f"Failed to fetch odds: {exc}") from exc
    return [FeaturedPickResponse.from_pick(pick, stake) for pick, stake in session.size_picks(picks)]


@app.get("/parlay", response_model=ParlayResponse)
def get_parlay(session: SessionDep) -> ParlayResponse:
    return _parlay(session)


@app.post("/parlay/legs", response_model=ParlayResponse)
def add_leg(payload: LegIn, session: SessionDep) -> ParlayResponse:
    session.add_leg(payload.to_leg())
    return _parlay(session)


@app.delete("/parlay/legs/{leg_id}", response_model=ParlayResponse)
def remove_leg(leg_id: str, session: SessionDep) -> ParlayResponse:
    session.remove_leg(leg_id)
    return _parlay(session)


@app.post("/parlay/clear", response_model=ClearResponse)
def clear_parlay(payload: ClearRequest, session: SessionDep) -> ClearResponse:
    outcome = session.clear(refund=payload.refund)
    return ClearResponse(cleared=outcome.cleared, refund_total=outcome.refund_total)


@app.put("/parlay/stake", response_model=ParlayResponse)
def set_stake(payload: StakeRequest, session: SessionDep) -> ParlayResponse:
    session.set_stake(payload.stake)
    return _parlay(session)


@app.post("/parlay/place", response_model=PlacementResponse)
def place_parlay(payload: PlaceRequest, session: SessionDep) -> PlacementResponse:
    return PlacementResponse.from_result(session.place(payload.stake))


@app.get("/settings")
def get_bettor_settings(session: SessionDep) -> dict[str, Any]:
    return session.settings.to_snapshot()


@app.put("/settings")
def update_bettor_settings(payload: SettingsUpdate, session: SessionDep) -> dict[str, Any]:
    try:
        updated = session.update_settings(**payload.changes())
    except ValidationError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    return updated.to_snapshot()


@app.get("/risk", response_model=RiskResponse)
def risk(session: SessionDep) -> RiskResponse:
    return RiskResponse.from_status(session.risk_status())


@app.post("/risk/reset", response_model=RiskResponse)
def reset_risk(session: SessionDep) -> RiskResponse:
    return RiskResponse.from_status(session.reset_risk())


@app.get("/history", response_model=list[ActivityEventResponse])
def history(session: SessionDep) -> list[ActivityEventResponse]:
    return [ActivityEventResponse.from_event(event) for event in session.activity.events]


@app.get("/history.csv", response_class=PlainTextResponse)
def history_csv(session: SessionDep) -> str:
    return session.activity.to_csv()
