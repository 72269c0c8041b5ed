# main.py
from __future__ import annotations

import logging
from datetime import datetime
from typing import Literal, Optional

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, Field

from scoring_api.config import DEFAULT_BALLS_PER_OVER, validate_config
from scoring_api.engine import ScoringEngine
from scoring_api.errors import NotFound, ScoringError, StateConflict, StorageError, ValidationError
from scoring_api.events import build_notifier
from scoring_api.logging_setup import setup_logging
from scoring_api.models import BallInput, Extras, WicketInput, to_dict
from scoring_api.rules import ScoringRules
from scoring_api.store import ScoringStore

logger = logging.getLogger(__name__)

# -----------------------
# App
# -----------------------
app = FastAPI(
    title="Cricket Live Scoring API",
    version="0.1.0",
    description="Ball-by-ball scoring: match lifecycle, innings/overs, ball ledger with undo, live scorecards",
)

engine = ScoringEngine(
    store=ScoringStore(),
    notifier=build_notifier(),
    rules=ScoringRules.from_config(),
)


@app.on_event("startup")
def on_startup():
    setup_logging()
    validate_config()
    logger.info("Scoring API started (rules=%s)", engine.rules)


@app.get("/health")
def health_check():
    return {"status": "ok", "time": datetime.utcnow().isoformat() + "Z"}


# -----------------------
# Helpers
# -----------------------
def _http_error(e: ScoringError) -> HTTPException:
    if isinstance(e, ValidationError):
        return HTTPException(status_code=400, detail=str(e))
    if isinstance(e, NotFound):
        return HTTPException(status_code=404, detail=str(e))
    if isinstance(e, StateConflict):
        return HTTPException(status_code=409, detail=str(e))
    if isinstance(e, StorageError):
        logger.error("Storage failure: %s", e)
        return HTTPException(status_code=500, detail=f"Storage error: {str(e)}")
    return HTTPException(status_code=500, detail=str(e))


# -----------------------
# Matches
# -----------------------
class CreateMatchRequest(BaseModel):
    home_team_id: str
    away_team_id: str
    venue_id: str
    format: Literal["T20", "ODI", "Test", "T10", "Custom"]
    overs_limit: Optional[int] = Field(None, ge=1, le=50, description="Absent for Test")
    balls_per_over: int = Field(DEFAULT_BALLS_PER_OVER, ge=4, le=8)
    league_id: Optional[str] = None
    start_time: Optional[datetime] = None


@app.post("/api/matches", status_code=201)
def create_match(req: CreateMatchRequest):
    try:
        match = engine.create_match(**req.model_dump())
    except ScoringError as e:
        raise _http_error(e)
    return to_dict(match)


@app.get("/api/matches/{match_id}")
def get_match(match_id: str):
    try:
        match = engine.get_match(match_id)
    except ScoringError as e:
        raise _http_error(e)
    return to_dict(match)


class TossRequest(BaseModel):
    winner_team_id: str
    decision: Literal["bat", "bowl"]


@app.post("/api/matches/{match_id}/toss")
def conduct_toss(match_id: str, req: TossRequest):
    try:
        toss = engine.conduct_toss(match_id, req.winner_team_id, req.decision)
    except ScoringError as e:
        raise _http_error(e)
    return to_dict(toss)


@app.post("/api/matches/{match_id}/start")
def start_match(match_id: str):
    try:
        match = engine.start_match(match_id)
    except ScoringError as e:
        raise _http_error(e)
    return to_dict(match)


class CompleteMatchRequest(BaseModel):
    result_type: Literal["win", "tie", "draw", "noResult", "abandoned"]
    winner_team_id: Optional[str] = None
    win_margin: Optional[int] = Field(None, ge=0)
    win_type: Optional[Literal["runs", "wickets", "innings", "superOver"]] = None
    dls_used: bool = False


@app.post("/api/matches/{match_id}/complete")
def complete_match(match_id: str, req: CompleteMatchRequest):
    try:
        match = engine.complete_match(
            match_id,
            req.result_type,
            winner_team_id=req.winner_team_id,
            win_margin=req.win_margin,
            win_type=req.win_type,
            dls_used=req.dls_used,
        )
    except ScoringError as e:
        raise _http_error(e)
    return to_dict(match)


@app.get("/api/matches/{match_id}/scorecard")
def get_scorecard(match_id: str):
    try:
        return engine.get_scorecard(match_id)
    except ScoringError as e:
        raise _http_error(e)


# -----------------------
# Innings + overs
# -----------------------
class StartInningsRequest(BaseModel):
    batting_team_id: str
    bowling_team_id: str
    target_runs: Optional[int] = Field(None, ge=1, description="Set for chase innings")


@app.post("/api/matches/{match_id}/innings/start", status_code=201)
def start_innings(match_id: str, req: StartInningsRequest):
    try:
        innings = engine.start_innings(match_id, req.batting_team_id, req.bowling_team_id, req.target_runs)
    except ScoringError as e:
        raise _http_error(e)
    return to_dict(innings)


class EndInningsRequest(BaseModel):
    is_declared: bool = False


@app.post("/api/innings/{innings_id}/end")
def end_innings(innings_id: str, req: Optional[EndInningsRequest] = None):
    is_declared = req.is_declared if req is not None else False
    try:
        innings = engine.end_innings(innings_id, is_declared)
    except ScoringError as e:
        raise _http_error(e)
    return to_dict(innings)


class StartOverRequest(BaseModel):
    bowler_id: str


@app.post("/api/innings/{innings_id}/overs/start", status_code=201)
def start_over(innings_id: str, req: StartOverRequest):
    try:
        over = engine.start_over(innings_id, req.bowler_id)
    except ScoringError as e:
        raise _http_error(e)
    return to_dict(over)


@app.get("/api/innings/{innings_id}/cards")
def get_cards(innings_id: str):
    try:
        return engine.get_cards(innings_id)
    except ScoringError as e:
        raise _http_error(e)


# -----------------------
# Ball ledger
# -----------------------
class ExtrasIn(BaseModel):
    wide: int = Field(0, ge=0)
    no_ball: int = Field(0, ge=0)
    bye: int = Field(0, ge=0)
    leg_bye: int = Field(0, ge=0)
    penalty: int = Field(0, ge=0)


class BallIn(BaseModel):
    striker_id: str
    non_striker_id: str
    bowler_id: str
    runs_off_bat: int = Field(..., ge=0, le=6)
    extras: ExtrasIn = Field(default_factory=ExtrasIn)
    boundary: Optional[Literal["four", "six"]] = None
    free_hit: bool = False
    commentary: Optional[str] = None


class WicketIn(BaseModel):
    type: Literal[
        "bowled", "caught", "lbw", "runOut", "stumped",
        "hitWicket", "handledBall", "timedOut", "retiredOut",
    ]
    dismissed_player_id: str
    bowler_id: Optional[str] = None
    fielder_id: Optional[str] = None
    run_out_end: Optional[Literal["striker", "nonStriker"]] = None
    batters_crossed: bool = False


class RecordBallRequest(BaseModel):
    ball: BallIn
    wicket: Optional[WicketIn] = None


@app.post("/api/innings/{innings_id}/balls", status_code=201)
def record_ball(innings_id: str, req: RecordBallRequest):
    b = req.ball
    ball = BallInput(
        striker_id=b.striker_id,
        non_striker_id=b.non_striker_id,
        bowler_id=b.bowler_id,
        runs_off_bat=b.runs_off_bat,
        extras=Extras(**b.extras.model_dump()),
        boundary=b.boundary,
        free_hit=b.free_hit,
        commentary=b.commentary,
    )
    wicket = WicketInput(**req.wicket.model_dump()) if req.wicket is not None else None

    try:
        result = engine.record_ball(innings_id, ball, wicket)
    except ScoringError as e:
        raise _http_error(e)

    return to_dict(result)


@app.delete("/api/innings/{innings_id}/balls/last")
def undo_last_ball(innings_id: str):
    try:
        result = engine.undo_last_ball(innings_id)
    except ScoringError as e:
        raise _http_error(e)
    return {
        "message": result.message,
        "removed_sequence_index": result.removed_ball.sequence_index,
        "over_reopened": result.over_reopened,
        "innings_reopened": result.innings_reopened,
    }
