from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional, Literal, Tuple


# -----------------------------
# Vocabularies
# -----------------------------
MatchFormat = Literal["T20", "ODI", "Test", "T10", "Custom"]
MatchStatus = Literal["scheduled", "live", "completed"]
TossDecision = Literal["bat", "bowl"]
ResultType = Literal["win", "tie", "draw", "noResult", "abandoned"]
WinType = Literal["runs", "wickets", "innings", "superOver"]
Boundary = Literal["four", "six"]
RunOutEnd = Literal["striker", "nonStriker"]
WicketType = Literal[
    "bowled",
    "caught",
    "lbw",
    "runOut",
    "stumped",
    "hitWicket",
    "handledBall",
    "timedOut",
    "retiredOut",
]
CompletionReason = Literal["allOut", "oversExhausted", "targetReached", "declared", "closed"]

MATCH_FORMATS: Tuple[str, ...] = ("T20", "ODI", "Test", "T10", "Custom")
RESULT_TYPES: Tuple[str, ...] = ("win", "tie", "draw", "noResult", "abandoned")
WIN_TYPES: Tuple[str, ...] = ("runs", "wickets", "innings", "superOver")
TOSS_DECISIONS: Tuple[str, ...] = ("bat", "bowl")
WICKET_TYPES: Tuple[str, ...] = (
    "bowled",
    "caught",
    "lbw",
    "runOut",
    "stumped",
    "hitWicket",
    "handledBall",
    "timedOut",
    "retiredOut",
)


def max_innings_for(match_format: str) -> int:
    return 4 if match_format == "Test" else 2


# -----------------------------
# Match + Toss
# -----------------------------
@dataclass(frozen=True)
class Toss:
    match_id: str
    winner_team_id: str
    decision: TossDecision
    created_at: datetime = field(default_factory=datetime.utcnow)


@dataclass(frozen=True)
class Match:
    id: str
    home_team_id: str
    away_team_id: str
    venue_id: str
    format: MatchFormat

    overs_limit: Optional[int] = None
    balls_per_over: int = 6
    league_id: Optional[str] = None
    start_time: Optional[datetime] = None

    status: MatchStatus = "scheduled"
    toss: Optional[Toss] = None

    # Result fields (set only on completion)
    result_type: Optional[ResultType] = None
    winner_team_id: Optional[str] = None
    win_margin: Optional[int] = None
    win_type: Optional[WinType] = None
    dls_used: bool = False

    def has_team(self, team_id: str) -> bool:
        return team_id in (self.home_team_id, self.away_team_id)


# -----------------------------
# Innings + Over
# -----------------------------
@dataclass(frozen=True)
class Innings:
    id: str
    match_id: str
    number: int
    batting_team_id: str
    bowling_team_id: str
    target_runs: Optional[int] = None

    total_runs: int = 0
    total_wickets: int = 0
    # Display notation: 19.4 means 19 overs and 4 balls
    total_overs: float = 0.0
    extras: int = 0
    # True count of legal deliveries, used for rate arithmetic
    legal_balls: int = 0

    is_completed: bool = False
    is_declared: bool = False
    completion_reason: Optional[CompletionReason] = None
    completed_at_sequence: Optional[int] = None


@dataclass(frozen=True)
class Over:
    id: str
    innings_id: str
    number: int
    bowler_id: str

    legal_balls: int = 0
    runs: int = 0
    bowler_runs: int = 0
    wickets: int = 0
    extras: int = 0
    is_completed: bool = False


# -----------------------------
# Ledger events
# -----------------------------
@dataclass(frozen=True)
class Extras:
    """Fixed-shape extras record; every kind defaults to zero."""
    wide: int = 0
    no_ball: int = 0
    bye: int = 0
    leg_bye: int = 0
    penalty: int = 0

    @property
    def total(self) -> int:
        return self.wide + self.no_ball + self.bye + self.leg_bye + self.penalty

    @property
    def is_legal(self) -> bool:
        return self.wide == 0 and self.no_ball == 0


@dataclass(frozen=True)
class WicketEvent:
    id: str
    ball_event_id: str
    innings_id: str
    type: WicketType
    dismissed_player_id: str
    bowler_id: Optional[str] = None
    fielder_id: Optional[str] = None
    run_out_end: Optional[RunOutEnd] = None
    batters_crossed: bool = False


@dataclass(frozen=True)
class BallEvent:
    id: str
    innings_id: str
    over_id: str
    over_number: int
    ball_number: int
    sequence_index: int

    striker_id: str
    non_striker_id: str
    bowler_id: str

    runs_off_bat: int = 0
    extras: Extras = field(default_factory=Extras)
    boundary: Optional[Boundary] = None
    free_hit: bool = False
    commentary: Optional[str] = None

    wicket: Optional[WicketEvent] = None
    created_at: datetime = field(default_factory=datetime.utcnow)

    @property
    def is_legal(self) -> bool:
        return self.extras.is_legal

    @property
    def total_runs(self) -> int:
        return self.runs_off_bat + self.extras.total


# -----------------------------
# Caller payloads (wire-independent)
# -----------------------------
@dataclass(frozen=True)
class BallInput:
    striker_id: str
    non_striker_id: str
    bowler_id: str
    runs_off_bat: int = 0
    extras: Extras = field(default_factory=Extras)
    boundary: Optional[Boundary] = None
    free_hit: bool = False
    commentary: Optional[str] = None


@dataclass(frozen=True)
class WicketInput:
    type: WicketType
    dismissed_player_id: str
    bowler_id: Optional[str] = None
    fielder_id: Optional[str] = None
    run_out_end: Optional[RunOutEnd] = None
    batters_crossed: bool = False


# -----------------------------
# Operation results
# -----------------------------
@dataclass(frozen=True)
class RecordBallResult:
    ball_event: BallEvent
    over_completed: bool
    innings_completed: bool = False
    # Aggregates as committed together with the ball
    over: Optional[Over] = None
    innings: Optional[Innings] = None


@dataclass(frozen=True)
class UndoResult:
    removed_ball: BallEvent
    over_reopened: bool = False
    innings_reopened: bool = False
    message: str = "Last ball undone successfully"


def to_dict(obj: Any) -> Dict[str, Any]:
    """
    JSON-friendly dict for any model above.
    Datetimes are rendered as ISO strings; ball events also expose total_runs/is_legal.
    """
    data = asdict(obj)
    return _jsonable(obj, data)


def _jsonable(obj: Any, data: Any) -> Any:
    if isinstance(data, dict):
        out = {k: _jsonable(getattr(obj, k, None), v) for k, v in data.items()}
        if isinstance(obj, BallEvent):
            out["total_runs"] = obj.total_runs
            out["is_legal"] = obj.is_legal
        return out
    if isinstance(data, (list, tuple)):
        return [_jsonable(None, v) for v in data]
    if isinstance(data, datetime):
        return data.isoformat() + "Z"
    return data
