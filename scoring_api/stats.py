# scoring_api/stats.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence

from scoring_api.models import BallEvent, Over
from scoring_api.overs_math import (
    DEFAULT_BALLS_PER_OVER,
    economy as economy_rate,
    format_overs,
    overs_notation,
    required_run_rate as rrr,
    run_rate as rr,
    strike_rate as sr,
)


@dataclass(frozen=True)
class OverTotals:
    runs: int = 0
    # Runs charged to the bowler: off the bat, wides, no-balls
    bowler_runs: int = 0
    wickets: int = 0
    extras: int = 0
    legal_balls: int = 0


@dataclass(frozen=True)
class InningsTotals:
    """
    total_overs is the display notation (completed + open-over balls / 10).
    legal_balls is the true delivery count used for rates.
    """
    total_runs: int = 0
    total_wickets: int = 0
    extras: int = 0
    total_overs: float = 0.0
    legal_balls: int = 0


@dataclass(frozen=True)
class BattingFigures:
    player_id: str
    runs: int = 0
    balls: int = 0
    fours: int = 0
    sixes: int = 0
    strike_rate: float = 0.0


@dataclass(frozen=True)
class BowlingFigures:
    player_id: str
    overs: str = "0.0"
    runs: int = 0
    wickets: int = 0
    maidens: int = 0
    legal_balls: int = 0
    economy: float = 0.0


# -----------------------------
# Totals (full recomputation from the ledger)
# -----------------------------
def over_totals(balls: Iterable[BallEvent]) -> OverTotals:
    runs = bowler_runs = wickets = extras = legal = 0
    for ball in balls:
        runs += ball.total_runs
        bowler_runs += ball.runs_off_bat + ball.extras.wide + ball.extras.no_ball
        extras += ball.extras.total
        if ball.wicket is not None:
            wickets += 1
        if ball.is_legal:
            legal += 1
    return OverTotals(runs=runs, bowler_runs=bowler_runs, wickets=wickets, extras=extras, legal_balls=legal)


def innings_totals(balls: Iterable[BallEvent], overs: Sequence[Over]) -> InningsTotals:
    """
    Runs/wickets/extras are summed from every ball. Overs come from the over
    records: completed overs plus legal balls of the open one.
    """
    t = over_totals(balls)

    completed = sum(1 for o in overs if o.is_completed)
    open_over = next((o for o in overs if not o.is_completed), None)
    open_balls = open_over.legal_balls if open_over is not None else 0

    return InningsTotals(
        total_runs=t.runs,
        total_wickets=t.wickets,
        extras=t.extras,
        total_overs=overs_notation(completed, open_balls),
        legal_balls=t.legal_balls,
    )


# -----------------------------
# Player figures
# -----------------------------
def batting_figures(balls: Iterable[BallEvent], player_id: str) -> BattingFigures:
    """
    Balls faced counts every delivery on strike except wides; a no-ball is a
    ball faced even though it is not a legal delivery.
    """
    runs = faced = fours = sixes = 0
    for ball in balls:
        if ball.striker_id != player_id:
            continue
        runs += ball.runs_off_bat
        if ball.extras.wide == 0:
            faced += 1
        if ball.boundary == "four":
            fours += 1
        elif ball.boundary == "six":
            sixes += 1

    return BattingFigures(
        player_id=player_id,
        runs=runs,
        balls=faced,
        fours=fours,
        sixes=sixes,
        strike_rate=sr(runs, faced),
    )


def bowling_figures(
    overs: Iterable[Over],
    bowler_id: str,
    balls_per_over: int = DEFAULT_BALLS_PER_OVER,
) -> BowlingFigures:
    """
    Runs conceded and wickets are summed from the bowler's over records.
    Economy uses true decimal overs (4 balls = 0.667 overs), never the notation.
    """
    runs = wickets = maidens = completed = open_balls = 0
    for over in overs:
        if over.bowler_id != bowler_id:
            continue
        runs += over.runs
        wickets += over.wickets
        if over.is_completed:
            completed += 1
            if over.bowler_runs == 0:
                maidens += 1
        else:
            open_balls += over.legal_balls

    legal_balls = completed * balls_per_over + open_balls
    return BowlingFigures(
        player_id=bowler_id,
        overs=format_overs(overs_notation(completed, open_balls)),
        runs=runs,
        wickets=wickets,
        maidens=maidens,
        legal_balls=legal_balls,
        economy=economy_rate(runs, legal_balls, balls_per_over),
    )


# -----------------------------
# Rates
# -----------------------------
def run_rate(total_runs: int, legal_balls: int, balls_per_over: int = DEFAULT_BALLS_PER_OVER) -> float:
    return rr(total_runs, legal_balls, balls_per_over)


def required_run_rate(
    target_runs: Optional[int],
    total_runs: int,
    overs_limit: Optional[int],
    legal_balls: int,
    balls_per_over: int = DEFAULT_BALLS_PER_OVER,
) -> Optional[float]:
    return rrr(target_runs, total_runs, overs_limit, legal_balls, balls_per_over)


def runs_required(target_runs: Optional[int], total_runs: int) -> Optional[int]:
    if not target_runs:
        return None
    return max(0, target_runs - total_runs)


def balls_remaining(
    overs_limit: Optional[int],
    legal_balls: int,
    balls_per_over: int = DEFAULT_BALLS_PER_OVER,
) -> Optional[int]:
    if not overs_limit:
        return None
    return max(0, overs_limit * balls_per_over - legal_balls)


def players_seen(balls: Iterable[BallEvent]) -> List[str]:
    """Batters in order of first appearance at either end."""
    seen: List[str] = []
    for ball in balls:
        for pid in (ball.striker_id, ball.non_striker_id):
            if pid not in seen:
                seen.append(pid)
    return seen
