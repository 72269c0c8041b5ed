# scoring_api/scorecard.py
from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence

from scoring_api.models import BallEvent, Match
from scoring_api.overs_math import format_overs
from scoring_api.stats import (
    balls_remaining,
    batting_figures,
    bowling_figures,
    required_run_rate,
    run_rate,
    runs_required,
)
from scoring_api.store import InningsSnapshot

DEFAULT_RECENT_OVERS = 6


def build_scorecard(
    match: Match,
    snapshots: Sequence[InningsSnapshot],
    recent_overs_count: int = DEFAULT_RECENT_OVERS,
) -> Dict[str, Any]:
    """
    Read-only view of a match. Current batsmen/bowler are projected from the
    ledger tail every time, never stored.
    """
    card: Dict[str, Any] = {
        "match": _match_summary(match),
        "toss": _toss_summary(match),
        "innings": [_innings_summary(s, match) for s in snapshots],
        "current_innings": None,
    }

    current = current_innings(snapshots)
    if current is not None:
        view = _innings_summary(current, match)
        inn = current.innings
        view.update({
            "required_run_rate": required_run_rate(
                inn.target_runs, inn.total_runs, match.overs_limit, inn.legal_balls, match.balls_per_over
            ),
            "runs_required": runs_required(inn.target_runs, inn.total_runs),
            "balls_remaining": balls_remaining(match.overs_limit, inn.legal_balls, match.balls_per_over),
            "current_batsmen": current_batsmen(current),
            "current_bowler": current_bowler(current, match.balls_per_over),
            "recent_overs": recent_overs(current, recent_overs_count),
        })
        card["current_innings"] = view

    return card


def current_innings(snapshots: Sequence[InningsSnapshot]) -> Optional[InningsSnapshot]:
    """First incomplete innings, else the last one."""
    for snap in snapshots:
        if not snap.innings.is_completed:
            return snap
    return snapshots[-1] if snapshots else None


def current_batsmen(snap: InningsSnapshot) -> Optional[Dict[str, Any]]:
    last = snap.last_ball
    if last is None:
        return None

    def _batter(player_id: str) -> Dict[str, Any]:
        f = batting_figures(snap.balls, player_id)
        return {
            "id": f.player_id,
            "runs": f.runs,
            "balls": f.balls,
            "fours": f.fours,
            "sixes": f.sixes,
            "strike_rate": f.strike_rate,
        }

    return {
        "striker": _batter(last.striker_id),
        "non_striker": _batter(last.non_striker_id),
    }


def current_bowler(snap: InningsSnapshot, balls_per_over: int) -> Optional[Dict[str, Any]]:
    over = snap.open_over
    if over is None:
        return None

    f = bowling_figures(snap.overs, over.bowler_id, balls_per_over)
    return {
        "id": f.player_id,
        "overs": f.overs,
        "maidens": f.maidens,
        "runs": f.runs,
        "wickets": f.wickets,
        "economy": f.economy,
    }


def ball_token(ball: BallEvent) -> str:
    if ball.wicket is not None:
        return "W"
    if ball.extras.wide:
        return f"{ball.total_runs}wd"
    if ball.extras.no_ball:
        return f"{ball.runs_off_bat}nb"
    if ball.boundary == "four":
        return "4"
    if ball.boundary == "six":
        return "6"
    return str(ball.runs_off_bat)


def recent_overs(snap: InningsSnapshot, count: int = DEFAULT_RECENT_OVERS) -> List[str]:
    """
    One line per over, oldest first:
      "3: 1 4 0 1wd W 2 1 (9)"
    """
    if count <= 0:
        return []

    out: List[str] = []
    for over in snap.overs[-count:]:
        tokens = [ball_token(b) for b in snap.balls_in_over(over.id)]
        out.append(f"{over.number}: {' '.join(tokens)} ({over.runs})")
    return out


# -----------------------------
# Summaries
# -----------------------------
def _match_summary(match: Match) -> Dict[str, Any]:
    return {
        "id": match.id,
        "league_id": match.league_id,
        "home_team_id": match.home_team_id,
        "away_team_id": match.away_team_id,
        "venue_id": match.venue_id,
        "start_time": match.start_time.isoformat() if match.start_time else None,
        "format": match.format,
        "overs_limit": match.overs_limit,
        "balls_per_over": match.balls_per_over,
        "status": match.status,
        "result_type": match.result_type,
        "winner_team_id": match.winner_team_id,
        "win_margin": match.win_margin,
        "win_type": match.win_type,
        "dls_used": match.dls_used,
    }


def _toss_summary(match: Match) -> Optional[Dict[str, Any]]:
    if match.toss is None:
        return None
    return {"winner_team_id": match.toss.winner_team_id, "decision": match.toss.decision}


def _innings_summary(snap: InningsSnapshot, match: Match) -> Dict[str, Any]:
    inn = snap.innings
    return {
        "id": inn.id,
        "number": inn.number,
        "batting_team_id": inn.batting_team_id,
        "bowling_team_id": inn.bowling_team_id,
        "total_runs": inn.total_runs,
        "total_wickets": inn.total_wickets,
        "total_overs": format_overs(inn.total_overs),
        "extras": inn.extras,
        "run_rate": run_rate(inn.total_runs, inn.legal_balls, match.balls_per_over),
        "target_runs": inn.target_runs,
        "is_completed": inn.is_completed,
        "is_declared": inn.is_declared,
        "completion_reason": inn.completion_reason,
    }
