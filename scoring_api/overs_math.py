# scoring_api/overs_math.py
from __future__ import annotations

from typing import Optional

DEFAULT_BALLS_PER_OVER = 6


def overs_notation(completed_overs: int, balls_in_open_over: int) -> float:
    """
    Cricket "overs" display value: completed overs + balls / 10.

    The fractional digit is a BALL COUNT, not a fraction of an over:
      overs_notation(19, 4) -> 19.4  (19 overs and 4 balls, NOT 19.4 overs)
    Use balls_to_overs_float() for any arithmetic.
    """
    if completed_overs < 0 or balls_in_open_over < 0:
        raise ValueError("Overs and balls cannot be negative")
    return round(completed_overs + balls_in_open_over / 10, 1)


def format_overs(overs: float) -> str:
    """19.4 -> "19.4", 1 -> "1.0" """
    completed = int(overs)
    balls = int(round((overs - completed) * 10))
    return f"{completed}.{balls}"


def balls_to_overs_float(balls: int, balls_per_over: int = DEFAULT_BALLS_PER_OVER) -> float:
    """True decimal overs: 118 balls -> 19.666..."""
    if balls <= 0:
        return 0.0
    return balls / float(balls_per_over)


def run_rate(runs: int, balls: int, balls_per_over: int = DEFAULT_BALLS_PER_OVER) -> float:
    overs = balls_to_overs_float(balls, balls_per_over)
    if overs == 0.0:
        return 0.0
    return round(runs / overs, 2)


def economy(runs_conceded: int, balls: int, balls_per_over: int = DEFAULT_BALLS_PER_OVER) -> float:
    """Runs conceded per over bowled; identical arithmetic to run_rate."""
    return run_rate(runs_conceded, balls, balls_per_over)


def strike_rate(runs: int, balls_faced: int) -> float:
    if balls_faced <= 0:
        return 0.0
    return round(runs * 100.0 / balls_faced, 2)


def required_run_rate(
    target_runs: Optional[int],
    current_runs: int,
    overs_limit: Optional[int],
    balls_bowled: int,
    balls_per_over: int = DEFAULT_BALLS_PER_OVER,
) -> Optional[float]:
    """
    Runs needed per remaining over of a chase.

    - None if there is no target or no overs limit (Test chase, first innings)
    - 0 once no overs remain
    """
    if not target_runs or not overs_limit:
        return None

    balls_remaining = overs_limit * balls_per_over - balls_bowled
    if balls_remaining <= 0:
        return 0.0

    runs_required = target_runs - current_runs
    return round(runs_required / balls_to_overs_float(balls_remaining, balls_per_over), 2)
