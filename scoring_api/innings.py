# scoring_api/innings.py
from __future__ import annotations

import logging
from dataclasses import replace
from typing import Optional, Sequence

from scoring_api.errors import StateConflict, ValidationError
from scoring_api.models import CompletionReason, Innings, Match, Over, max_innings_for
from scoring_api.rules import ScoringRules
from scoring_api.store import ScoringStore, new_id

logger = logging.getLogger(__name__)


def start_innings(
    store: ScoringStore,
    match_id: str,
    batting_team_id: str,
    bowling_team_id: str,
    target_runs: Optional[int] = None,
) -> Innings:
    with store.match_lock(match_id):
        match = store.get_match(match_id)

        if match.status != "live":
            raise StateConflict("Match must be live to start an innings")

        existing = store.list_innings(match_id)
        if any(not s.innings.is_completed for s in existing):
            raise StateConflict("Current innings must be completed before starting another")

        number = len(existing) + 1
        max_innings = max_innings_for(match.format)
        if number > max_innings:
            raise ValidationError(f"Cannot start innings {number} for {match.format} format")

        if batting_team_id == bowling_team_id:
            raise ValidationError("Batting and bowling teams must be different")
        if not match.has_team(batting_team_id) or not match.has_team(bowling_team_id):
            raise ValidationError("Invalid team selection")

        if target_runs is not None and target_runs < 1:
            raise ValidationError("target_runs must be at least 1")

        innings = Innings(
            id=new_id(),
            match_id=match_id,
            number=number,
            batting_team_id=batting_team_id,
            bowling_team_id=bowling_team_id,
            target_runs=target_runs,
        )
        store.insert_innings(innings)

    logger.info(
        "Innings %d started for match %s (%s batting, target=%s)",
        number, match_id, batting_team_id, target_runs,
    )
    return innings


def end_innings(store: ScoringStore, innings_id: str, is_declared: bool = False) -> Innings:
    """Closes an innings by hand (declaration, or any stoppage the umpires call)."""
    store.get_snapshot(innings_id)  # NotFound before a lock is created
    with store.innings_lock(innings_id):
        snap = store.get_snapshot(innings_id)
        if snap.innings.is_completed:
            raise StateConflict("Innings is already completed")

        reason: CompletionReason = "declared" if is_declared else "closed"
        innings = replace(
            snap.innings,
            is_completed=True,
            is_declared=bool(is_declared),
            completion_reason=reason,
            completed_at_sequence=snap.last_ball.sequence_index if snap.last_ball else 0,
        )
        store.commit(replace(snap, innings=innings))

    logger.info("Innings %s ended (%s)", innings_id, reason)
    return innings


def completion_reason(
    innings: Innings,
    overs: Sequence[Over],
    match: Match,
    rules: ScoringRules,
) -> Optional[CompletionReason]:
    """
    Auto-completion check, in priority order:
      1) all out
      2) overs limit reached (completed overs)
      3) target reached
    Returns None while the innings should carry on.
    """
    if innings.total_wickets >= rules.max_wickets:
        return "allOut"

    if match.overs_limit:
        completed = sum(1 for o in overs if o.is_completed)
        if completed >= match.overs_limit:
            return "oversExhausted"

    if innings.target_runs and innings.total_runs >= innings.target_runs:
        return "targetReached"

    return None


def apply_auto_completion(
    innings: Innings,
    overs: Sequence[Over],
    match: Match,
    rules: ScoringRules,
    sequence_index: int,
) -> Innings:
    """Idempotent: a completed innings is returned unchanged."""
    if innings.is_completed:
        return innings

    reason = completion_reason(innings, overs, match, rules)
    if reason is None:
        return innings

    logger.info("Innings %s auto-completed (%s) at ball #%d", innings.id, reason, sequence_index)
    return replace(
        innings,
        is_completed=True,
        completion_reason=reason,
        completed_at_sequence=sequence_index,
    )
