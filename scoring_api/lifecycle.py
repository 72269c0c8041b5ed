# scoring_api/lifecycle.py
from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime
from typing import Optional

from scoring_api.errors import StateConflict, ValidationError
from scoring_api.models import (
    MATCH_FORMATS,
    RESULT_TYPES,
    TOSS_DECISIONS,
    WIN_TYPES,
    Match,
    Toss,
)
from scoring_api.store import ScoringStore, new_id

logger = logging.getLogger(__name__)


def create_match(
    store: ScoringStore,
    *,
    home_team_id: str,
    away_team_id: str,
    venue_id: str,
    format: str,
    overs_limit: Optional[int] = None,
    balls_per_over: int = 6,
    league_id: Optional[str] = None,
    start_time: Optional[datetime] = None,
) -> Match:
    """
    Registers a scheduled match. Team/venue ids are opaque references.

    overs_limit is expected to be absent for Test and present otherwise,
    but that convention is not enforced.
    """
    if not home_team_id or not away_team_id or not venue_id:
        raise ValidationError("home_team_id, away_team_id and venue_id are required")
    if home_team_id == away_team_id:
        raise ValidationError("Home and away teams must be different")
    if format not in MATCH_FORMATS:
        raise ValidationError(f"Invalid format: {format} (expected one of {', '.join(MATCH_FORMATS)})")
    if not 4 <= int(balls_per_over) <= 8:
        raise ValidationError("balls_per_over must be between 4 and 8")
    if overs_limit is not None and not 1 <= int(overs_limit) <= 50:
        raise ValidationError("overs_limit must be between 1 and 50")

    match = Match(
        id=new_id(),
        home_team_id=home_team_id,
        away_team_id=away_team_id,
        venue_id=venue_id,
        format=format,  # type: ignore[arg-type]
        overs_limit=overs_limit,
        balls_per_over=int(balls_per_over),
        league_id=league_id,
        start_time=start_time,
    )
    store.insert_match(match)
    logger.info("Match %s created (%s, %s vs %s)", match.id, format, home_team_id, away_team_id)
    return match


def record_toss(store: ScoringStore, match_id: str, winner_team_id: str, decision: str) -> Toss:
    with store.match_lock(match_id):
        match = store.get_match(match_id)

        if match.status != "scheduled":
            raise StateConflict("Toss can only be conducted for scheduled matches")
        if match.toss is not None:
            raise StateConflict("Toss has already been conducted")

        if not match.has_team(winner_team_id):
            raise ValidationError("Winner team must be one of the playing teams")
        if decision not in TOSS_DECISIONS:
            raise ValidationError(f"Invalid toss decision: {decision} (expected bat/bowl)")

        toss = Toss(match_id=match_id, winner_team_id=winner_team_id, decision=decision)  # type: ignore[arg-type]
        store.put_match(replace(match, toss=toss))

    logger.info("Toss for match %s: %s elected to %s", match_id, winner_team_id, decision)
    return toss


def start_match(store: ScoringStore, match_id: str) -> Match:
    with store.match_lock(match_id):
        match = store.get_match(match_id)

        if match.status != "scheduled":
            raise StateConflict("Only scheduled matches can be started")
        if match.toss is None:
            raise StateConflict("Toss must be conducted before starting the match")

        match = store.put_match(replace(match, status="live"))

    logger.info("Match %s is live", match_id)
    return match


def complete_match(
    store: ScoringStore,
    match_id: str,
    result_type: str,
    winner_team_id: Optional[str] = None,
    win_margin: Optional[int] = None,
    win_type: Optional[str] = None,
    dls_used: bool = False,
) -> Match:
    """
    Freezes the result. Rules:
    - win: winner required and must be a playing team
    - tie/draw/noResult/abandoned: no winner
    """
    with store.match_lock(match_id):
        match = store.get_match(match_id)

        if match.status != "live":
            raise StateConflict("Only live matches can be completed")

        if result_type not in RESULT_TYPES:
            raise ValidationError(f"Invalid result type: {result_type}")

        if result_type == "win":
            if not winner_team_id:
                raise ValidationError("winner_team_id is required when result_type='win'")
            if not match.has_team(winner_team_id):
                raise ValidationError("Winner team must be one of the playing teams")
        elif winner_team_id:
            raise ValidationError(f"winner_team_id must be omitted when result_type='{result_type}'")

        if win_margin is not None and win_margin < 0:
            raise ValidationError("win_margin cannot be negative")
        if win_type is not None and win_type not in WIN_TYPES:
            raise ValidationError(f"Invalid win type: {win_type}")

        match = store.put_match(
            replace(
                match,
                status="completed",
                result_type=result_type,
                winner_team_id=winner_team_id,
                win_margin=win_margin,
                win_type=win_type,
                dls_used=bool(dls_used),
            )
        )

    logger.info("Match %s completed (%s, winner=%s)", match_id, result_type, winner_team_id)
    return match
