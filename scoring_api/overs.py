# scoring_api/overs.py
from __future__ import annotations

import logging
from dataclasses import replace
from typing import Sequence

from scoring_api.errors import StateConflict, ValidationError
from scoring_api.models import Match, Over
from scoring_api.rules import ScoringRules, bowler_quota
from scoring_api.store import ScoringStore, new_id

logger = logging.getLogger(__name__)


def start_over(store: ScoringStore, innings_id: str, bowler_id: str, rules: ScoringRules) -> Over:
    store.get_snapshot(innings_id)  # NotFound before a lock is created
    with store.innings_lock(innings_id):
        snap = store.get_snapshot(innings_id)
        match = store.get_match(snap.innings.match_id)

        if snap.innings.is_completed:
            raise StateConflict("Cannot start over in completed innings")

        last = snap.last_over
        if last is not None and not last.is_completed:
            raise StateConflict("Previous over must be completed before starting new over")

        number = last.number + 1 if last is not None else 1
        if match.overs_limit and number > match.overs_limit:
            raise StateConflict(f"Cannot exceed {match.overs_limit} overs limit")

        if not bowler_id:
            raise ValidationError("bowler_id is required")
        check_bowler_eligible(snap.overs, bowler_id, match, rules)

        over = Over(id=new_id(), innings_id=innings_id, number=number, bowler_id=bowler_id)
        store.commit(replace(snap, overs=snap.overs + (over,)))

    logger.info("Over %d of innings %s started (bowler=%s)", number, innings_id, bowler_id)
    return over


def check_bowler_eligible(
    overs: Sequence[Over],
    bowler_id: str,
    match: Match,
    rules: ScoringRules,
) -> None:
    if rules.enforce_consecutive_overs and overs and overs[-1].bowler_id == bowler_id:
        raise ValidationError("A bowler cannot bowl consecutive overs")

    if rules.enforce_bowler_quota and match.overs_limit:
        quota = bowler_quota(match.overs_limit)
        bowled = sum(1 for o in overs if o.bowler_id == bowler_id)
        if bowled >= quota:
            raise ValidationError(f"Bowler has already bowled the maximum {quota} overs")
