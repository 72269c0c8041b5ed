from __future__ import annotations

import pytest

from scoring_api.engine import ScoringEngine
from scoring_api.errors import NotFound, StateConflict, ValidationError
from scoring_api.events import RecordingNotifier
from scoring_api.rules import ScoringRules, bowler_quota
from scoring_api.store import ScoringStore

from scoring_helpers import bowl, bowl_full_over, new_innings, new_live_match


def test_first_over_is_number_one(engine, match) -> None:
    inn = new_innings(engine, match)
    over = engine.start_over(inn.id, "bowl1")
    assert over.number == 1
    assert over.bowler_id == "bowl1"
    assert over.legal_balls == 0
    assert not over.is_completed


def test_previous_over_must_be_completed(engine, innings) -> None:
    bowl(engine, innings.id, [0, 0, 0])
    with pytest.raises(StateConflict):
        engine.start_over(innings.id, "bowl2")


def test_over_numbers_increase(engine, innings) -> None:
    bowl(engine, innings.id, [0] * 6)
    bowl_full_over(engine, innings.id, "bowl2")
    third = engine.start_over(innings.id, "bowl1")
    assert third.number == 3


def test_consecutive_overs_rejected(engine, innings) -> None:
    bowl(engine, innings.id, [0] * 6)
    with pytest.raises(ValidationError, match="consecutive"):
        engine.start_over(innings.id, "bowl1")


def test_consecutive_rule_can_be_switched_off(notifier) -> None:
    eng = ScoringEngine(ScoringStore(), notifier, ScoringRules(enforce_consecutive_overs=False))
    m = new_live_match(eng)
    inn = new_innings(eng, m)
    bowl_full_over(eng, inn.id, "bowl1")
    assert eng.start_over(inn.id, "bowl1").number == 2


def test_bowler_quota(notifier) -> None:
    eng = ScoringEngine(ScoringStore(), notifier, ScoringRules(enforce_bowler_quota=True))
    m = new_live_match(eng, format="T10", overs_limit=10)
    inn = new_innings(eng, m)
    for bowler in ("bowl1", "bowl2", "bowl1", "bowl2"):
        bowl_full_over(eng, inn.id, bowler)
    with pytest.raises(ValidationError, match="maximum 2"):
        eng.start_over(inn.id, "bowl1")


def test_quota_values() -> None:
    assert bowler_quota(20) == 4
    assert bowler_quota(50) == 10
    assert bowler_quota(10) == 2
    assert bowler_quota(7) == 2


def test_overs_limit_cannot_be_exceeded(engine) -> None:
    m = new_live_match(engine, format="Custom", overs_limit=2)
    inn = new_innings(engine, m)
    bowl_full_over(engine, inn.id, "bowl1", runs=(1, 0, 0, 0, 0, 0))
    bowl_full_over(engine, inn.id, "bowl2")
    # innings closes itself once the limit is used up
    with pytest.raises(StateConflict):
        engine.start_over(inn.id, "bowl1")


def test_bowler_required(engine, match) -> None:
    inn = new_innings(engine, match)
    with pytest.raises(ValidationError):
        engine.start_over(inn.id, "")


def test_unknown_innings(engine) -> None:
    with pytest.raises(NotFound):
        engine.start_over("nope", "bowl1")


def test_eight_ball_over_closes_on_eighth_legal_ball() -> None:
    eng = ScoringEngine(ScoringStore(), RecordingNotifier(), ScoringRules())
    m = new_live_match(eng, format="Custom", overs_limit=10, balls_per_over=8)
    inn = new_innings(eng, m)
    eng.start_over(inn.id, "bowl1")
    results = bowl(eng, inn.id, [1] * 8)
    assert [r.over_completed for r in results] == [False] * 7 + [True]
    assert results[-1].innings.total_overs == 1.0
    assert results[5].innings.total_overs == 0.6
