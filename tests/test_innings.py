from __future__ import annotations

import pytest

from scoring_api.errors import NotFound, StateConflict, ValidationError
from scoring_api.innings import completion_reason
from scoring_api.models import Innings, Over
from scoring_api.rules import ScoringRules

from scoring_helpers import AWAY, HOME, ball, bowl, new_innings, new_live_match


def test_start_first_innings(engine, match) -> None:
    inn = new_innings(engine, match)
    assert inn.number == 1
    assert inn.batting_team_id == HOME
    assert inn.bowling_team_id == AWAY
    assert inn.total_runs == 0
    assert inn.total_overs == 0.0
    assert not inn.is_completed


def test_only_one_open_innings(engine, match) -> None:
    new_innings(engine, match)
    with pytest.raises(StateConflict):
        new_innings(engine, match, batting=AWAY)


def test_innings_numbers_follow_on(engine, match) -> None:
    first = new_innings(engine, match)
    engine.end_innings(first.id)
    second = new_innings(engine, match, batting=AWAY, target=150)
    assert second.number == 2
    assert second.target_runs == 150


def test_limited_overs_match_has_two_innings(engine, match) -> None:
    for batting in (HOME, AWAY):
        inn = new_innings(engine, match, batting=batting)
        engine.end_innings(inn.id)
    with pytest.raises(ValidationError):
        new_innings(engine, match)


def test_test_match_allows_four_innings(engine) -> None:
    m = new_live_match(engine, format="Test", overs_limit=None)
    numbers = []
    for batting in (HOME, AWAY, HOME, AWAY):
        inn = new_innings(engine, m, batting=batting)
        numbers.append(inn.number)
        engine.end_innings(inn.id, is_declared=True)
    assert numbers == [1, 2, 3, 4]
    with pytest.raises(ValidationError):
        new_innings(engine, m)


def test_team_validation(engine, match) -> None:
    with pytest.raises(ValidationError):
        engine.start_innings(match.id, HOME, HOME)
    with pytest.raises(ValidationError):
        engine.start_innings(match.id, HOME, "team-x")
    with pytest.raises(ValidationError):
        engine.start_innings(match.id, HOME, AWAY, 0)


def test_innings_needs_live_match(engine) -> None:
    m = engine.create_match(home_team_id=HOME, away_team_id=AWAY, venue_id="v", format="T20", overs_limit=20)
    with pytest.raises(StateConflict):
        engine.start_innings(m.id, HOME, AWAY)


def test_end_innings_declared(engine, innings) -> None:
    bowl(engine, innings.id, [1, 2])
    ended = engine.end_innings(innings.id, is_declared=True)
    assert ended.is_completed
    assert ended.is_declared
    assert ended.completion_reason == "declared"
    assert ended.completed_at_sequence == 2
    assert ended.total_runs == 3

    with pytest.raises(StateConflict):
        engine.end_innings(innings.id)


def test_end_unknown_innings(engine) -> None:
    with pytest.raises(NotFound):
        engine.end_innings("nope")


def test_completed_innings_refuses_balls_and_overs(engine, innings) -> None:
    engine.end_innings(innings.id)
    with pytest.raises(StateConflict):
        engine.record_ball(innings.id, ball(1))
    with pytest.raises(StateConflict):
        engine.start_over(innings.id, "bowl2")


def _innings(**kw) -> Innings:
    base = dict(id="i1", match_id="m1", number=1, batting_team_id=HOME, bowling_team_id=AWAY)
    base.update(kw)
    return Innings(**base)


def _overs(completed: int) -> list:
    return [
        Over(id=f"o{n}", innings_id="i1", number=n, bowler_id="b", legal_balls=6, is_completed=True)
        for n in range(1, completed + 1)
    ]


def test_completion_reason_priority(match) -> None:
    rules = ScoringRules()
    # all out wins over overs exhausted and target reached
    inn = _innings(total_wickets=10, total_runs=200, target_runs=150)
    assert completion_reason(inn, _overs(20), match, rules) == "allOut"

    inn = _innings(total_wickets=3, total_runs=200, target_runs=150)
    assert completion_reason(inn, _overs(20), match, rules) == "oversExhausted"
    assert completion_reason(inn, _overs(12), match, rules) == "targetReached"

    inn = _innings(total_wickets=3, total_runs=100, target_runs=150)
    assert completion_reason(inn, _overs(12), match, rules) is None


def test_completion_reason_respects_configured_wickets(match) -> None:
    inn = _innings(total_wickets=5)
    assert completion_reason(inn, [], match, ScoringRules(max_wickets=5)) == "allOut"
    assert completion_reason(inn, [], match, ScoringRules()) is None


def test_no_overs_limit_never_exhausts(engine) -> None:
    m = new_live_match(engine, format="Test", overs_limit=None)
    assert completion_reason(_innings(), _overs(90), m, ScoringRules()) is None
