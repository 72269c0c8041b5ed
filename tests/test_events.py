from __future__ import annotations

import logging

import pytest
import requests

from scoring_api.engine import ScoringEngine
from scoring_api.events import (
    BALL_UPDATE,
    DomainEvent,
    LoggingNotifier,
    Notifier,
    NotifierError,
    WebhookNotifier,
    build_notifier,
)
from scoring_api.rules import ScoringRules
from scoring_api.store import ScoringStore

from scoring_helpers import AWAY, HOME, ball, bowl, new_innings, new_live_match


def test_ball_emits_update_then_scorecard(engine, notifier, innings) -> None:
    notifier.clear()
    engine.record_ball(innings.id, ball(1))
    assert notifier.names() == ["ball-update", "scorecard-update"]

    update = notifier.events[0]
    assert update.room == f"match:{innings.match_id}"
    assert update.payload["ball_event"]["runs_off_bat"] == 1
    assert update.payload["ball_event"]["total_runs"] == 1


def test_last_ball_of_over_emits_over_complete(engine, notifier, innings) -> None:
    bowl(engine, innings.id, [0] * 5)
    notifier.clear()
    engine.record_ball(innings.id, ball(2))
    assert notifier.names() == ["ball-update", "over-complete", "scorecard-update"]
    assert notifier.events[1].payload["runs"] == 2
    assert notifier.events[1].payload["is_completed"] is True


def test_winning_ball_emits_innings_complete(engine, notifier, match) -> None:
    first = new_innings(engine, match)
    engine.end_innings(first.id)
    chase = new_innings(engine, match, batting=AWAY, target=1)
    engine.start_over(chase.id, "bowl1")

    notifier.clear()
    engine.record_ball(chase.id, ball(1))
    assert notifier.names() == ["ball-update", "innings-complete", "scorecard-update"]
    assert notifier.events[1].payload["completion_reason"] == "targetReached"


def test_lifecycle_events(engine, notifier) -> None:
    m = new_live_match(engine)
    assert notifier.names() == ["scorecard-update", "scorecard-update"]

    notifier.clear()
    engine.complete_match(m.id, "win", winner_team_id=HOME, win_margin=5, win_type="runs")
    assert notifier.names() == ["match-complete", "scorecard-update"]
    assert notifier.events[0].payload["winner_team_id"] == HOME


def test_manual_end_and_undo_events(engine, notifier, innings) -> None:
    bowl(engine, innings.id, [3])
    notifier.clear()
    engine.undo_last_ball(innings.id)
    assert notifier.names() == ["scorecard-update"]

    notifier.clear()
    engine.end_innings(innings.id, is_declared=True)
    assert notifier.names() == ["innings-complete", "scorecard-update"]


def test_failed_relay_does_not_undo_the_ball(caplog) -> None:
    class BrokenNotifier(Notifier):
        def publish(self, event: DomainEvent) -> None:
            raise NotifierError("gateway down")

    eng = ScoringEngine(ScoringStore(), BrokenNotifier(), ScoringRules())
    with caplog.at_level(logging.WARNING, logger="scoring_api.engine"):
        m = new_live_match(eng)
        inn = new_innings(eng, m)
        eng.start_over(inn.id, "bowl1")
        result = eng.record_ball(inn.id, ball(4))

    assert result.innings.total_runs == 4
    assert eng.store.get_snapshot(inn.id).innings.total_runs == 4
    assert any("Failed to relay ball-update" in r.getMessage() for r in caplog.records)


def test_event_message_shape() -> None:
    event = DomainEvent(name=BALL_UPDATE, match_id="m1", payload={"x": 1})
    msg = event.to_message()
    assert msg["event"] == "ball-update"
    assert msg["room"] == "match:m1"
    assert msg["data"] == {"x": 1}
    assert msg["emitted_at"].endswith("Z")


class _Response:
    def __init__(self, status_code: int, text: str = "") -> None:
        self.status_code = status_code
        self.text = text


class _Session:
    def __init__(self, response=None, error=None) -> None:
        self.response = response
        self.error = error
        self.calls = []

    def post(self, url, json=None, timeout=None):
        self.calls.append((url, json, timeout))
        if self.error is not None:
            raise self.error
        return self.response


def test_webhook_posts_event_json() -> None:
    session = _Session(response=_Response(204))
    hook = WebhookNotifier("https://relay.local/events", timeout=2.0, session=session)
    hook.publish(DomainEvent(name=BALL_UPDATE, match_id="m1", payload={}))

    (url, body, timeout), = session.calls
    assert url == "https://relay.local/events"
    assert body["event"] == "ball-update"
    assert timeout == 2.0


def test_webhook_http_error() -> None:
    hook = WebhookNotifier("http://relay.local", session=_Session(response=_Response(502, "bad gateway")))
    with pytest.raises(NotifierError, match="HTTP 502"):
        hook.publish(DomainEvent(name=BALL_UPDATE, match_id="m1", payload={}))


def test_webhook_network_error() -> None:
    hook = WebhookNotifier("http://relay.local", session=_Session(error=requests.ConnectionError("refused")))
    with pytest.raises(NotifierError, match="Network error"):
        hook.publish(DomainEvent(name=BALL_UPDATE, match_id="m1", payload={}))


def test_build_notifier() -> None:
    assert isinstance(build_notifier(""), LoggingNotifier)
    assert isinstance(build_notifier("http://relay.local"), WebhookNotifier)
    with pytest.raises(NotifierError):
        WebhookNotifier("relay.local")
