from __future__ import annotations

import pytest

from scoring_api.cards import LEDGER_COLUMNS, batting_card, bowling_card, ledger_frame
from scoring_api.errors import NotFound

from scoring_helpers import ball, bowled


@pytest.fixture
def two_overs(engine, innings):
    rec = engine.record_ball
    rec(innings.id, ball(4))
    rec(innings.id, ball(1))
    rec(innings.id, ball(0, striker="bat2", non_striker="bat1", wide=1))
    rec(innings.id, ball(6, striker="bat2", non_striker="bat1"))
    rec(innings.id, ball(0, striker="bat2", non_striker="bat1"), bowled("bat2"))
    rec(innings.id, ball(0, striker="bat3", non_striker="bat1"))
    rec(innings.id, ball(0, striker="bat3", non_striker="bat1"))
    engine.start_over(innings.id, "bowl2")
    for _ in range(6):
        rec(innings.id, ball(0, striker="bat3", non_striker="bat1", bowler="bowl2"))
    return innings


def test_ledger_frame(engine, two_overs) -> None:
    snap = engine.store.get_snapshot(two_overs.id)
    df = ledger_frame(snap.balls)
    assert list(df.columns) == LEDGER_COLUMNS
    assert len(df) == 13
    assert df["total_runs"].sum() == 12
    assert df["sequence_index"].tolist() == list(range(1, 14))
    assert df.loc[df["wicket_type"] != "", "dismissed_player_id"].tolist() == ["bat2"]


def test_empty_cards() -> None:
    assert ledger_frame([]).empty
    assert batting_card([]) == []
    assert bowling_card([], []) == []


def test_batting_card(engine, two_overs) -> None:
    snap = engine.store.get_snapshot(two_overs.id)
    card = batting_card(snap.balls)

    assert [row["player_id"] for row in card] == ["bat1", "bat2", "bat3"]
    bat1, bat2, bat3 = card

    assert (bat1["runs"], bat1["balls"], bat1["fours"], bat1["sixes"]) == (5, 2, 1, 0)
    assert bat1["strike_rate"] == 250.0
    assert not bat1["is_out"]
    assert bat1["dismissal"] is None

    # the wide is not a ball faced
    assert (bat2["runs"], bat2["balls"], bat2["sixes"]) == (6, 2, 1)
    assert bat2["is_out"]
    assert bat2["dismissal"]["type"] == "bowled"
    assert bat2["dismissal"]["bowler_id"] == "bowl1"
    assert bat2["dismissal"]["sequence_index"] == 5

    assert (bat3["runs"], bat3["balls"]) == (0, 8)


def test_bowling_card(engine, two_overs) -> None:
    snap = engine.store.get_snapshot(two_overs.id)
    card = bowling_card(snap.overs, snap.balls)

    assert [row["player_id"] for row in card] == ["bowl1", "bowl2"]
    bowl1, bowl2 = card
    assert bowl1 == {
        "player_id": "bowl1",
        "overs": "1.0",
        "maidens": 0,
        "runs": 12,
        "wickets": 1,
        "economy": 12.0,
        "wides": 1,
        "no_balls": 0,
    }
    assert bowl2["maidens"] == 1
    assert bowl2["economy"] == 0.0
    assert bowl2["wides"] == 0


def test_bowling_card_with_open_over(engine, innings) -> None:
    engine.record_ball(innings.id, ball(2))
    engine.record_ball(innings.id, ball(1, no_ball=1))
    snap = engine.store.get_snapshot(innings.id)
    (row,) = bowling_card(snap.overs, snap.balls)
    assert row["overs"] == "0.1"
    assert row["runs"] == 4
    assert row["no_balls"] == 1
    # 4 runs off a single legal ball
    assert row["economy"] == 24.0


def test_leg_byes_still_a_maiden(engine, innings) -> None:
    engine.record_ball(innings.id, ball(0, leg_bye=2))
    for _ in range(5):
        engine.record_ball(innings.id, ball(0))
    snap = engine.store.get_snapshot(innings.id)
    (row,) = bowling_card(snap.overs, snap.balls)
    assert row["maidens"] == 1
    assert row["runs"] == 2


def test_get_cards(engine, two_overs) -> None:
    cards = engine.get_cards(two_overs.id)
    assert cards["total"] == "12/1"
    assert cards["overs"] == "2.0"
    assert cards["extras"] == 1
    assert len(cards["batting"]) == 3
    assert len(cards["bowling"]) == 2


def test_get_cards_unknown_innings(engine) -> None:
    with pytest.raises(NotFound):
        engine.get_cards("nope")
