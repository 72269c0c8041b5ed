# scoring_api/ledger.py
from __future__ import annotations

import logging
from dataclasses import replace
from typing import Iterable, Optional, Tuple

from scoring_api.errors import NotFound, StateConflict, StorageError, ValidationError
from scoring_api.innings import apply_auto_completion
from scoring_api.models import (
    WICKET_TYPES,
    BallEvent,
    BallInput,
    Innings,
    Over,
    RecordBallResult,
    UndoResult,
    WicketEvent,
    WicketInput,
)
from scoring_api.rules import ScoringRules
from scoring_api.stats import innings_totals, over_totals
from scoring_api.store import InningsSnapshot, ScoringStore, new_id

logger = logging.getLogger(__name__)

# Dismissals that cannot happen on a given kind of delivery
_NOT_ON_WIDE = frozenset({"bowled", "caught", "lbw"})
_NOT_ON_NO_BALL = frozenset({"bowled", "caught", "lbw", "stumped", "hitWicket"})

# Dismissals credited to the bowler; all of them remove the striker
_BOWLER_CREDITED = frozenset({"bowled", "caught", "lbw", "stumped", "hitWicket"})


# -----------------------------
# Record
# -----------------------------
def record_ball(
    store: ScoringStore,
    innings_id: str,
    ball: BallInput,
    wicket: Optional[WicketInput],
    rules: ScoringRules,
) -> RecordBallResult:
    """
    Appends one delivery to the innings ledger and recomputes every aggregate
    it touches, all inside the innings lock:

    1. guards (innings open, over open)
    2. sequence_index = tail + 1
    3. ball_number: legal deliveries advance it, wides/no-balls repeat it
    4-5. build BallEvent (+ WicketEvent)
    6. recompute over + innings totals from the full ball set
    7. close the over on its last legal delivery
    8. innings auto-completion
    """
    store.get_snapshot(innings_id)  # NotFound before a lock is created
    with store.innings_lock(innings_id):
        snap = store.get_snapshot(innings_id)
        match = store.get_match(snap.innings.match_id)

        if snap.innings.is_completed:
            raise StateConflict("Cannot record balls in completed innings")
        if match.status != "live":
            raise StateConflict("Match must be live to record balls")

        over = snap.last_over
        if over is None:
            raise StateConflict("No active over found. Start an over first.")
        if over.is_completed:
            raise StateConflict("Current over is completed. Start a new over.")

        validate_ball(ball, over)

        last = snap.last_ball
        sequence_index = last.sequence_index + 1 if last is not None else 1

        in_over = snap.balls_in_over(over.id)
        legal_so_far = sum(1 for b in in_over if b.is_legal)
        is_legal = ball.extras.is_legal

        ball_number = legal_so_far + 1 if is_legal else max(legal_so_far, 1)
        if ball_number > match.balls_per_over:
            raise ValidationError(f"Over cannot exceed {match.balls_per_over} balls")

        event_id = new_id()
        wicket_event = (
            build_wicket(wicket, ball, ball_event_id=event_id, innings_id=innings_id)
            if wicket is not None
            else None
        )

        event = BallEvent(
            id=event_id,
            innings_id=innings_id,
            over_id=over.id,
            over_number=over.number,
            ball_number=ball_number,
            sequence_index=sequence_index,
            striker_id=ball.striker_id,
            non_striker_id=ball.non_striker_id,
            bowler_id=ball.bowler_id,
            runs_off_bat=ball.runs_off_bat,
            extras=ball.extras,
            boundary=ball.boundary,
            free_hit=ball.free_hit,
            commentary=ball.commentary,
            wicket=wicket_event,
        )

        balls = snap.balls + (event,)
        new_over = _recompute_over(over, in_over + [event])

        # Over is marked complete before innings totals so a full over reads "1.0", not "0.6"
        over_completed = is_legal and ball_number == match.balls_per_over
        if over_completed:
            new_over = replace(new_over, is_completed=True)

        overs = _swap_over(snap.overs, new_over)
        innings = _recompute_innings(snap.innings, balls, overs)
        innings = apply_auto_completion(innings, overs, match, rules, sequence_index)

        store.commit(InningsSnapshot(innings=innings, overs=overs, balls=balls))

    logger.debug(
        "Ball #%d recorded in innings %s: %d.%d, %d run(s)%s",
        sequence_index, innings_id, over.number, ball_number, event.total_runs,
        " + wicket" if wicket_event else "",
    )
    if over_completed:
        logger.info("Over %d of innings %s completed (%d runs)", over.number, innings_id, new_over.runs)

    return RecordBallResult(
        ball_event=event,
        over_completed=over_completed,
        innings_completed=innings.is_completed,
        over=new_over,
        innings=innings,
    )


def validate_ball(ball: BallInput, over: Over) -> None:
    if not ball.striker_id or not ball.non_striker_id or not ball.bowler_id:
        raise ValidationError("striker_id, non_striker_id and bowler_id are required")
    if ball.striker_id == ball.non_striker_id:
        raise ValidationError("Striker and non-striker must be different players")
    if ball.bowler_id != over.bowler_id:
        raise ValidationError(f"Bowler does not match the bowler of over {over.number}")

    if not 0 <= ball.runs_off_bat <= 6:
        raise ValidationError("runs_off_bat must be between 0 and 6")

    ex = ball.extras
    for name in ("wide", "no_ball", "bye", "leg_bye", "penalty"):
        if getattr(ex, name) < 0:
            raise ValidationError(f"extras.{name} cannot be negative")

    if ex.wide and ex.no_ball:
        raise ValidationError("A delivery cannot be both a wide and a no-ball")
    if ex.bye and ex.leg_bye:
        raise ValidationError("A delivery cannot have both byes and leg byes")
    if ex.wide and (ex.bye or ex.leg_bye):
        raise ValidationError("Runs taken off a wide are wides, not byes or leg byes")
    if ex.wide and ball.runs_off_bat:
        raise ValidationError("A wide cannot carry runs off the bat")

    if ball.boundary == "four":
        # Four off the bat, or four byes/leg byes to the rope
        if ball.runs_off_bat != 4 and not (ball.runs_off_bat == 0 and 4 in (ex.bye, ex.leg_bye)):
            raise ValidationError("A boundary four must score 4 runs")
    elif ball.boundary == "six":
        if ball.runs_off_bat != 6:
            raise ValidationError("A boundary six must score 6 runs off the bat")
    elif ball.boundary is not None:
        raise ValidationError(f"Invalid boundary: {ball.boundary}")


def build_wicket(wicket: WicketInput, ball: BallInput, *, ball_event_id: str, innings_id: str) -> WicketEvent:
    kind = wicket.type
    if kind not in WICKET_TYPES:
        raise ValidationError(f"Invalid wicket type: {kind}")
    if not wicket.dismissed_player_id:
        raise ValidationError("dismissed_player_id is required")

    if ball.extras.wide and kind in _NOT_ON_WIDE:
        raise ValidationError(f"{kind} is not possible on a wide")
    if (ball.extras.no_ball or ball.free_hit) and kind in _NOT_ON_NO_BALL:
        raise ValidationError(f"{kind} is not possible on a no-ball or free hit")

    # A timed-out batter has not reached the crease yet
    if kind != "timedOut" and wicket.dismissed_player_id not in (ball.striker_id, ball.non_striker_id):
        raise ValidationError("Dismissed player must be one of the current batsmen")
    if kind in _BOWLER_CREDITED and wicket.dismissed_player_id != ball.striker_id:
        raise ValidationError(f"Only the striker can be dismissed {kind}")

    if kind in _BOWLER_CREDITED:
        bowler_credit = wicket.bowler_id or ball.bowler_id
    elif wicket.bowler_id:
        raise ValidationError(f"{kind} is not credited to the bowler")
    else:
        bowler_credit = None

    if kind != "runOut" and wicket.run_out_end is not None:
        raise ValidationError("run_out_end only applies to run-outs")

    return WicketEvent(
        id=new_id(),
        ball_event_id=ball_event_id,
        innings_id=innings_id,
        type=kind,
        dismissed_player_id=wicket.dismissed_player_id,
        bowler_id=bowler_credit,
        fielder_id=wicket.fielder_id,
        run_out_end=wicket.run_out_end if kind == "runOut" else None,
        batters_crossed=bool(wicket.batters_crossed) if kind == "runOut" else False,
    )


# -----------------------------
# Undo
# -----------------------------
def undo_last_ball(store: ScoringStore, innings_id: str) -> UndoResult:
    """
    Removes the ball with the highest sequence_index (and its wicket).

    Repeated calls walk backwards one event at a time. The owning over is
    reopened, an over started after that ball with no deliveries is dropped,
    and an innings auto-completed by that very ball is reopened.

    Raises StateConflict (HTTP 409) when the innings was ended by hand, a
    later innings has started, or the match is completed.

    Locks are taken match first, then innings. start_innings holds the same
    match lock, so no new innings can start between the reopen check and
    the commit.
    """
    match_id = store.get_snapshot(innings_id).innings.match_id  # NotFound before a lock is created
    with store.match_lock(match_id), store.innings_lock(innings_id):
        snap = store.get_snapshot(innings_id)
        last = snap.last_ball
        if last is None:
            raise NotFound("No balls to undo")

        match = store.get_match(snap.innings.match_id)
        if match.status == "completed":
            raise StateConflict("Cannot undo balls in a completed match")

        innings = snap.innings
        innings_reopened = False
        if innings.is_completed:
            _check_reopenable(store, innings, last)
            innings = replace(innings, is_completed=False, completion_reason=None, completed_at_sequence=None)
            innings_reopened = True

        overs = list(snap.overs)
        if overs and overs[-1].id != last.over_id:
            dropped = overs.pop()
            logger.info("Dropping empty over %d of innings %s during undo", dropped.number, innings_id)

        owning = snap.over_by_id(last.over_id)
        if owning is None:
            raise StorageError(f"Over {last.over_id} of ball #{last.sequence_index} is missing")

        balls = snap.balls[:-1]
        over_reopened = owning.is_completed
        new_over = replace(
            _recompute_over(owning, [b for b in balls if b.over_id == owning.id]),
            is_completed=False,
        )

        overs_t = _swap_over(tuple(overs), new_over)
        innings = _recompute_innings(innings, balls, overs_t)

        store.commit(InningsSnapshot(innings=innings, overs=overs_t, balls=balls))

    logger.info(
        "Undid ball #%d of innings %s (over reopened=%s, innings reopened=%s)",
        last.sequence_index, innings_id, over_reopened, innings_reopened,
    )
    return UndoResult(removed_ball=last, over_reopened=over_reopened, innings_reopened=innings_reopened)


def _check_reopenable(store: ScoringStore, innings: Innings, last: BallEvent) -> None:
    if innings.completion_reason in ("declared", "closed"):
        raise StateConflict("Innings was ended manually and cannot be reopened by undo")
    if innings.completed_at_sequence != last.sequence_index:
        raise StateConflict("Innings was completed before its last ball; cannot undo")

    later = [s for s in store.list_innings(innings.match_id) if s.innings.number > innings.number]
    if later:
        raise StateConflict("A later innings has already started")


# -----------------------------
# Aggregates
# -----------------------------
def _recompute_over(over: Over, balls: Iterable[BallEvent]) -> Over:
    t = over_totals(balls)
    return replace(
        over,
        runs=t.runs,
        bowler_runs=t.bowler_runs,
        wickets=t.wickets,
        extras=t.extras,
        legal_balls=t.legal_balls,
    )


def _recompute_innings(innings: Innings, balls: Iterable[BallEvent], overs: Tuple[Over, ...]) -> Innings:
    t = innings_totals(balls, overs)
    return replace(
        innings,
        total_runs=t.total_runs,
        total_wickets=t.total_wickets,
        total_overs=t.total_overs,
        extras=t.extras,
        legal_balls=t.legal_balls,
    )


def _swap_over(overs: Tuple[Over, ...], updated: Over) -> Tuple[Over, ...]:
    return tuple(updated if o.id == updated.id else o for o in overs)
