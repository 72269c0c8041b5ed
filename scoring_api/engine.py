# scoring_api/engine.py
from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, Optional

from scoring_api import innings as innings_manager
from scoring_api import ledger, lifecycle, overs as over_manager
from scoring_api.cards import batting_card, bowling_card
from scoring_api.events import (
    BALL_UPDATE,
    INNINGS_COMPLETE,
    MATCH_COMPLETE,
    OVER_COMPLETE,
    SCORECARD_UPDATE,
    DomainEvent,
    LoggingNotifier,
    Notifier,
    NotifierError,
)
from scoring_api.models import (
    BallInput,
    Innings,
    Match,
    Over,
    RecordBallResult,
    Toss,
    UndoResult,
    WicketInput,
    to_dict,
)
from scoring_api.overs_math import format_overs
from scoring_api.rules import ScoringRules
from scoring_api.scorecard import build_scorecard
from scoring_api.store import ScoringStore

logger = logging.getLogger(__name__)


class ScoringEngine:
    """
    Entry point for every scoring operation.

    Each mutating call delegates to its component (lifecycle, innings, overs,
    ledger), then publishes the matching domain events. Events go out after
    the write is committed; a relay failure is logged and never undoes it.
    """

    def __init__(
        self,
        store: Optional[ScoringStore] = None,
        notifier: Optional[Notifier] = None,
        rules: Optional[ScoringRules] = None,
    ) -> None:
        self.store = store or ScoringStore()
        self.notifier = notifier or LoggingNotifier()
        self.rules = rules or ScoringRules()

    # -----------------------
    # Match lifecycle
    # -----------------------
    def create_match(
        self,
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
        return lifecycle.create_match(
            self.store,
            home_team_id=home_team_id,
            away_team_id=away_team_id,
            venue_id=venue_id,
            format=format,
            overs_limit=overs_limit,
            balls_per_over=balls_per_over,
            league_id=league_id,
            start_time=start_time,
        )

    def get_match(self, match_id: str) -> Match:
        return self.store.get_match(match_id)

    def conduct_toss(self, match_id: str, winner_team_id: str, decision: str) -> Toss:
        toss = lifecycle.record_toss(self.store, match_id, winner_team_id, decision)
        self._publish_scorecard(match_id)
        return toss

    def start_match(self, match_id: str) -> Match:
        match = lifecycle.start_match(self.store, match_id)
        self._publish_scorecard(match_id)
        return match

    def complete_match(
        self,
        match_id: str,
        result_type: str,
        winner_team_id: Optional[str] = None,
        win_margin: Optional[int] = None,
        win_type: Optional[str] = None,
        dls_used: bool = False,
    ) -> Match:
        match = lifecycle.complete_match(
            self.store, match_id, result_type, winner_team_id, win_margin, win_type, dls_used
        )
        self._publish(MATCH_COMPLETE, match_id, to_dict(match))
        self._publish_scorecard(match_id)
        return match

    # -----------------------
    # Innings + overs
    # -----------------------
    def start_innings(
        self,
        match_id: str,
        batting_team_id: str,
        bowling_team_id: str,
        target_runs: Optional[int] = None,
    ) -> Innings:
        innings = innings_manager.start_innings(
            self.store, match_id, batting_team_id, bowling_team_id, target_runs
        )
        self._publish_scorecard(match_id)
        return innings

    def end_innings(self, innings_id: str, is_declared: bool = False) -> Innings:
        innings = innings_manager.end_innings(self.store, innings_id, is_declared)
        self._publish(INNINGS_COMPLETE, innings.match_id, to_dict(innings))
        self._publish_scorecard(innings.match_id)
        return innings

    def start_over(self, innings_id: str, bowler_id: str) -> Over:
        over = over_manager.start_over(self.store, innings_id, bowler_id, self.rules)
        self._publish_scorecard(self._match_id_for(innings_id))
        return over

    # -----------------------
    # Ball ledger
    # -----------------------
    def record_ball(
        self,
        innings_id: str,
        ball: BallInput,
        wicket: Optional[WicketInput] = None,
    ) -> RecordBallResult:
        result = ledger.record_ball(self.store, innings_id, ball, wicket, self.rules)

        match_id = result.innings.match_id

        self._publish(BALL_UPDATE, match_id, to_dict(result))
        if result.over_completed:
            self._publish(OVER_COMPLETE, match_id, to_dict(result.over))
        if result.innings_completed:
            self._publish(INNINGS_COMPLETE, match_id, to_dict(result.innings))
        self._publish_scorecard(match_id)
        return result

    def undo_last_ball(self, innings_id: str) -> UndoResult:
        result = ledger.undo_last_ball(self.store, innings_id)
        self._publish_scorecard(self._match_id_for(innings_id))
        return result

    # -----------------------
    # Read side
    # -----------------------
    def get_scorecard(self, match_id: str) -> Dict[str, Any]:
        match = self.store.get_match(match_id)
        snapshots = self.store.list_innings(match_id)
        return build_scorecard(match, snapshots, self.rules.recent_overs_count)

    def get_cards(self, innings_id: str) -> Dict[str, Any]:
        snap = self.store.get_snapshot(innings_id)
        match = self.store.get_match(snap.innings.match_id)
        inn = snap.innings
        return {
            "innings_id": inn.id,
            "number": inn.number,
            "batting_team_id": inn.batting_team_id,
            "bowling_team_id": inn.bowling_team_id,
            "total": f"{inn.total_runs}/{inn.total_wickets}",
            "overs": format_overs(inn.total_overs),
            "extras": inn.extras,
            "batting": batting_card(snap.balls),
            "bowling": bowling_card(snap.overs, snap.balls, match.balls_per_over),
        }

    # -----------------------
    # Helpers
    # -----------------------
    def _match_id_for(self, innings_id: str) -> str:
        return self.store.get_snapshot(innings_id).innings.match_id

    def _publish_scorecard(self, match_id: str) -> None:
        self._publish(SCORECARD_UPDATE, match_id, self.get_scorecard(match_id))

    def _publish(self, name: str, match_id: str, payload: Dict[str, Any]) -> None:
        event = DomainEvent(name=name, match_id=match_id, payload=payload)
        try:
            self.notifier.publish(event)
        except NotifierError:
            # The mutation is already committed; subscribers catch up on the next event
            logger.warning("Failed to relay %s for match %s", name, match_id, exc_info=True)
