# scoring_api/store.py
from __future__ import annotations

import logging
import threading
import uuid
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional, Tuple

from scoring_api.errors import NotFound, StorageError
from scoring_api.models import BallEvent, Innings, Match, Over

logger = logging.getLogger(__name__)


def new_id() -> str:
    return uuid.uuid4().hex


@dataclass(frozen=True)
class InningsSnapshot:
    """
    Everything the scoring core knows about one innings at one instant.

    Snapshots are immutable: a writer builds the next snapshot and commits it
    with a single reference swap, so a reader holding a snapshot never sees a
    ball whose over/innings aggregates have not been recomputed yet.
    """
    innings: Innings
    overs: Tuple[Over, ...] = ()
    balls: Tuple[BallEvent, ...] = ()

    @property
    def last_over(self) -> Optional[Over]:
        return self.overs[-1] if self.overs else None

    @property
    def open_over(self) -> Optional[Over]:
        last = self.last_over
        if last is None or last.is_completed:
            return None
        return last

    @property
    def last_ball(self) -> Optional[BallEvent]:
        return self.balls[-1] if self.balls else None

    def over_by_id(self, over_id: str) -> Optional[Over]:
        for over in self.overs:
            if over.id == over_id:
                return over
        return None

    def balls_in_over(self, over_id: str) -> List[BallEvent]:
        return [b for b in self.balls if b.over_id == over_id]


class ScoringStore:
    """
    In-memory transactional store (sufficient for single-instance deploys).

    - Matches keyed by id
    - Innings snapshots keyed by innings id, listed per match in innings order
    - Named exclusive locks: one per match (lifecycle, innings creation) and one
      per innings (overs and ball ledger)
    """

    def __init__(self) -> None:
        self._matches: Dict[str, Match] = {}
        self._innings_by_match: Dict[str, Tuple[str, ...]] = {}
        self._snapshots: Dict[str, InningsSnapshot] = {}

        self._locks: Dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    # -----------------------
    # Locks
    # -----------------------
    def _lock_for(self, key: str) -> threading.Lock:
        with self._locks_guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = threading.Lock()
                self._locks[key] = lock
            return lock

    @contextmanager
    def match_lock(self, match_id: str) -> Iterator[None]:
        with self._lock_for(f"match:{match_id}"):
            yield

    @contextmanager
    def innings_lock(self, innings_id: str) -> Iterator[None]:
        with self._lock_for(f"innings:{innings_id}"):
            yield

    # -----------------------
    # Matches
    # -----------------------
    def get_match(self, match_id: str) -> Match:
        match = self._matches.get(match_id)
        if match is None:
            raise NotFound(f"Match with ID {match_id} not found")
        return match

    def insert_match(self, match: Match) -> Match:
        if match.id in self._matches:
            raise StorageError(f"Match {match.id} already exists")
        self._matches[match.id] = match
        self._innings_by_match[match.id] = ()
        return match

    def put_match(self, match: Match) -> Match:
        if match.id not in self._matches:
            raise StorageError(f"Match {match.id} does not exist")
        self._matches[match.id] = match
        return match

    # -----------------------
    # Innings snapshots
    # -----------------------
    def get_snapshot(self, innings_id: str) -> InningsSnapshot:
        snap = self._snapshots.get(innings_id)
        if snap is None:
            raise NotFound("Innings not found")
        return snap

    def list_innings(self, match_id: str) -> List[InningsSnapshot]:
        self.get_match(match_id)
        ids = self._innings_by_match.get(match_id, ())
        return [self._snapshots[i] for i in ids]

    def insert_innings(self, innings: Innings) -> InningsSnapshot:
        if innings.id in self._snapshots:
            raise StorageError(f"Innings {innings.id} already exists")
        if innings.match_id not in self._matches:
            raise StorageError(f"Match {innings.match_id} does not exist")

        snap = InningsSnapshot(innings=innings)
        self._snapshots[innings.id] = snap
        self._innings_by_match[innings.match_id] = self._innings_by_match[innings.match_id] + (innings.id,)
        return snap

    def commit(self, snap: InningsSnapshot) -> InningsSnapshot:
        """
        Replace an innings snapshot.

        The ball ledger may only grow by one event at its tail or shrink by
        removing its last event; anything else is refused.
        """
        current = self._snapshots.get(snap.innings.id)
        if current is None:
            raise StorageError(f"Innings {snap.innings.id} does not exist")

        _check_ledger_transition(current.balls, snap.balls)
        _check_sequence(snap.balls)

        self._snapshots[snap.innings.id] = snap
        logger.debug(
            "Committed innings %s (%d balls, %d overs)", snap.innings.id, len(snap.balls), len(snap.overs)
        )
        return snap


def _check_ledger_transition(old: Tuple[BallEvent, ...], new: Tuple[BallEvent, ...]) -> None:
    if len(new) == len(old):
        if new != old:
            raise StorageError("Ball ledger is append-only: existing events cannot be rewritten")
        return

    if len(new) == len(old) + 1:
        if new[:-1] != old:
            raise StorageError("Ball ledger is append-only: events may only be added at the tail")
        return

    if len(new) == len(old) - 1:
        if new != old[:-1]:
            raise StorageError("Only the last ball event may be removed")
        return

    raise StorageError(
        f"Ball ledger may change by one event per commit (had {len(old)}, got {len(new)})"
    )


def _check_sequence(balls: Tuple[BallEvent, ...]) -> None:
    for expected, ball in enumerate(balls, start=1):
        if ball.sequence_index != expected:
            raise StorageError(
                f"Ball sequence broken at index {expected} (found {ball.sequence_index})"
            )
