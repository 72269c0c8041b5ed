# Ensure the project root is at sys.path[0] when pytest runs from any directory
import sys
from pathlib import Path

import pytest

_tests_dir = Path(__file__).resolve().parent
_root = _tests_dir.parent
if str(_root) not in sys.path:
    sys.path.insert(0, str(_root))

from scoring_api.engine import ScoringEngine  # noqa: E402
from scoring_api.events import RecordingNotifier  # noqa: E402
from scoring_api.rules import ScoringRules  # noqa: E402
from scoring_api.store import ScoringStore  # noqa: E402

from scoring_helpers import new_innings, new_live_match  # noqa: E402


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def engine(notifier: RecordingNotifier) -> ScoringEngine:
    return ScoringEngine(store=ScoringStore(), notifier=notifier, rules=ScoringRules())


@pytest.fixture
def match(engine: ScoringEngine):
    """Live T20 match, home team won the toss and bats."""
    return new_live_match(engine)


@pytest.fixture
def innings(engine: ScoringEngine, match):
    """First innings of the live T20 match, with over 1 started by bowl1."""
    inn = new_innings(engine, match)
    engine.start_over(inn.id, "bowl1")
    return inn
