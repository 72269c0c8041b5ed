# scoring_api/errors.py
from __future__ import annotations


class ScoringError(Exception):
    """Base class for every failure raised by the scoring core."""
    pass


class ValidationError(ScoringError):
    """Raised when input is malformed or logically invalid (wrong team, limits exceeded, ...)."""
    pass


class StateConflict(ScoringError):
    """Raised when an operation is not allowed in the current lifecycle state."""
    pass


class NotFound(ScoringError):
    """Raised when a referenced match/innings/over/ball does not exist."""
    pass


class StorageError(ScoringError):
    """Raised when the store cannot apply a write (infrastructure, not a domain outcome)."""
    pass
