# scoring_api/rules.py
from __future__ import annotations

from dataclasses import dataclass

from scoring_api import config


@dataclass(frozen=True)
class ScoringRules:
    """
    Business rules that vary by competition.

    enforce_consecutive_overs:
      a bowler may not bowl two overs in a row
    enforce_bowler_quota:
      limited-overs cap of ceil(overs_limit / 5) overs per bowler
    """
    max_wickets: int = 10
    enforce_consecutive_overs: bool = True
    enforce_bowler_quota: bool = False
    recent_overs_count: int = 6

    @classmethod
    def from_config(cls) -> "ScoringRules":
        return cls(
            max_wickets=config.MAX_WICKETS,
            enforce_consecutive_overs=config.ENFORCE_CONSECUTIVE_OVERS,
            enforce_bowler_quota=config.ENFORCE_BOWLER_QUOTA,
            recent_overs_count=config.RECENT_OVERS_COUNT,
        )


def bowler_quota(overs_limit: int) -> int:
    """T20 -> 4, ODI -> 10, T10 -> 2"""
    return -(-overs_limit // 5)
