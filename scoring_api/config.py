# scoring_api/config.py
from __future__ import annotations

import os
from dotenv import load_dotenv

# Load .env from project root
load_dotenv()


def _get_env(name: str, default: str = "") -> str:
    return os.getenv(name, default).strip()


def _get_env_int(name: str, default: int) -> int:
    raw = _get_env(name, str(default))
    try:
        return int(raw)
    except ValueError:
        return default


def _get_env_float(name: str, default: float) -> float:
    raw = _get_env(name, str(default))
    try:
        return float(raw)
    except ValueError:
        return default


def _get_env_bool(name: str, default: bool) -> bool:
    raw = _get_env(name, "1" if default else "0").lower()
    return raw in {"1", "true", "yes", "on"}


# -------------------------
# Scoring rules
# -------------------------
DEFAULT_BALLS_PER_OVER: int = _get_env_int("SCORING_DEFAULT_BALLS_PER_OVER", 6)

# All-out threshold (10 in every standard format)
MAX_WICKETS: int = _get_env_int("SCORING_MAX_WICKETS", 10)

# Overs shown in the scorecard's recent-overs strip
RECENT_OVERS_COUNT: int = _get_env_int("SCORING_RECENT_OVERS", 6)

# Law 17.8: a bowler may not bowl two overs in succession
ENFORCE_CONSECUTIVE_OVERS: bool = _get_env_bool("SCORING_ENFORCE_CONSECUTIVE_OVERS", True)

# Limited-overs quota: ceil(overs_limit / 5) overs per bowler
ENFORCE_BOWLER_QUOTA: bool = _get_env_bool("SCORING_ENFORCE_BOWLER_QUOTA", False)


# -------------------------
# Domain event relay (OPTIONAL)
# -------------------------
# If empty, events are only logged
WEBHOOK_URL: str = _get_env("SCORING_WEBHOOK_URL")
WEBHOOK_TIMEOUT_SECONDS: float = _get_env_float("SCORING_WEBHOOK_TIMEOUT_SECONDS", 5.0)

LOG_LEVEL: str = _get_env("LOG_LEVEL", "INFO")


def validate_config() -> None:
    if not 4 <= DEFAULT_BALLS_PER_OVER <= 8:
        raise RuntimeError("SCORING_DEFAULT_BALLS_PER_OVER must be between 4 and 8")

    if not 1 <= MAX_WICKETS <= 10:
        raise RuntimeError("SCORING_MAX_WICKETS must be between 1 and 10")

    if RECENT_OVERS_COUNT <= 0:
        raise RuntimeError("SCORING_RECENT_OVERS must be positive")

    # Webhook relay is optional, but a configured URL must look like one
    if WEBHOOK_URL and not WEBHOOK_URL.startswith("http"):
        raise RuntimeError("SCORING_WEBHOOK_URL must start with http/https")

    if WEBHOOK_TIMEOUT_SECONDS <= 0:
        raise RuntimeError("SCORING_WEBHOOK_TIMEOUT_SECONDS must be positive")
