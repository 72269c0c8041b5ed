# scoring_api/events.py
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

import requests

from scoring_api.config import WEBHOOK_TIMEOUT_SECONDS, WEBHOOK_URL

logger = logging.getLogger(__name__)

BALL_UPDATE = "ball-update"
OVER_COMPLETE = "over-complete"
INNINGS_COMPLETE = "innings-complete"
MATCH_COMPLETE = "match-complete"
SCORECARD_UPDATE = "scorecard-update"

EVENT_NAMES = (BALL_UPDATE, OVER_COMPLETE, INNINGS_COMPLETE, MATCH_COMPLETE, SCORECARD_UPDATE)


@dataclass(frozen=True)
class DomainEvent:
    """A named event for subscribers of one match (room = "match:<id>")."""
    name: str
    match_id: str
    payload: Dict[str, Any]
    emitted_at: datetime = field(default_factory=datetime.utcnow)

    @property
    def room(self) -> str:
        return f"match:{self.match_id}"

    def to_message(self) -> Dict[str, Any]:
        return {
            "event": self.name,
            "room": self.room,
            "match_id": self.match_id,
            "emitted_at": self.emitted_at.isoformat() + "Z",
            "data": self.payload,
        }


class NotifierError(Exception):
    """Raised when a domain event could not be relayed."""
    pass


class Notifier:
    """Relay for domain events. The scoring core never manages subscriptions."""

    def publish(self, event: DomainEvent) -> None:
        raise NotImplementedError


class LoggingNotifier(Notifier):
    def publish(self, event: DomainEvent) -> None:
        logger.info("event %s -> %s", event.name, event.room)


class RecordingNotifier(Notifier):
    """Keeps every event in memory (tests, local tooling)."""

    def __init__(self) -> None:
        self.events: List[DomainEvent] = []

    def publish(self, event: DomainEvent) -> None:
        self.events.append(event)

    def names(self) -> List[str]:
        return [e.name for e in self.events]

    def clear(self) -> None:
        self.events.clear()


class WebhookNotifier(Notifier):
    """POSTs each event as JSON to an external pub/sub gateway."""

    def __init__(self, url: str, timeout: float = WEBHOOK_TIMEOUT_SECONDS, session: Optional[requests.Session] = None) -> None:
        if not url.startswith("http"):
            raise NotifierError("Webhook URL must start with http/https")
        self.url = url
        self.timeout = timeout
        self.session = session or requests.Session()

    def publish(self, event: DomainEvent) -> None:
        try:
            resp = self.session.post(self.url, json=event.to_message(), timeout=self.timeout)
        except requests.RequestException as e:
            raise NotifierError(f"Network error: {e}") from e

        if resp.status_code >= 300:
            raise NotifierError(f"HTTP {resp.status_code}: {resp.text}")


def build_notifier(url: str = WEBHOOK_URL) -> Notifier:
    if url:
        return WebhookNotifier(url)
    return LoggingNotifier()
