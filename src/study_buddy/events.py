"""
Structured events

The orchestrator and quiz engine report what happened on each request as a
StudyEvent (kind + user + outcome). Where the events go is up to the sink
handed to them.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional, Protocol

logger = logging.getLogger("study_buddy.events")


class Outcome:
    """Outcome labels carried by events."""
    OK = "ok"
    SOFT_FAILURE = "soft_failure"
    NOT_FOUND = "not_found"
    REJECTED = "rejected"
    INTERNAL_ERROR = "internal_error"
    ERROR = "error"


@dataclass
class StudyEvent:
    """A single boundary event."""
    kind: str
    user_id: str
    outcome: str
    details: dict[str, Any] = field(default_factory=dict)
    timestamp: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())

    def to_dict(self) -> dict:
        return {
            "kind": self.kind,
            "user_id": self.user_id,
            "outcome": self.outcome,
            "details": self.details,
            "timestamp": self.timestamp,
        }


class EventSink(Protocol):
    """Anything that accepts events."""

    def emit(self, event: StudyEvent) -> None:
        ...


class LoggingEventSink:
    """Writes each event as one log record on the study_buddy.events logger."""

    def __init__(self, log: Optional[logging.Logger] = None, level: int = logging.INFO):
        self.log = log or logger
        self.level = level

    def emit(self, event: StudyEvent) -> None:
        level = self.level
        if event.outcome in (Outcome.INTERNAL_ERROR, Outcome.ERROR):
            level = logging.ERROR
        self.log.log(
            level,
            "%s user=%s outcome=%s %s",
            event.kind,
            event.user_id,
            event.outcome,
            event.details,
            extra={"study_event": event.to_dict()},
        )


class RecordingEventSink:
    """Keeps events in memory, newest last."""

    def __init__(self):
        self.events: list[StudyEvent] = []

    def emit(self, event: StudyEvent) -> None:
        self.events.append(event)

    def kinds(self) -> list[str]:
        return [e.kind for e in self.events]

    def last(self, kind: Optional[str] = None) -> Optional[StudyEvent]:
        """Most recent event, optionally of a given kind."""
        for event in reversed(self.events):
            if kind is None or event.kind == kind:
                return event
        return None

    def clear(self) -> None:
        self.events.clear()
