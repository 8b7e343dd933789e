"""
Append-only feedback history, grouped per field.

The ledger is not thread-safe on its own; its owning ScoringEngine
serializes every access.
"""

import logging
from collections.abc import Iterable, Mapping
from typing import Any

from ..errors import UnknownFieldError
from ..schemas.feedback import FeedbackEvent
from ..schemas.fields import TRACKED_FIELDS, TrackedField, parse_field

logger = logging.getLogger(__name__)


class FeedbackLedger:
    """
    Per-field sequences of feedback events.

    Insertion order is preserved but only counts matter: accuracy is the
    plain ratio of correct events, with no recency weighting.
    """

    def __init__(self, events: Iterable[FeedbackEvent] = ()):
        self._events: dict[TrackedField, list[FeedbackEvent]] = {f: [] for f in TRACKED_FIELDS}
        self._correct: dict[TrackedField, int] = {f: 0 for f in TRACKED_FIELDS}
        for event in events:
            self.append(event)

    def append(self, event: FeedbackEvent) -> None:
        """Append an event to its field's sequence."""
        self._events[event.field].append(event)
        if event.was_correct:
            self._correct[event.field] += 1

    def event_count(self, field_id: Any) -> int:
        """Total events recorded for a field."""
        return len(self._events[parse_field(field_id)])

    def correct_count(self, field_id: Any) -> int:
        """Events for a field the user accepted as correct."""
        return self._correct[parse_field(field_id)]

    def accuracy_rate(self, field_id: Any) -> float:
        """
        Ratio of correct events for a field.

        Returns 0.0 for a field without history; use event_count() to tell
        "no signal" apart from "never correct".
        """
        tracked = parse_field(field_id)
        total = len(self._events[tracked])
        if total == 0:
            return 0.0
        return self._correct[tracked] / total

    def events(self, field_id: Any) -> tuple[FeedbackEvent, ...]:
        """Events for a field in insertion order."""
        return tuple(self._events[parse_field(field_id)])

    def all_events(self) -> list[FeedbackEvent]:
        """All events, grouped by field in declaration order."""
        return [event for tracked in TRACKED_FIELDS for event in self._events[tracked]]

    def __len__(self) -> int:
        return sum(len(seq) for seq in self._events.values())

    def is_empty(self) -> bool:
        return len(self) == 0

    def clear(self) -> None:
        """Drop every event for every field."""
        for tracked in TRACKED_FIELDS:
            self._events[tracked].clear()
            self._correct[tracked] = 0

    def snapshot(self) -> dict[str, list[dict[str, Any]]]:
        """Serialize the whole ledger keyed by field name."""
        return {
            tracked.value: [event.to_dict() for event in self._events[tracked]]
            for tracked in TRACKED_FIELDS
        }

    @classmethod
    def from_snapshot(cls, data: Mapping[str, list[dict[str, Any]]]) -> "FeedbackLedger":
        """
        Restore a ledger from snapshot().

        Unknown field keys are skipped so newer or foreign data does not
        prevent loading the rest.
        """
        ledger = cls()
        for name, records in data.items():
            try:
                tracked = parse_field(name)
            except UnknownFieldError:
                logger.warning("Ignoring feedback for unknown field %r", name)
                continue
            for record in records:
                ledger.append(FeedbackEvent.from_dict({**record, "field": tracked.value}))
        return ledger
