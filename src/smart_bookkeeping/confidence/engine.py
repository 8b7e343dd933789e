"""
Adaptive confidence scoring engine.

Blends each field's configured prior with the user's feedback history:

    suggested = default * (0.5 + accuracy_rate * 0.5)

At 0% historical accuracy the suggestion is half the default; at 100% it
equals the default, which is the field's ceiling.
"""

import logging
import threading
from collections.abc import Iterable, Mapping
from dataclasses import replace
from enum import Enum
from typing import Any, Optional, Protocol

from ..config import (
    DEFAULT_CONFIDENCE_CONFIG,
    EMPTY_VALUE_FLOOR,
    ConfidenceConfig,
    ConfigValidationError,
)
from ..schemas.feedback import FeedbackEvent
from ..schemas.fields import TRACKED_FIELDS, TrackedField, is_empty_value, is_sentinel, parse_field
from .cache import ConfidenceCache
from .ledger import FeedbackLedger
from .vector import ConfidenceVector

logger = logging.getLogger(__name__)

# Placeholder values score at most this, and at most half their base score
SENTINEL_CEILING = 0.35
SENTINEL_FACTOR = 0.5


class ConfidenceLevel(str, Enum):
    """
    Display band for a confidence score.

    LOW: Below low threshold, field is flagged for the user
    MEDIUM: Below medium threshold
    HIGH: At or above medium threshold
    """

    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


class FeedbackRepository(Protocol):
    """Durable storage for the whole feedback ledger."""

    def load_events(self) -> list[FeedbackEvent]: ...

    def replace_events(self, events: list[FeedbackEvent]) -> None: ...


class ScoringEngine:
    """
    Owns one FeedbackLedger and turns its history into suggestions.

    Every read and mutation is serialized on a single lock. When a
    repository is attached, the ledger is snapshotted under that lock and
    written outside it; a revision counter keeps an older snapshot from
    overwriting a newer one.
    """

    def __init__(
        self,
        config: Optional[ConfidenceConfig] = None,
        store: Optional[FeedbackRepository] = None,
        cache: Optional[ConfidenceCache] = None,
    ):
        """
        Initialize engine.

        Args:
            config: Field defaults and thresholds
            store: Optional repository; history is restored from it now
            cache: Optional suggestion cache

        Raises:
            ConfigValidationError: If config breaks its invariants
            PersistenceUnavailableError: If the store cannot be read
        """
        self.config = config or DEFAULT_CONFIDENCE_CONFIG
        errors = self.config.validate()
        if errors:
            raise ConfigValidationError("; ".join(errors))

        self._store = store
        self._cache = cache
        self._lock = threading.RLock()
        self._persist_lock = threading.Lock()
        self._revision = 0
        self._persisted_revision = 0

        events = store.load_events() if store is not None else []
        self._ledger = FeedbackLedger(events)
        if events:
            logger.info("Restored %d feedback events", len(events))

    # Feedback

    def record_feedback(
        self,
        field_id: Any,
        original_value: str,
        corrected_value: Optional[str],
        was_correct: bool,
        original_confidence: float,
    ) -> None:
        """
        Record the user's verdict on a suggested value.

        The event is kept in memory even if persisting it fails; the
        failure is raised so the caller can surface it.

        Raises:
            UnknownFieldError: If field_id is not a tracked field
            PersistenceUnavailableError: If the attached store rejects the write
        """
        tracked = parse_field(field_id)
        event = FeedbackEvent(
            field=tracked,
            original_value=original_value,
            corrected_value=corrected_value,
            was_correct=was_correct,
            original_confidence=original_confidence,
        )
        self.record_events([event])

    def record_events(self, events: Iterable[FeedbackEvent]) -> None:
        """
        Append several feedback events and persist them with one write.

        Every event is checked before any is appended, so an unknown field
        leaves the ledger unchanged.

        Raises:
            UnknownFieldError: If an event names an untracked field
            PersistenceUnavailableError: If the attached store rejects the write
        """
        batch = [replace(event, field=parse_field(event.field)) for event in events]
        if not batch:
            return

        with self._lock:
            for event in batch:
                self._ledger.append(event)
                if self._cache is not None:
                    self._cache.invalidate(event.field)
            pending = self._snapshot_locked()

        for event in batch:
            logger.debug(
                "Recorded feedback for %s: was_correct=%s, confidence=%s",
                event.field.value,
                event.was_correct,
                event.original_confidence,
            )
        self._persist(pending)

    def clear_history(self) -> None:
        """Forget all feedback. Safe to call repeatedly."""
        with self._lock:
            self._ledger.clear()
            if self._cache is not None:
                self._cache.clear()
            pending = self._snapshot_locked()

        logger.info("Cleared feedback history")
        self._persist(pending)

    def save(self) -> None:
        """Write the current ledger to the attached store."""
        with self._lock:
            pending = self._snapshot_locked()
        self._persist(pending)

    # Queries

    @property
    def cache(self) -> Optional[ConfidenceCache]:
        """Suggestion cache attached to this engine, if any."""
        return self._cache

    def accuracy_rate(self, field_id: Any) -> float:
        """Correct / total feedback for a field (0.0 without history)."""
        with self._lock:
            return self._ledger.accuracy_rate(field_id)

    def event_count(self, field_id: Any) -> int:
        with self._lock:
            return self._ledger.event_count(field_id)

    def history(self, field_id: Any) -> tuple[FeedbackEvent, ...]:
        with self._lock:
            return self._ledger.events(field_id)

    def statistics(self) -> dict[str, dict[str, Any]]:
        """Per-field event counts and accuracy."""
        with self._lock:
            return {
                tracked.value: {
                    "events": self._ledger.event_count(tracked),
                    "correct": self._ledger.correct_count(tracked),
                    "accuracy_rate": self._ledger.accuracy_rate(tracked),
                }
                for tracked in TRACKED_FIELDS
            }

    def suggest_confidence(self, field_id: Any, value: Any) -> float:
        """
        Suggest a confidence for a recognized value.

        Non-string values (e.g. a float amount) are scored by their text form.

        Rules, first match wins:
        1. Unknown field: UnknownFieldError
        2. Empty value: EMPTY_VALUE_FLOOR
        3. Placeholder value: below SENTINEL_CEILING and the field default
        4. No history: the field default
        5. Otherwise: default blended with historical accuracy
        """
        tracked = parse_field(field_id)
        if value is not None and not isinstance(value, str):
            value = str(value)

        if is_empty_value(value):
            return EMPTY_VALUE_FLOOR

        with self._lock:
            if self._cache is None:
                return self._compute(tracked, value)
            return self._cache.get_or_compute(
                tracked, value, lambda: self._compute(tracked, value)
            )

    def score_values(self, values: Mapping[Any, Optional[str]]) -> ConfidenceVector:
        """
        Score a recognition result.

        Fields absent from values keep their default confidence.
        """
        scores = {
            parse_field(key): self.suggest_confidence(key, value) for key, value in values.items()
        }
        return ConfidenceVector.build(scores, self.config)

    # Threshold helpers

    def is_low(self, score: float) -> bool:
        return score < self.config.low_confidence_threshold

    def is_medium(self, score: float) -> bool:
        return (
            self.config.low_confidence_threshold
            <= score
            < self.config.medium_confidence_threshold
        )

    def confidence_level(self, score: float) -> ConfidenceLevel:
        if self.is_low(score):
            return ConfidenceLevel.LOW
        if self.is_medium(score):
            return ConfidenceLevel.MEDIUM
        return ConfidenceLevel.HIGH

    # Internals

    def _compute(self, tracked: TrackedField, value: str) -> float:
        """Rules 3-5. Caller holds the lock."""
        base = self._blended(tracked)
        if is_sentinel(tracked, value):
            return max(EMPTY_VALUE_FLOOR, min(SENTINEL_CEILING, base * SENTINEL_FACTOR))
        return base

    def _blended(self, tracked: TrackedField) -> float:
        default = self.config.default_for(tracked)
        if self._ledger.event_count(tracked) == 0:
            return default

        suggested = default * (0.5 + self._ledger.accuracy_rate(tracked) * 0.5)
        return min(default, max(0.0, suggested))

    def _snapshot_locked(self) -> Optional[tuple[int, list[FeedbackEvent]]]:
        if self._store is None:
            return None
        self._revision += 1
        return self._revision, self._ledger.all_events()

    def _persist(self, pending: Optional[tuple[int, list[FeedbackEvent]]]) -> None:
        if pending is None:
            return
        revision, events = pending
        with self._persist_lock:
            if revision <= self._persisted_revision:
                # A newer snapshot was already written
                return
            self._store.replace_events(events)
            self._persisted_revision = revision
