"""
Recognition scoring service.

Bridges the AI recognizer's payload and the scoring engine:
- Maps payload keys onto tracked fields
- Scores a recognition result into a ConfidenceVector
- Turns the user's final transaction into per-field feedback
"""

import logging
from collections.abc import Mapping
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from ..confidence.engine import ScoringEngine
from ..confidence.vector import ConfidenceVector
from ..schemas.feedback import FeedbackEvent
from ..schemas.fields import TRACKED_FIELDS, TrackedField, is_empty_value, parse_field

logger = logging.getLogger(__name__)

# Recognizer payload key -> tracked field
RECOGNITION_FIELD_MAP: Mapping[str, TrackedField] = {
    "amount": TrackedField.AMOUNT,
    "category": TrackedField.CATEGORY,
    "payment_method": TrackedField.ACCOUNT,
    "item_description": TrackedField.DESCRIPTION,
    "transaction_time": TrackedField.DATE,
    "notes": TrackedField.NOTES,
}

# Amounts closer than this count as unchanged
AMOUNT_TOLERANCE = Decimal("0.01")


def _as_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, float):
        return repr(value)
    return str(value)


def extract_field_values(payload: Mapping[str, Any]) -> dict[TrackedField, Optional[str]]:
    """
    Map a recognizer payload onto tracked fields.

    Unknown payload keys are ignored; fields missing from the payload map
    to None.
    """
    values: dict[TrackedField, Optional[str]] = {tracked: None for tracked in TRACKED_FIELDS}
    for key, raw in payload.items():
        tracked = RECOGNITION_FIELD_MAP.get(key)
        if tracked is not None:
            values[tracked] = _as_text(raw)
    return values


def _amounts_match(original: str, final: str) -> bool:
    try:
        return abs(Decimal(original) - Decimal(final)) < AMOUNT_TOLERANCE
    except InvalidOperation:
        return original.strip() == final.strip()


def values_match(field_id: TrackedField, original: str, final: Optional[str]) -> bool:
    """Check whether the user kept the recognized value."""
    if final is None:
        return False
    if field_id is TrackedField.AMOUNT:
        return _amounts_match(original, final)
    return original.strip() == final.strip()


class RecognitionScorer:
    """Scores recognition results and learns from the user's edits."""

    def __init__(self, engine: ScoringEngine):
        self.engine = engine

    def score_response(self, payload: Mapping[str, Any]) -> ConfidenceVector:
        """
        Compute the confidence vector for a recognizer payload.

        Fields the recognizer did not return are scored as empty.
        """
        return self.engine.score_values(extract_field_values(payload))

    def record_review(
        self,
        payload: Mapping[str, Any],
        corrected: Mapping[Any, Any],
        shown: Optional[ConfidenceVector] = None,
    ) -> dict[TrackedField, bool]:
        """
        Record feedback for every field the recognizer produced.

        Args:
            payload: Original recognizer payload
            corrected: Final field values keyed by field (name or TrackedField)
            shown: Confidence vector displayed to the user; defaults are
                used when omitted

        Returns:
            Verdict (was_correct) per recorded field, in declaration order
        """
        final_values = {parse_field(key): _as_text(value) for key, value in corrected.items()}
        recorded: dict[TrackedField, bool] = {}
        events: list[FeedbackEvent] = []

        for tracked, original in extract_field_values(payload).items():
            if is_empty_value(original):
                continue

            final = final_values.get(tracked)
            was_correct = values_match(tracked, original, final)
            confidence = (
                shown.score(tracked) if shown is not None else self.engine.config.default_for(tracked)
            )
            corrected_value = None if was_correct else final

            events.append(
                FeedbackEvent(
                    field=tracked,
                    original_value=original,
                    corrected_value=corrected_value,
                    was_correct=was_correct,
                    original_confidence=confidence,
                )
            )
            recorded[tracked] = was_correct

        # One ledger write for the whole review
        self.engine.record_events(events)
        logger.info("Recorded review feedback for %d fields", len(recorded))
        return recorded
