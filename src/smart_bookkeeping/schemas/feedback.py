"""
Feedback event schema.

One event records whether the user accepted or corrected a value the
recognizer produced for a single field. Events are append-only.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional

from .fields import TrackedField, parse_field


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass(frozen=True)
class FeedbackEvent:
    """User verdict on one recognized field value."""

    field: TrackedField
    original_value: str
    corrected_value: Optional[str]  # None when the user kept the value
    was_correct: bool
    original_confidence: float  # Confidence shown to the user
    recorded_at: str = field(default_factory=_utc_now)  # ISO timestamp

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-serializable dictionary."""
        return {
            "field": self.field.value,
            "original_value": self.original_value,
            "corrected_value": self.corrected_value,
            "was_correct": self.was_correct,
            "original_confidence": self.original_confidence,
            "recorded_at": self.recorded_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "FeedbackEvent":
        """Create from dictionary.

        Raises:
            UnknownFieldError: If data["field"] is not a tracked field
        """
        return cls(
            field=parse_field(data["field"]),
            original_value=data["original_value"],
            corrected_value=data.get("corrected_value"),
            was_correct=bool(data["was_correct"]),
            original_confidence=float(data["original_confidence"]),
            recorded_at=data.get("recorded_at") or _utc_now(),
        )
