"""
Per-field confidence vector attached to a recognition result.
"""

import math
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from ..config import DEFAULT_CONFIDENCE_CONFIG, ConfidenceConfig
from ..errors import OutOfRangeError
from ..schemas.fields import TRACKED_FIELDS, TrackedField, parse_field

# Absolute tolerance for vector equality (absorbs drift from repeated blending)
EQUALITY_TOLERANCE = 0.001


@dataclass(frozen=True, eq=False)
class ConfidenceVector:
    """
    Confidence scoring for one recognition result.

    All scores are floats in range [0.0, 1.0].
    Higher = more confident.
    """

    amount: float
    category: float
    account: float
    description: float
    date: float
    notes: float

    # Threshold used for low-confidence flags
    low_threshold: float = field(
        default=DEFAULT_CONFIDENCE_CONFIG.low_confidence_threshold, repr=False
    )

    def __post_init__(self) -> None:
        for tracked in TRACKED_FIELDS:
            score = getattr(self, tracked.value)
            if math.isnan(score) or not 0.0 <= score <= 1.0:
                raise OutOfRangeError(tracked.value, score)

    @classmethod
    def build(
        cls,
        scores: Mapping[Any, float],
        config: ConfidenceConfig = DEFAULT_CONFIDENCE_CONFIG,
    ) -> "ConfidenceVector":
        """
        Build a complete vector from a (possibly partial) score mapping.

        Missing fields are filled from config defaults.

        Raises:
            UnknownFieldError: If a key is not a tracked field
            OutOfRangeError: If a score is not a finite number in [0, 1]
        """
        values = {tracked: config.default_for(tracked) for tracked in TRACKED_FIELDS}

        for key, score in scores.items():
            tracked = parse_field(key)
            if isinstance(score, bool) or not isinstance(score, (int, float)):
                raise OutOfRangeError(tracked.value, score)
            if math.isnan(score) or not 0.0 <= score <= 1.0:
                raise OutOfRangeError(tracked.value, score)
            values[tracked] = float(score)

        return cls(
            **{tracked.value: value for tracked, value in values.items()},
            low_threshold=config.low_confidence_threshold,
        )

    @classmethod
    def defaults(cls, config: ConfidenceConfig = DEFAULT_CONFIDENCE_CONFIG) -> "ConfidenceVector":
        """Vector holding every field's default confidence."""
        return cls.build({}, config)

    def score(self, field_id: Any) -> float:
        """Get the score for one field."""
        return getattr(self, parse_field(field_id).value)

    def items(self) -> list[tuple[TrackedField, float]]:
        """(field, score) pairs in declaration order."""
        return [(tracked, getattr(self, tracked.value)) for tracked in TRACKED_FIELDS]

    def average(self) -> float:
        """Mean of all six scores."""
        return sum(score for _, score in self.items()) / len(TRACKED_FIELDS)

    def low_confidence_fields(self) -> list[TrackedField]:
        """Fields the display layer should flag."""
        return [tracked for tracked, score in self.items() if score < self.low_threshold]

    def low_confidence_count(self) -> int:
        """Number of scores strictly below the low threshold."""
        return len(self.low_confidence_fields())

    def has_low_confidence(self) -> bool:
        """Check whether any field is below the low threshold."""
        return self.low_confidence_count() > 0

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ConfidenceVector):
            return NotImplemented
        return all(
            abs(getattr(self, tracked.value) - getattr(other, tracked.value)) < EQUALITY_TOLERANCE
            for tracked in TRACKED_FIELDS
        )

    __hash__ = None  # type: ignore[assignment]

    def to_dict(self) -> dict[str, float]:
        """Convert to a field-name keyed dictionary."""
        return {tracked.value: score for tracked, score in self.items()}

    @classmethod
    def from_dict(
        cls,
        data: Mapping[str, float],
        config: ConfidenceConfig = DEFAULT_CONFIDENCE_CONFIG,
    ) -> "ConfidenceVector":
        """Create from dictionary (same validation as build)."""
        return cls.build(data, config)

    def detailed_description(self) -> str:
        """Human-readable summary for diagnostics."""
        lines = ["Confidence Scores:"]
        for tracked, score in self.items():
            lines.append(f"- {tracked.value.capitalize()}: {score:.2f}")
        lines.append(f"- Average: {self.average():.2f}")
        lines.append(f"- Low Confidence Fields: {self.low_confidence_count()}")
        return "\n".join(lines)
