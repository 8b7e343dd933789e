"""
Services module.

Provides the glue between the AI recognizer's output and the
confidence scoring engine.
"""

from .recognition import (
    RECOGNITION_FIELD_MAP,
    RecognitionScorer,
    extract_field_values,
    values_match,
)

__all__ = [
    "RECOGNITION_FIELD_MAP",
    "RecognitionScorer",
    "extract_field_values",
    "values_match",
]
