"""
SSOT (Single Source of Truth) schemas for confidence scoring.

These canonical schemas are the ONLY models used across all modules.
"""

from .feedback import FeedbackEvent
from .fields import (
    COMMON_SENTINELS,
    SENTINEL_VALUES,
    TRACKED_FIELDS,
    TrackedField,
    is_empty_value,
    is_sentinel,
    parse_field,
)

__all__ = [
    "COMMON_SENTINELS",
    "SENTINEL_VALUES",
    "TRACKED_FIELDS",
    "FeedbackEvent",
    "TrackedField",
    "is_empty_value",
    "is_sentinel",
    "parse_field",
]
