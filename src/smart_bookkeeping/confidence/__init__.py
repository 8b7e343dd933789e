"""
Confidence scoring module.

Builds per-field confidence vectors and calibrates them from the user's
feedback history.
"""

from .cache import COMMON_VALUES, CacheStatistics, ConfidenceCache
from .engine import (
    SENTINEL_CEILING,
    SENTINEL_FACTOR,
    ConfidenceLevel,
    FeedbackRepository,
    ScoringEngine,
)
from .ledger import FeedbackLedger
from .vector import EQUALITY_TOLERANCE, ConfidenceVector

__all__ = [
    "COMMON_VALUES",
    "EQUALITY_TOLERANCE",
    "SENTINEL_CEILING",
    "SENTINEL_FACTOR",
    "CacheStatistics",
    "ConfidenceCache",
    "ConfidenceLevel",
    "ConfidenceVector",
    "FeedbackLedger",
    "FeedbackRepository",
    "ScoringEngine",
]
