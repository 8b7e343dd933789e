"""
Error taxonomy for confidence scoring.

All errors are synchronous and non-retryable: they signal caller misuse
(or an unavailable storage backend) and are fixed at the call site.
"""

from typing import Any


class ConfidenceError(Exception):
    """Base exception for confidence scoring errors."""

    pass


class UnknownFieldError(ConfidenceError, KeyError):
    """Raised when a field identifier is outside the tracked set."""

    def __init__(self, field: Any):
        self.field = field
        super().__init__(f"Unknown field: {field!r}")

    def __str__(self) -> str:
        # KeyError would otherwise repr() the message
        return self.args[0]


class OutOfRangeError(ConfidenceError, ValueError):
    """Raised when a confidence value lies outside [0, 1]."""

    def __init__(self, field: Any, value: Any):
        self.field = field
        self.value = value
        super().__init__(f"Confidence for {field} out of range [0, 1]: {value!r}")


class PersistenceUnavailableError(ConfidenceError):
    """Raised when the feedback store cannot be read or written."""

    pass
