"""
Tracked transaction fields (SSOT).

The closed set of fields the engine scores, plus the per-field table of
placeholder ("unset") values a recognizer emits when it has no answer.
"""

from collections.abc import Mapping
from enum import Enum
from types import MappingProxyType
from typing import Any, Optional

from ..errors import UnknownFieldError


class TrackedField(str, Enum):
    """Transaction attribute that carries a confidence score."""

    AMOUNT = "amount"
    CATEGORY = "category"
    ACCOUNT = "account"
    DESCRIPTION = "description"
    DATE = "date"
    NOTES = "notes"


TRACKED_FIELDS: tuple[TrackedField, ...] = tuple(TrackedField)

# Markers any recognizer may use to mean "no value"
COMMON_SENTINELS = frozenset({"uncategorized", "unknown"})

SENTINEL_VALUES: Mapping[TrackedField, frozenset[str]] = MappingProxyType(
    {
        TrackedField.AMOUNT: COMMON_SENTINELS,
        TrackedField.CATEGORY: COMMON_SENTINELS | {"未分类", "其他", "other"},
        TrackedField.ACCOUNT: COMMON_SENTINELS | {"未知", "默认账户", "default account"},
        TrackedField.DESCRIPTION: COMMON_SENTINELS | {"未识别", "unrecognized"},
        TrackedField.DATE: COMMON_SENTINELS | {"1970-01-01"},
        TrackedField.NOTES: COMMON_SENTINELS | {"无", "none"},
    }
)


def parse_field(value: Any) -> TrackedField:
    """
    Resolve a field identifier at a trust boundary.

    Accepts a TrackedField or its string name (case-insensitive,
    surrounding whitespace ignored).

    Raises:
        UnknownFieldError: If the identifier is not a tracked field
    """
    if isinstance(value, TrackedField):
        return value
    if isinstance(value, str):
        try:
            return TrackedField(value.strip().lower())
        except ValueError:
            pass
    raise UnknownFieldError(value)


def is_empty_value(value: Optional[str]) -> bool:
    """Check whether a recognized value carries nothing to score."""
    return value is None or not value.strip()


def is_sentinel(field: TrackedField, value: Optional[str]) -> bool:
    """Check whether value is the field's placeholder for "not recognized"."""
    if value is None:
        return False
    return value.strip().casefold() in SENTINEL_VALUES[field]
