"""Tests for field identifiers, sentinels and feedback events."""

import pytest

from smart_bookkeeping.errors import UnknownFieldError
from smart_bookkeeping.schemas import (
    SENTINEL_VALUES,
    TRACKED_FIELDS,
    FeedbackEvent,
    TrackedField,
    is_empty_value,
    is_sentinel,
    parse_field,
)


class TestParseField:
    """Tests for boundary field parsing."""

    def test_enum_passthrough(self):
        assert parse_field(TrackedField.DATE) is TrackedField.DATE

    @pytest.mark.parametrize("raw", ["amount", "AMOUNT", "  Amount "])
    def test_string_names(self, raw):
        assert parse_field(raw) is TrackedField.AMOUNT

    @pytest.mark.parametrize("raw", ["merchant", "", None, 3])
    def test_unknown_identifiers(self, raw):
        with pytest.raises(UnknownFieldError) as exc_info:
            parse_field(raw)

        assert exc_info.value.field == raw

    def test_unknown_field_is_key_error(self):
        """Callers catching KeyError still see unknown fields."""
        with pytest.raises(KeyError):
            parse_field("merchant")

    def test_tracked_field_order(self):
        assert [f.value for f in TRACKED_FIELDS] == [
            "amount",
            "category",
            "account",
            "description",
            "date",
            "notes",
        ]


class TestSentinels:
    """Tests for the placeholder value table."""

    def test_every_field_has_sentinels(self):
        assert set(SENTINEL_VALUES) == set(TRACKED_FIELDS)

    @pytest.mark.parametrize("tracked", TRACKED_FIELDS)
    def test_uncategorized_marker_everywhere(self, tracked):
        assert is_sentinel(tracked, "uncategorized")

    @pytest.mark.parametrize(
        "tracked,value",
        [
            (TrackedField.CATEGORY, "未分类"),
            (TrackedField.CATEGORY, "其他"),
            (TrackedField.ACCOUNT, "未知"),
            (TrackedField.ACCOUNT, "默认账户"),
            (TrackedField.DESCRIPTION, "未识别"),
            (TrackedField.NOTES, "无"),
            (TrackedField.DATE, "1970-01-01"),
        ],
    )
    def test_field_specific_sentinels(self, tracked, value):
        assert is_sentinel(tracked, value)

    def test_sentinel_match_ignores_case_and_whitespace(self):
        assert is_sentinel(TrackedField.CATEGORY, "  Uncategorized ")

    def test_field_specific_sentinel_not_shared(self):
        """An account placeholder is a real value for description."""
        assert not is_sentinel(TrackedField.DESCRIPTION, "默认账户")

    def test_real_value_is_not_sentinel(self):
        assert not is_sentinel(TrackedField.CATEGORY, "餐饮")
        assert not is_sentinel(TrackedField.CATEGORY, None)

    @pytest.mark.parametrize("value", [None, "", "   ", "\t\n"])
    def test_empty_values(self, value):
        assert is_empty_value(value)

    def test_non_empty_value(self):
        assert not is_empty_value("0")


class TestFeedbackEvent:
    """Tests for feedback event serialization."""

    def test_recorded_at_defaults_to_now(self):
        event = FeedbackEvent(
            field=TrackedField.AMOUNT,
            original_value="100.0",
            corrected_value=None,
            was_correct=True,
            original_confidence=0.9,
        )

        assert event.recorded_at.endswith("+00:00")

    def test_to_dict(self):
        event = FeedbackEvent(
            field=TrackedField.CATEGORY,
            original_value="餐饮",
            corrected_value="交通",
            was_correct=False,
            original_confidence=0.6,
            recorded_at="2025-01-27T12:00:00+00:00",
        )

        assert event.to_dict() == {
            "field": "category",
            "original_value": "餐饮",
            "corrected_value": "交通",
            "was_correct": False,
            "original_confidence": 0.6,
            "recorded_at": "2025-01-27T12:00:00+00:00",
        }

    def test_from_dict_validates_field(self):
        with pytest.raises(UnknownFieldError):
            FeedbackEvent.from_dict(
                {
                    "field": "merchant",
                    "original_value": "x",
                    "was_correct": True,
                    "original_confidence": 0.5,
                }
            )

    def test_events_are_immutable(self):
        event = FeedbackEvent(
            field=TrackedField.NOTES,
            original_value="无",
            corrected_value=None,
            was_correct=True,
            original_confidence=0.3,
        )

        with pytest.raises(AttributeError):
            event.was_correct = False  # type: ignore[misc]
