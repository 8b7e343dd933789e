"""Tests for the recognition scoring service."""

import pytest

from smart_bookkeeping.confidence import ConfidenceVector, ScoringEngine
from smart_bookkeeping.config import EMPTY_VALUE_FLOOR
from smart_bookkeeping.errors import UnknownFieldError
from smart_bookkeeping.schemas import TrackedField
from smart_bookkeeping.services import RecognitionScorer, extract_field_values, values_match


class TestExtractFieldValues:
    """Tests for payload → field mapping."""

    def test_full_payload(self, sample_payload):
        values = extract_field_values(sample_payload)

        assert values == {
            TrackedField.AMOUNT: "35.5",
            TrackedField.CATEGORY: "餐饮",
            TrackedField.ACCOUNT: "支付宝",
            TrackedField.DESCRIPTION: "午餐",
            TrackedField.DATE: "2025-01-27 12:30",
            TrackedField.NOTES: "同事聚餐",
        }

    def test_missing_and_extra_keys(self, partial_payload):
        values = extract_field_values(partial_payload)

        assert values[TrackedField.AMOUNT] == "12.0"
        assert values[TrackedField.ACCOUNT] == ""
        assert values[TrackedField.DESCRIPTION] is None
        assert "image_id" not in {f.value for f in values}


class TestValuesMatch:
    @pytest.mark.parametrize(
        "original,final,expected",
        [
            ("35.5", "35.50", True),
            ("35.5", "35.505", True),
            ("35.5", "36", False),
            ("35.5", None, False),
            ("abc", "abc", True),
        ],
    )
    def test_amount_comparison(self, original, final, expected):
        assert values_match(TrackedField.AMOUNT, original, final) is expected

    def test_text_comparison_trims(self):
        assert values_match(TrackedField.CATEGORY, "餐饮 ", "餐饮")
        assert not values_match(TrackedField.CATEGORY, "餐饮", "交通")


class TestRecognitionScorer:
    """Tests for scoring and review feedback."""

    @pytest.fixture
    def scorer(self, engine):
        return RecognitionScorer(engine)

    def test_score_full_payload(self, scorer, sample_payload):
        vector = scorer.score_response(sample_payload)

        assert vector == ConfidenceVector.defaults()

    def test_score_partial_payload(self, scorer, partial_payload):
        vector = scorer.score_response(partial_payload)

        assert vector.amount == 0.9
        assert vector.category < 0.4
        assert vector.account == EMPTY_VALUE_FLOOR
        # Not returned by the recognizer at all
        assert vector.description == EMPTY_VALUE_FLOOR
        assert vector.low_confidence_count() == 5

    def test_record_review_all_accepted(self, scorer, engine, sample_payload):
        corrected = {
            "amount": 35.5,
            "category": "餐饮",
            "account": "支付宝",
            "description": "午餐",
            "date": "2025-01-27 12:30",
            "notes": "同事聚餐",
        }

        verdicts = scorer.record_review(sample_payload, corrected)

        assert all(verdicts.values())
        assert len(verdicts) == 6
        assert engine.accuracy_rate("amount") == 1.0

    def test_record_review_with_corrections(self, scorer, engine, sample_payload):
        corrected = {
            TrackedField.AMOUNT: "36.00",
            TrackedField.CATEGORY: "餐饮",
            TrackedField.ACCOUNT: "微信支付",
            TrackedField.DESCRIPTION: "午餐",
            TrackedField.DATE: "2025-01-27 12:30",
        }

        verdicts = scorer.record_review(sample_payload, corrected)

        assert verdicts[TrackedField.AMOUNT] is False
        assert verdicts[TrackedField.CATEGORY] is True
        assert verdicts[TrackedField.ACCOUNT] is False
        # Notes were cleared by the user
        assert verdicts[TrackedField.NOTES] is False

        (account_event,) = engine.history("account")
        assert account_event.original_value == "支付宝"
        assert account_event.corrected_value == "微信支付"
        assert account_event.original_confidence == 0.6

        (category_event,) = engine.history("category")
        assert category_event.corrected_value is None

    def test_record_review_skips_unrecognized_fields(self, scorer, engine, partial_payload):
        verdicts = scorer.record_review(partial_payload, {"amount": 12, "category": "交通"})

        assert set(verdicts) == {TrackedField.AMOUNT, TrackedField.CATEGORY}
        assert engine.event_count("account") == 0
        assert engine.event_count("description") == 0

    def test_record_review_uses_shown_confidence(self, scorer, engine, sample_payload):
        shown = scorer.score_response(sample_payload)
        shown = ConfidenceVector.build({**shown.to_dict(), "amount": 0.42})

        scorer.record_review(sample_payload, {"amount": 35.5}, shown=shown)

        assert engine.history("amount")[0].original_confidence == 0.42

    def test_feedback_shifts_next_score(self, scorer, sample_payload):
        scorer.record_review(sample_payload, {"category": "交通"})

        vector = scorer.score_response(sample_payload)

        assert vector.category == pytest.approx(0.3)
        assert vector.amount == pytest.approx(0.45)

    def test_record_review_unknown_corrected_key(self, scorer, sample_payload):
        with pytest.raises(UnknownFieldError):
            scorer.record_review(sample_payload, {"merchant": "SPAR"})


class CountingStore:
    """In-memory repository counting whole-ledger writes."""

    def __init__(self):
        self.events = []
        self.saves = 0

    def load_events(self):
        return list(self.events)

    def replace_events(self, events):
        self.events = list(events)
        self.saves += 1


class TestRecordReviewPersistence:
    def test_review_written_once(self, sample_payload):
        store = CountingStore()
        scorer = RecognitionScorer(ScoringEngine(store=store))

        verdicts = scorer.record_review(sample_payload, {"amount": 35.5, "category": "交通"})

        assert len(verdicts) == 6
        assert store.saves == 1
        assert len(store.events) == 6

    def test_nothing_recognized_writes_nothing(self):
        store = CountingStore()
        scorer = RecognitionScorer(ScoringEngine(store=store))

        assert scorer.record_review({"amount": ""}, {"amount": 5}) == {}
        assert store.saves == 0
