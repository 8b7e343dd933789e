"""Test fixtures and utilities."""

from pathlib import Path

import pytest

from smart_bookkeeping.confidence import ScoringEngine
from smart_bookkeeping.state_store import FeedbackStore

# Sample recognizer payload for a lunch receipt
SAMPLE_RECOGNITION_PAYLOAD = {
    "amount": 35.5,
    "category": "餐饮",
    "payment_method": "支付宝",
    "item_description": "午餐",
    "transaction_time": "2025-01-27 12:30",
    "notes": "同事聚餐",
}

# Payload where the recognizer gave up on most fields
SAMPLE_PARTIAL_PAYLOAD = {
    "amount": 12.0,
    "category": "未分类",
    "payment_method": "",
    "image_id": "abc123",
}


@pytest.fixture
def sample_payload() -> dict:
    """Complete recognizer payload."""
    return dict(SAMPLE_RECOGNITION_PAYLOAD)


@pytest.fixture
def partial_payload() -> dict:
    """Recognizer payload with empty and placeholder values."""
    return dict(SAMPLE_PARTIAL_PAYLOAD)


@pytest.fixture
def engine() -> ScoringEngine:
    """In-memory engine with empty history."""
    return ScoringEngine()


@pytest.fixture
def temp_db(tmp_path) -> Path:
    """Temporary database path for testing."""
    return tmp_path / "test_state.db"


@pytest.fixture
def store(temp_db) -> FeedbackStore:
    """Fresh feedback store."""
    return FeedbackStore(temp_db)
