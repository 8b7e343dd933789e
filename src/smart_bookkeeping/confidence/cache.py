"""
In-process cache of suggested confidences.

Entries are keyed by (field, value) and expire after a TTL. The owning
engine invalidates a field whenever new feedback changes its history.
"""

import logging
import threading
import time
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

from ..schemas.fields import TrackedField, parse_field

if TYPE_CHECKING:
    from .engine import ScoringEngine

logger = logging.getLogger(__name__)

# Frequent recognizer outputs, used to warm the cache at startup
COMMON_VALUES: Mapping[str, list[str]] = {
    "category": [
        "餐饮", "交通", "购物", "娱乐", "医疗", "教育", "住房", "通讯",
        "工资", "奖金", "投资收益", "其他收入", "未分类",
    ],
    "account": ["现金", "支付宝", "微信支付", "银行卡", "信用卡", "未知"],
    "description": [
        "午餐", "晚餐", "早餐", "打车", "地铁", "购物", "电影", "医药费",
        "房租", "水电费", "话费", "网费", "工资", "奖金",
    ],
}


@dataclass
class CacheStatistics:
    """Point-in-time cache counters."""

    size: int
    hits: int
    misses: int
    hit_rate: float
    expired_entries: int

    def describe(self) -> str:
        return (
            f"size={self.size} hits={self.hits} misses={self.misses} "
            f"hit_rate={self.hit_rate:.2%} expired={self.expired_entries}"
        )


@dataclass
class _CacheEntry:
    confidence: float
    stored_at: float
    hit_count: int = 0


class ConfidenceCache:
    """
    TTL + size bounded cache.

    On overflow, expired entries are dropped first, then the least-hit ones.
    Thread-safe.
    """

    def __init__(
        self,
        max_size: int = 1000,
        ttl_seconds: float = 3600.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.max_size = max_size
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: dict[tuple[TrackedField, str], _CacheEntry] = {}
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0

    @staticmethod
    def _key(field_id: TrackedField, value: Optional[str]) -> tuple[TrackedField, str]:
        return (field_id, (value or "").strip())

    def _is_expired(self, entry: _CacheEntry, now: float) -> bool:
        return now - entry.stored_at > self.ttl_seconds

    def get(self, field_id: TrackedField, value: Optional[str]) -> Optional[float]:
        """Cached confidence, or None on miss/expiry."""
        key = self._key(field_id, value)
        with self._lock:
            entry = self._entries.get(key)
            if entry is None or self._is_expired(entry, self._clock()):
                self._misses += 1
                return None
            entry.hit_count += 1
            self._hits += 1
            return entry.confidence

    def put(self, field_id: TrackedField, value: Optional[str], confidence: float) -> None:
        """Store a confidence."""
        key = self._key(field_id, value)
        with self._lock:
            self._entries[key] = _CacheEntry(confidence=confidence, stored_at=self._clock())
            if len(self._entries) > self.max_size:
                self._evict()

    def get_or_compute(
        self,
        field_id: TrackedField,
        value: Optional[str],
        compute: Callable[[], float],
    ) -> float:
        """Return the cached confidence or compute and store it."""
        cached = self.get(field_id, value)
        if cached is not None:
            return cached
        confidence = compute()
        self.put(field_id, value, confidence)
        return confidence

    def invalidate(self, field_id: TrackedField) -> None:
        """Drop every entry for one field."""
        with self._lock:
            self._entries = {k: v for k, v in self._entries.items() if k[0] != field_id}

    def clear(self) -> None:
        """Drop all entries and reset counters."""
        with self._lock:
            self._entries.clear()
            self._hits = 0
            self._misses = 0

    def statistics(self) -> CacheStatistics:
        with self._lock:
            total = self._hits + self._misses
            now = self._clock()
            return CacheStatistics(
                size=len(self._entries),
                hits=self._hits,
                misses=self._misses,
                hit_rate=self._hits / total if total else 0.0,
                expired_entries=sum(
                    1 for entry in self._entries.values() if self._is_expired(entry, now)
                ),
            )

    def warmup(
        self,
        engine: "ScoringEngine",
        common_values: Mapping[str, list[str]] = COMMON_VALUES,
    ) -> int:
        """
        Precompute suggestions for frequent values.

        Returns:
            Number of entries computed
        """
        # The engine already stores into its own cache
        attached = engine.cache is self
        count = 0
        for name, values in common_values.items():
            tracked = parse_field(name)
            for value in values:
                confidence = engine.suggest_confidence(tracked, value)
                if not attached:
                    self.put(tracked, value, confidence)
                count += 1
        logger.debug("Confidence cache warmed up with %d entries", count)
        return count

    def _evict(self) -> None:
        """Shrink to max_size. Caller holds the lock."""
        now = self._clock()
        self._entries = {
            k: v for k, v in self._entries.items() if not self._is_expired(v, now)
        }
        overflow = len(self._entries) - self.max_size
        if overflow > 0:
            least_used = sorted(self._entries.items(), key=lambda kv: kv[1].hit_count)
            for key, _ in least_used[:overflow]:
                del self._entries[key]
        logger.debug("Confidence cache cleaned up, current size: %d", len(self._entries))
