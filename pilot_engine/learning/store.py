"""
Learning Store: append-only log of decisions and their real-world outcomes.

Behavioral Contract:
- Records are immutable once appended
- Capacity-bounded; on overflow the oldest plain success (successful outcome,
  no user feedback) is evicted first, otherwise the oldest record
- Aggregates insights for the whole system and per-user views
"""

import threading
from collections import Counter
from typing import Dict, List, Optional

from pilot_engine.models.learning import LearningRecord
from pilot_engine.utils.logging import get_logger

log = get_logger(__name__)


class LearningStore:
    """In-memory outcome/feedback store indexed by user id."""

    def __init__(self, capacity: int = 10_000):
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self.capacity = capacity
        self._records: List[LearningRecord] = []
        self._by_user: Dict[str, List[LearningRecord]] = {}
        self._lock = threading.Lock()

    # --- Recording ---

    def record(self, record: LearningRecord) -> LearningRecord:
        """Append a record, evicting one if the store is over capacity."""
        # Nested models are not frozen, so records cross this boundary only as copies
        stored = record.model_copy(deep=True)
        with self._lock:
            self._records.append(stored)
            self._by_user.setdefault(stored.user_id, []).append(stored)
            evicted = self._evict_if_needed()
        if evicted is not None:
            log.debug("learning_record_evicted", request_id=evicted.request_id)
        return stored.model_copy(deep=True)

    def _evict_if_needed(self) -> Optional[LearningRecord]:
        if len(self._records) <= self.capacity:
            return None
        victim_index = next(
            (i for i, r in enumerate(self._records) if r.is_plain_success),
            0,
        )
        victim = self._records.pop(victim_index)
        user_records = self._by_user[victim.user_id]
        user_records.remove(victim)
        if not user_records:
            del self._by_user[victim.user_id]
        return victim

    # --- Queries ---

    def get_user_records(self, user_id: str) -> List[LearningRecord]:
        with self._lock:
            records = list(self._by_user.get(user_id, ()))
        return [r.model_copy(deep=True) for r in records]

    def get_all_records(self) -> List[LearningRecord]:
        return [r.model_copy(deep=True) for r in self._snapshot()]

    def _snapshot(self) -> List[LearningRecord]:
        """Stored records themselves, for read-only aggregation inside the store."""
        with self._lock:
            return list(self._records)

    def get_insights(self) -> dict:
        """System-wide aggregates over every retained record."""
        records = self._snapshot()
        return {
            "total_sessions": len(records),
            "avg_confidence": self._average_confidence(records),
            "success_rate": self._success_rate(records),
            "top_failure_reasons": self._top_failure_reasons(records),
            "user_feedback_stats": self._feedback_stats(records),
        }

    def clear(self) -> None:
        with self._lock:
            self._records.clear()
            self._by_user.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    # --- Aggregation helpers ---

    @staticmethod
    def _average_confidence(records: List[LearningRecord]) -> float:
        if not records:
            return 0.0
        return sum(r.decision.confidence for r in records) / len(records)

    @staticmethod
    def _success_rate(records: List[LearningRecord]) -> float:
        """Fraction (0..1) of records whose outcome succeeded."""
        if not records:
            return 0.0
        return sum(1 for r in records if r.actual_outcome.success) / len(records)

    @staticmethod
    def _top_failure_reasons(records: List[LearningRecord], limit: int = 5) -> Dict[str, int]:
        counts: Counter = Counter()
        for r in records:
            if not r.actual_outcome.success:
                counts.update(r.actual_outcome.errors)
        return dict(counts.most_common(limit))

    @staticmethod
    def _feedback_stats(records: List[LearningRecord]) -> Optional[dict]:
        feedback = [r.user_feedback for r in records if r.user_feedback is not None]
        if not feedback:
            return None
        correctness = Counter(f.correctness.value for f in feedback)
        helpfulness = Counter(f.helpfulness.value for f in feedback)
        return {
            "total_feedbacks": len(feedback),
            "avg_rating": sum(f.rating for f in feedback) / len(feedback),
            "correctness": dict(correctness),
            "helpfulness": dict(helpfulness),
        }
