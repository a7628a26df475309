"""
Performance Monitor: rolling latency and success metrics.

Threshold breaches are logged as warnings only. They never alter results.
"""

import statistics
import threading
from collections import deque
from typing import Deque, Dict, Optional

from pilot_engine.models.config import PerformanceThresholds
from pilot_engine.utils.logging import get_logger

log = get_logger(__name__)


class PerformanceMonitor:

    def __init__(self, thresholds: Optional[PerformanceThresholds] = None):
        self.thresholds = thresholds or PerformanceThresholds()
        self._lock = threading.Lock()
        self._init_state()

    def _init_state(self) -> None:
        self._total = 0
        self._succeeded = 0
        self._failed = 0
        self._peak = 0.0
        self._recent: Deque[float] = deque(maxlen=self.thresholds.history_size)
        self._by_type: Dict[str, Deque[float]] = {}
        self._count_by_type: Dict[str, int] = {}

    def record_analysis(self, analysis_type: str, elapsed_ms: float, success: bool) -> None:
        """Record one completed analysis attempt."""
        with self._lock:
            self._total += 1
            if success:
                self._succeeded += 1
            else:
                self._failed += 1

            self._recent.append(elapsed_ms)
            self._peak = max(self._peak, elapsed_ms)

            times = self._by_type.setdefault(
                analysis_type, deque(maxlen=self.thresholds.type_history_size)
            )
            times.append(elapsed_ms)
            self._count_by_type[analysis_type] = self._count_by_type.get(analysis_type, 0) + 1

            type_average = sum(times) / len(times)
            total = self._total
            success_rate = self._success_rate_locked()

        self._check_thresholds(analysis_type, elapsed_ms, type_average, total, success_rate)

    def get_metrics(self) -> dict:
        with self._lock:
            average = sum(self._recent) / len(self._recent) if self._recent else 0.0
            return {
                "total_analyses": self._total,
                "successful_analyses": self._succeeded,
                "failed_analyses": self._failed,
                "average_processing_time": average,
                "peak_processing_time": self._peak,
                "success_rate": self._success_rate_locked(),
                "analyses_by_type": dict(self._count_by_type),
            }

    def get_type_metrics(self, analysis_type: str) -> Optional[dict]:
        with self._lock:
            times = list(self._by_type.get(analysis_type, ()))
            count = self._count_by_type.get(analysis_type, 0)
        if not times:
            return None
        return {
            "total_analyses": count,
            "average_processing_time": sum(times) / len(times),
            "min_processing_time": min(times),
            "max_processing_time": max(times),
            "median_processing_time": statistics.median(times),
        }

    def get_success_rate(self) -> float:
        """Success rate in percent; 0 before any analysis."""
        with self._lock:
            return self._success_rate_locked()

    def get_performance_report(self) -> str:
        metrics = self.get_metrics()
        lines = [
            "=== Decision Engine Performance Report ===",
            f"Total Analyses: {metrics['total_analyses']}",
            f"Success Rate: {metrics['success_rate']:.2f}%",
            f"Average Processing Time: {metrics['average_processing_time']:.2f}ms",
            f"Peak Processing Time: {metrics['peak_processing_time']:.2f}ms",
            "",
            "Analysis by Type:",
        ]
        for analysis_type, count in sorted(metrics["analyses_by_type"].items()):
            type_metrics = self.get_type_metrics(analysis_type)
            average = type_metrics["average_processing_time"] if type_metrics else 0.0
            lines.append(f"  {analysis_type}: {count} analyses, avg {average:.2f}ms")
        return "\n".join(lines)

    def reset(self) -> None:
        with self._lock:
            self._init_state()

    def _success_rate_locked(self) -> float:
        if self._total == 0:
            return 0.0
        return self._succeeded / self._total * 100

    def _check_thresholds(
        self,
        analysis_type: str,
        elapsed_ms: float,
        type_average: float,
        total: int,
        success_rate: float,
    ) -> None:
        t = self.thresholds
        if elapsed_ms > t.slow_analysis_ms:
            log.warning("slow_analysis", analysis_type=analysis_type, elapsed_ms=round(elapsed_ms, 2))
        if type_average > t.slow_type_average_ms:
            log.warning(
                "analysis_type_consistently_slow",
                analysis_type=analysis_type,
                average_ms=round(type_average, 2),
            )
        if total >= t.min_sample_size and success_rate < t.min_success_rate:
            log.warning("low_success_rate", success_rate=round(success_rate, 2), samples=total)
