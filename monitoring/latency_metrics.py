"""
Latency metrics for the query path.

Tracks:
- P50, P95, P99 latencies over a rolling window
- Per-stage latencies (embedding, retrieval, reranking, llm)
"""

import threading
from collections import deque
from dataclasses import dataclass
from typing import Dict, Optional

STAGES = ("embedding", "retrieval", "reranking", "llm")
PERCENTILE_KEYS = ("p50", "p95", "p99", "mean", "min", "max")


@dataclass
class QueryLatency:
    """Latency breakdown for a single answered question."""

    total_ms: float
    embedding_ms: Optional[float] = None
    retrieval_ms: Optional[float] = None
    reranking_ms: Optional[float] = None
    llm_ms: Optional[float] = None


class LatencyCollector:
    """
    Collect and analyze latency metrics.

    Maintains rolling windows for percentile calculations. Safe to share
    between request handlers.
    """

    def __init__(self, window_size: int = 1000):
        """
        Args:
            window_size: Number of recent requests to keep for percentiles
        """
        self.window_size = window_size
        self._lock = threading.Lock()
        self._totals: deque = deque(maxlen=window_size)
        self._stages: Dict[str, deque] = {s: deque(maxlen=window_size) for s in STAGES}

    def record(self, latency: QueryLatency) -> None:
        """Record a latency measurement."""
        with self._lock:
            self._totals.append(latency.total_ms)
            for stage in STAGES:
                value = getattr(latency, f"{stage}_ms")
                if value is not None:
                    self._stages[stage].append(value)

    def get_percentiles(self, stage: Optional[str] = None) -> Dict[str, float]:
        """
        Get latency percentiles.

        Args:
            stage: Stage name, or None for total latency

        Returns:
            Dict with p50, p95, p99, mean, min, max (all 0.0 for an empty window)
        """
        with self._lock:
            values = list(self._stages.get(stage, [])) if stage else list(self._totals)

        if not values:
            return dict.fromkeys(PERCENTILE_KEYS, 0.0)

        sorted_values = sorted(values)
        n = len(sorted_values)

        return {
            "p50": sorted_values[int(n * 0.50)],
            "p95": sorted_values[min(int(n * 0.95), n - 1)],
            "p99": sorted_values[min(int(n * 0.99), n - 1)],
            "mean": sum(sorted_values) / n,
            "min": sorted_values[0],
            "max": sorted_values[-1],
        }

    def get_summary(self) -> Dict:
        """Get latency summary across total and per-stage windows."""
        return {
            "total": self.get_percentiles(),
            "components": {
                stage: self.get_percentiles(stage)
                for stage in STAGES
                if self._stages[stage]
            },
        }

    def reset(self) -> None:
        with self._lock:
            self._totals.clear()
            for window in self._stages.values():
                window.clear()


# Global latency collector
_latency_collector: Optional[LatencyCollector] = None
_latency_collector_lock = threading.Lock()


def get_latency_collector() -> LatencyCollector:
    """Get global latency collector."""
    global _latency_collector
    with _latency_collector_lock:
        if _latency_collector is None:
            _latency_collector = LatencyCollector()
    return _latency_collector
