"""
Unit tests for query latency tracking.
"""

import pytest

from monitoring.latency_metrics import LatencyCollector, QueryLatency, get_latency_collector


class TestLatencyCollector:
    """Test suite for rolling percentiles."""

    def test_empty_window(self, latency_collector):
        empty = {"p50": 0.0, "p95": 0.0, "p99": 0.0, "mean": 0.0, "min": 0.0, "max": 0.0}

        assert latency_collector.get_percentiles() == empty
        assert latency_collector.get_percentiles("llm") == empty
        assert latency_collector.get_summary() == {"total": empty, "components": {}}

    def test_empty_and_filled_windows_share_keys(self, latency_collector):
        empty_keys = set(latency_collector.get_percentiles())
        latency_collector.record(QueryLatency(total_ms=12.0))

        assert set(latency_collector.get_percentiles()) == empty_keys

    def test_percentiles(self, latency_collector):
        for ms in range(1, 101):
            latency_collector.record(QueryLatency(total_ms=float(ms), llm_ms=float(ms) / 2))

        total = latency_collector.get_percentiles()
        llm = latency_collector.get_percentiles("llm")

        assert total["p50"] == 51.0
        assert total["p99"] == 100.0
        assert total["min"] == 1.0
        assert total["mean"] == pytest.approx(50.5)
        assert llm["max"] == 50.0

    def test_summary_lists_only_recorded_stages(self, latency_collector):
        latency_collector.record(QueryLatency(total_ms=10.0, embedding_ms=2.0))

        summary = latency_collector.get_summary()

        assert set(summary["components"]) == {"embedding"}

    def test_window_is_bounded(self):
        collector = LatencyCollector(window_size=3)
        for ms in [100.0, 1.0, 2.0, 3.0]:
            collector.record(QueryLatency(total_ms=ms))

        assert collector.get_percentiles()["max"] == 3.0

    def test_reset(self, latency_collector):
        latency_collector.record(QueryLatency(total_ms=5.0, llm_ms=4.0))

        latency_collector.reset()

        assert latency_collector.get_percentiles()["p50"] == 0.0
        assert latency_collector.get_summary()["components"] == {}

    def test_global_collector(self):
        assert get_latency_collector() is get_latency_collector()
