"""
Shared pytest fixtures for the whole suite.

Provides: small chunking config, latency collector, diverse candidate
set, circuit breaker reset between tests
"""

from typing import List

import pytest

from deployment.circuit_breaker import reset_breakers
from helpers import make_candidate
from monitoring.latency_metrics import LatencyCollector
from reranking.diversity_reranker import Candidate
from shared.config import RAGConfig


@pytest.fixture(autouse=True)
def fresh_breakers():
    """Global circuit breakers must not leak state between tests."""
    reset_breakers()
    yield
    reset_breakers()


@pytest.fixture
def small_config() -> RAGConfig:
    """200-char chunks with a 60-char overlap."""
    return RAGConfig(
        chunk_size_tokens=50,
        overlap_ratio=0.3,
        chars_per_token=4,
        retrieval_fanout=30,
        max_chunks_per_document=2,
        final_context_size=10,
    )


@pytest.fixture
def latency_collector() -> LatencyCollector:
    return LatencyCollector(window_size=50)


@pytest.fixture
def diverse_candidates() -> List[Candidate]:
    """30 candidates from 5 talks (6 each), globally sorted by score."""
    return [make_candidate(f"talk-{rank % 5}", round(1.0 - rank * 0.01, 2)) for rank in range(30)]
