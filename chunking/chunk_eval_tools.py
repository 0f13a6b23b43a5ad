"""
Chunk quality evaluation tools.

Helps tune chunking parameters by measuring:
- Size distribution against the character budget
- Overlap actually shared by consecutive chunks
"""

import logging
from dataclasses import dataclass, field
from typing import List

import numpy as np

logger = logging.getLogger(__name__)


@dataclass
class ChunkQualityReport:
    """Report on chunk quality metrics."""

    total_chunks: int
    avg_chars: float
    min_chars: int
    max_chars: int
    std_chars: float
    chunks_over_budget: int  # Only oversized-unit slices can exceed it
    avg_overlap_chars: float
    recommendations: List[str] = field(default_factory=list)


def measure_overlap(previous: str, following: str) -> int:
    """
    Length of the longest suffix of ``previous`` that prefixes ``following``.

    Args:
        previous: Earlier chunk text
        following: Next chunk text

    Returns:
        Number of shared characters (0 if none)
    """
    longest = min(len(previous), len(following))
    for size in range(longest, 0, -1):
        if previous.endswith(following[:size]):
            return size
    return 0


def evaluate_chunk_quality(
    chunks: List[str],
    chunk_size_chars: int,
    overlap_chars: int,
) -> ChunkQualityReport:
    """
    Evaluate chunking output for one document.

    Args:
        chunks: Chunk texts in document order
        chunk_size_chars: Configured chunk budget
        overlap_chars: Configured overlap target

    Returns:
        ChunkQualityReport with metrics and recommendations
    """
    if not chunks:
        return ChunkQualityReport(
            total_chunks=0,
            avg_chars=0.0,
            min_chars=0,
            max_chars=0,
            std_chars=0.0,
            chunks_over_budget=0,
            avg_overlap_chars=0.0,
            recommendations=["No chunks produced"],
        )

    sizes = np.array([len(c) for c in chunks])
    overlaps = [measure_overlap(a, b) for a, b in zip(chunks, chunks[1:])]
    over_budget = int(np.sum(sizes > chunk_size_chars))
    avg_overlap = float(np.mean(overlaps)) if overlaps else 0.0

    recommendations = []
    if over_budget:
        recommendations.append(
            f"{over_budget} chunks exceed the {chunk_size_chars}-char budget; "
            "source text has long unpunctuated spans"
        )
    if overlaps and avg_overlap < overlap_chars * 0.5:
        recommendations.append(
            f"Average overlap {avg_overlap:.0f} chars is well under the "
            f"{overlap_chars}-char target; units are coarse relative to the overlap"
        )
    if len(chunks) > 1 and float(np.mean(sizes)) < chunk_size_chars * 0.5:
        recommendations.append(
            "Chunks average under half the budget; consider a smaller chunk size"
        )

    return ChunkQualityReport(
        total_chunks=len(chunks),
        avg_chars=float(np.mean(sizes)),
        min_chars=int(np.min(sizes)),
        max_chars=int(np.max(sizes)),
        std_chars=float(np.std(sizes)),
        chunks_over_budget=over_budget,
        avg_overlap_chars=avg_overlap,
        recommendations=recommendations,
    )
