"""
Document-diversity reranking for retrieved candidates.

Pure top-k similarity retrieval tends to return many passages from
the single most relevant talk. Capping per-document representation
before the final truncation spreads context across sources while
still preferring the highest-scoring material overall.

Only document identity is used as the diversity key; no marginal
relevance or embedding distance is computed.
"""

import logging
import math
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from shared.config import RAGConfig

logger = logging.getLogger(__name__)


@dataclass
class Candidate:
    """A scored chunk returned by a similarity query."""

    document_id: Optional[str]
    score: float
    payload: Dict[str, Any] = field(default_factory=dict)
    chunk_id: Optional[str] = None

    @property
    def text(self) -> str:
        return self.payload.get("chunk_text") or ""


def coerce_score(value: Any) -> float:
    """Return a finite float score, treating missing or malformed values as 0."""
    if isinstance(value, bool):
        return 0.0
    try:
        score = float(value)
    except (TypeError, ValueError):
        return 0.0
    return score if math.isfinite(score) else 0.0


def _document_key(candidate: Candidate) -> Optional[str]:
    doc_id = candidate.document_id
    if isinstance(doc_id, bool) or doc_id is None:
        return None
    if isinstance(doc_id, (int, str)):
        key = str(doc_id).strip()
        return key or None
    return None


def diversify(
    candidates: List[Candidate],
    retrieval_fanout: int,
    max_per_document: int,
    final_size: int,
) -> List[Candidate]:
    """
    Select a bounded, document-balanced context set.

    Args:
        candidates: Candidates ranked by descending similarity, already
            limited to ``retrieval_fanout`` by the upstream query
        retrieval_fanout: Number of candidates requested upstream
        max_per_document: Maximum entries sharing one document id
        final_size: Maximum size of the returned set

    Returns:
        At most ``final_size`` candidates, sorted by descending score with
        ties kept in retrieval order
    """
    if not candidates:
        return []

    if len(candidates) > retrieval_fanout:
        logger.debug(
            f"Received {len(candidates)} candidates for a fan-out of {retrieval_fanout}"
        )

    # Group by document, remembering original retrieval position
    groups: "OrderedDict[str, List[tuple]]" = OrderedDict()
    dropped = 0
    for position, candidate in enumerate(candidates):
        key = _document_key(candidate)
        if key is None:
            dropped += 1
            continue
        groups.setdefault(key, []).append(
            (coerce_score(candidate.score), position, candidate)
        )

    if dropped:
        logger.debug(f"Dropped {dropped} candidates without a document id")

    retained = []
    for entries in groups.values():
        entries.sort(key=lambda e: (-e[0], e[1]))
        retained.extend(entries[:max_per_document])

    retained.sort(key=lambda e: (-e[0], e[1]))
    selected = [candidate for _, _, candidate in retained[:final_size]]

    logger.debug(
        f"Diversified {len(candidates)} candidates from {len(groups)} documents "
        f"down to {len(selected)}"
    )
    return selected


class DiversityReranker:
    """
    Diversity reranker bound to one configuration.

    Usage:
        reranker = DiversityReranker(config)
        context_set = reranker.rerank(candidates)
    """

    def __init__(self, config: Optional[RAGConfig] = None):
        self.config = config or RAGConfig()

    def rerank(self, candidates: List[Candidate]) -> List[Candidate]:
        """Apply the configured per-document cap and final context size."""
        return diversify(
            candidates,
            retrieval_fanout=self.config.retrieval_fanout,
            max_per_document=self.config.max_chunks_per_document,
            final_size=self.config.final_context_size,
        )
