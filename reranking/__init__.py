"""
Reranking Module.

Diversity reranking turns a similarity-ranked candidate list into
a bounded context set balanced across source documents.

Key points:
- Over-fetch from the index (fan-out), then narrow
- Cap the number of passages any single document contributes
- Keep the final set sorted by similarity

Usage:
    from reranking import DiversityReranker

    reranker = DiversityReranker(config)
    context_set = reranker.rerank(candidates)
"""

from .diversity_reranker import Candidate, DiversityReranker, coerce_score, diversify

__all__ = [
    "Candidate",
    "DiversityReranker",
    "coerce_score",
    "diversify",
]
