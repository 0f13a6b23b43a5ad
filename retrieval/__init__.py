"""
Retrieval Module.

Retrieval is the optical lens for your LLM.

This module wraps the vector index:
- Idempotent upserts keyed by document id + chunk index
- Cosine similarity queries returning scored Candidates
- Metadata payloads carried through to context assembly

Usage:
    from retrieval import VectorIndex

    index = VectorIndex(path="./data/chroma", collection_name="ted-talks")
    candidates = index.query(query_vector, top_k=30)
"""

from .vector_index import VectorIndex, VectorRecord, get_vector_index, sanitize_payload

__all__ = [
    "VectorIndex",
    "VectorRecord",
    "get_vector_index",
    "sanitize_payload",
]
