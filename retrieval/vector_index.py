"""
Vector index using ChromaDB.

Supports:
- HNSW index with cosine space
- Idempotent upserts keyed by ``{document_id}_{chunk_index}``
- Queries returning score-ranked Candidates for the reranker
"""

import logging
import math
import threading
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import chromadb
from chromadb.config import Settings as ChromaSettings

from reranking.diversity_reranker import Candidate
from shared.errors import VectorIndexError

logger = logging.getLogger(__name__)

# Chroma accepts only these metadata value types
_SCALAR_TYPES = (str, int, float, bool)


@dataclass
class VectorRecord:
    """One embedded chunk ready for upsert."""

    id: str
    vector: List[float]
    payload: Dict[str, Any] = field(default_factory=dict)


def sanitize_payload(payload: Dict[str, Any]) -> Dict[str, Any]:
    """Drop None values and stringify anything Chroma cannot store."""
    clean = {}
    for key, value in payload.items():
        if value is None:
            continue
        clean[key] = value if isinstance(value, _SCALAR_TYPES) else str(value)
    return clean


def _distance_to_score(distance: Any) -> float:
    if isinstance(distance, bool) or not isinstance(distance, (int, float)):
        return 0.0
    if not math.isfinite(distance):
        return 0.0
    return 1.0 - float(distance)


class VectorIndex:
    """
    Vector index wrapper with Chroma backend.

    Usage:
        index = VectorIndex(path="./data/chroma", collection_name="ted-talks")
        index.upsert(records)
        candidates = index.query(vector, top_k=30)
    """

    def __init__(
        self,
        path: str = None,
        collection_name: str = None,
        host: str = None,
        port: int = None,
        collection=None,
    ):
        """
        Args:
            path: Local storage path
            collection_name: Collection name
            host: Remote Chroma host (optional)
            port: Remote Chroma port
            collection: Pre-built collection object (skips client creation)
        """
        self.path = path or "./data/chroma"
        self.collection_name = collection_name or "ted-talks"
        self.host = host
        self.port = port or 8000

        self._client: Optional[chromadb.ClientAPI] = None
        self._collection = collection

    @property
    def client(self) -> chromadb.ClientAPI:
        """Get or create Chroma client."""
        if self._client is None:
            if self.host:
                self._client = chromadb.HttpClient(host=self.host, port=self.port)
            else:
                self._client = chromadb.PersistentClient(
                    path=self.path,
                    settings=ChromaSettings(anonymized_telemetry=False),
                )
        return self._client

    @property
    def collection(self):
        """Get or create collection."""
        if self._collection is None:
            self._collection = self.client.get_or_create_collection(
                name=self.collection_name,
                metadata={"hnsw:space": "cosine"},
            )
        return self._collection

    def upsert(self, records: List[VectorRecord]) -> None:
        """
        Insert or overwrite records by id.

        Raises:
            VectorIndexError: If the backend rejects the batch
        """
        if not records:
            return

        payloads = [sanitize_payload(r.payload) for r in records]
        try:
            self.collection.upsert(
                ids=[r.id for r in records],
                embeddings=[list(r.vector) for r in records],
                metadatas=payloads,
                documents=[p.get("chunk_text", "") for p in payloads],
            )
        except Exception as e:
            raise VectorIndexError(f"Upsert of {len(records)} records failed: {e}") from e

        logger.debug(f"Upserted {len(records)} records into {self.collection_name}")

    def query(
        self,
        vector: List[float],
        top_k: int,
        include_metadata: bool = True,
    ) -> List[Candidate]:
        """
        Query the index for the nearest chunks.

        Args:
            vector: Query embedding
            top_k: Number of matches to request (the retrieval fan-out)
            include_metadata: Attach stored payloads to candidates

        Returns:
            Candidates ordered by descending similarity

        Raises:
            VectorIndexError: If the query fails
        """
        include = ["distances", "metadatas"] if include_metadata else ["distances"]
        try:
            results = self.collection.query(
                query_embeddings=[list(vector)],
                n_results=top_k,
                include=include,
            )
        except Exception as e:
            raise VectorIndexError(f"Query failed: {e}") from e

        ids = (results.get("ids") or [[]])[0]
        if not ids:
            return []

        distances = (results.get("distances") or [[]])[0]
        metadatas = (results.get("metadatas") or [[]])[0] if include_metadata else []

        candidates = []
        for i, match_id in enumerate(ids):
            payload = dict(metadatas[i] or {}) if i < len(metadatas) else {}
            distance = distances[i] if i < len(distances) else None
            # Cosine space: distance = 1 - cosine similarity.
            # A missing or malformed distance ranks as 0, never as a perfect match.
            score = _distance_to_score(distance)

            candidates.append(
                Candidate(
                    document_id=payload.get("document_id"),
                    score=score,
                    payload=payload,
                    chunk_id=match_id,
                )
            )

        candidates.sort(key=lambda c: c.score, reverse=True)
        return candidates

    def count(self) -> int:
        """Get record count."""
        try:
            return self.collection.count()
        except Exception as e:
            raise VectorIndexError(f"Count failed: {e}") from e


# Global index instance
_vector_index: Optional[VectorIndex] = None
_vector_index_lock = threading.Lock()


def get_vector_index(settings=None) -> VectorIndex:
    """Get or create the global vector index from settings."""
    global _vector_index
    with _vector_index_lock:
        if _vector_index is None:
            from shared.config import get_settings

            settings = settings or get_settings()
            _vector_index = VectorIndex(
                path=settings.CHROMA_PATH,
                collection_name=settings.get_collection_name(),
                host=settings.CHROMA_HOST,
                port=settings.CHROMA_PORT,
            )
    return _vector_index
