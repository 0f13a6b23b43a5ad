"""
Test builders and in-memory fakes shared across test modules.

Provides: transcript text builders, candidate builder, fake embedding
provider, fake vector index, fake completion client
"""

from typing import Dict, List, Optional, Set

from embeddings.embedder import EmbeddingProvider
from reranking.diversity_reranker import Candidate
from retrieval.vector_index import VectorRecord
from shared.config import EmbeddingConfig
from shared.errors import ProviderError, VectorIndexError


def make_sentences(count: int, start: int = 0) -> List[str]:
    """Distinct 43-character sentences without terminal punctuation."""
    return [f"Sentence {i:04d} is about curiosity and wonder" for i in range(start, start + count)]


def make_paragraph(count: int, start: int = 0) -> str:
    """A paragraph of ``count`` sentences joined by '. ' and ending with '.'."""
    return ". ".join(make_sentences(count, start)) + "."


def make_candidate(document_id, score, text: str = "passage", **payload) -> Candidate:
    body = {"document_id": document_id, "chunk_text": text, "title": f"Talk {document_id}"}
    body.update(payload)
    return Candidate(document_id=document_id, score=score, payload=body)


class FakeEmbedder(EmbeddingProvider):
    """Deterministic embedder that can be told to fail on specific texts."""

    def __init__(self, fail_on: Optional[Set[str]] = None, fail_all: bool = False):
        super().__init__(EmbeddingConfig(dimension=3))
        self.fail_on = fail_on or set()
        self.fail_all = fail_all
        self.calls: List[str] = []

    def embed(self, text: str) -> List[float]:
        self.calls.append(text)
        if self.fail_all or text in self.fail_on:
            raise ProviderError("quota exceeded")
        return [float(len(text)), 1.0, 0.0]


class FakeIndex:
    """In-memory stand-in for VectorIndex."""

    def __init__(
        self,
        candidates: Optional[List[Candidate]] = None,
        fail_query: bool = False,
        fail_upsert_for: Optional[Set[str]] = None,
        fail_count: bool = False,
    ):
        self.records: Dict[str, VectorRecord] = {}
        self.candidates = candidates or []
        self.fail_query = fail_query
        self.fail_upsert_for = fail_upsert_for or set()
        self.fail_count = fail_count
        self.queries: List[dict] = []

    def upsert(self, records: List[VectorRecord]) -> None:
        for record in records:
            if record.payload.get("document_id") in self.fail_upsert_for:
                raise VectorIndexError("index unavailable")
        for record in records:
            self.records[record.id] = record

    def query(self, vector, top_k, include_metadata=True) -> List[Candidate]:
        self.queries.append({"vector": vector, "top_k": top_k, "include_metadata": include_metadata})
        if self.fail_query:
            raise VectorIndexError("index unavailable")
        return list(self.candidates[:top_k])

    def count(self) -> int:
        if self.fail_count:
            raise VectorIndexError("index unavailable")
        return len(self.records)


class FakeLLM:
    """Completion client that records prompts."""

    def __init__(self, answer: str = "Grounded answer.", fail: bool = False):
        self.answer = answer
        self.fail = fail
        self.calls: List[tuple] = []

    def complete(self, system_prompt: str, user_prompt: str) -> str:
        self.calls.append((system_prompt, user_prompt))
        if self.fail:
            raise ProviderError("completion timed out")
        return self.answer

