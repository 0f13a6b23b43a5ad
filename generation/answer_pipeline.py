"""
Grounded question answering over the talk index.

Flow:
1. Embed the question
2. Query the index with the retrieval fan-out
3. Diversify down to the final context set
4. Assemble context and prompts
5. Generate the answer

Any provider or index failure becomes AnswerUnavailableError; the
completion step never runs on an empty context.
"""

import logging
import threading
import time
from dataclasses import dataclass
from typing import Dict, List, Optional

from context.context_builder import SYSTEM_PROMPT, assemble_context, build_user_prompt
from embeddings.embedder import EmbeddingProvider, get_embedding_provider
from monitoring.latency_metrics import LatencyCollector, QueryLatency, get_latency_collector
from reranking.diversity_reranker import DiversityReranker
from retrieval.vector_index import VectorIndex, get_vector_index
from shared.config import RAGConfig, Settings, get_settings
from shared.errors import AnswerUnavailableError, ProviderError, VectorIndexError

from .llm_client import LLMClient

logger = logging.getLogger(__name__)


@dataclass
class AnswerResult:
    """Answer plus everything needed to audit how it was grounded."""

    response: str
    context: List[Dict]
    system_prompt: str
    user_prompt: str


def _elapsed_ms(start: float) -> float:
    return (time.time() - start) * 1000


class AnswerPipeline:
    """
    Retrieval-augmented answering with document-diverse context.

    Usage:
        pipeline = AnswerPipeline(config, embedder, index, llm)
        result = pipeline.answer("What do speakers say about sleep?")
    """

    def __init__(
        self,
        config: RAGConfig,
        embedder: EmbeddingProvider,
        index: VectorIndex,
        llm: LLMClient,
        latency_collector: Optional[LatencyCollector] = None,
    ):
        self.config = config
        self.embedder = embedder
        self.index = index
        self.llm = llm
        self.reranker = DiversityReranker(config)
        self.latency_collector = latency_collector or get_latency_collector()

    def answer(self, question: str) -> AnswerResult:
        """
        Answer a question from retrieved transcript passages.

        Raises:
            ValueError: If the question is blank
            AnswerUnavailableError: If retrieval or generation fails, or
                nothing usable was retrieved
        """
        if not question or not question.strip():
            raise ValueError("Question must not be empty")

        start = time.time()

        stage = time.time()
        try:
            query_vector = self.embedder.embed(question)
        except ProviderError as e:
            logger.error(f"Question embedding failed: {e}")
            raise AnswerUnavailableError("The embedding provider failed") from e
        embedding_ms = _elapsed_ms(stage)

        stage = time.time()
        try:
            candidates = self.index.query(
                query_vector,
                top_k=self.config.retrieval_fanout,
                include_metadata=True,
            )
        except VectorIndexError as e:
            logger.error(f"Index query failed: {e}")
            raise AnswerUnavailableError("The vector index query failed") from e
        retrieval_ms = _elapsed_ms(stage)

        stage = time.time()
        context_set = self.reranker.rerank(candidates)
        reranking_ms = _elapsed_ms(stage)

        if not context_set:
            logger.warning(
                f"No usable context for question ({len(candidates)} raw candidates)"
            )
            raise AnswerUnavailableError("No relevant passages were retrieved")

        assembled = assemble_context(context_set, self.config.chars_per_token)
        user_prompt = build_user_prompt(assembled.text, question)

        stage = time.time()
        try:
            response = self.llm.complete(SYSTEM_PROMPT, user_prompt)
        except ProviderError as e:
            logger.error(f"Answer generation failed: {e}")
            raise AnswerUnavailableError("The completion provider failed") from e
        llm_ms = _elapsed_ms(stage)

        self.latency_collector.record(
            QueryLatency(
                total_ms=_elapsed_ms(start),
                embedding_ms=embedding_ms,
                retrieval_ms=retrieval_ms,
                reranking_ms=reranking_ms,
                llm_ms=llm_ms,
            )
        )
        logger.info(
            f"Answered from {assembled.chunks_included} passages "
            f"(~{assembled.approx_tokens} context tokens, "
            f"{len(candidates)} retrieved)"
        )

        return AnswerResult(
            response=response,
            context=assembled.sources,
            system_prompt=SYSTEM_PROMPT,
            user_prompt=user_prompt,
        )


# Global pipeline instance
_pipeline: Optional[AnswerPipeline] = None
_pipeline_lock = threading.Lock()


def get_answer_pipeline(settings: Optional[Settings] = None) -> AnswerPipeline:
    """Get or create the global answer pipeline from settings."""
    global _pipeline
    with _pipeline_lock:
        if _pipeline is None:
            settings = settings or get_settings()
            _pipeline = AnswerPipeline(
                config=settings.rag,
                embedder=get_embedding_provider(settings),
                index=get_vector_index(settings),
                llm=LLMClient(
                    settings.llm,
                    api_key=settings.OPENAI_API_KEY,
                    base_url=settings.OPENAI_BASE_URL,
                ),
            )
    return _pipeline
