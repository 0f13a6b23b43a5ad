"""
FastAPI application for the talk transcript assistant.

Endpoints:
- POST /api/prompt: grounded answer with its context and prompts
- GET /api/stats: chunking and retrieval parameters
- GET /health: index connectivity
- GET /metrics: query latency percentiles
"""

import logging
import time
import uuid
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from generation.answer_pipeline import AnswerPipeline, get_answer_pipeline
from monitoring.latency_metrics import get_latency_collector
from retrieval.vector_index import VectorIndex, get_vector_index
from shared.config import RAGConfig, get_settings
from shared.errors import AnswerUnavailableError, VectorIndexError
from shared.schemas import (
    AugmentedPrompt,
    ContextEntry,
    ErrorResponse,
    HealthResponse,
    MetricsResponse,
    PromptRequest,
    PromptResponse,
    StatsResponse,
)

logging.basicConfig(
    level=get_settings().LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

__version__ = "1.0.0"


def get_rag_config() -> RAGConfig:
    return get_settings().rag


def get_pipeline() -> AnswerPipeline:
    return get_answer_pipeline()


def get_index() -> VectorIndex:
    return get_vector_index()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    logger.info(f"Starting transcript RAG service v{__version__}")

    try:
        count = get_vector_index().count()
        logger.info(f"Connected to vector index. Record count: {count}")
    except VectorIndexError as e:
        logger.warning(f"Vector index connection failed: {e}")

    yield

    logger.info("Shutting down transcript RAG service")


app = FastAPI(
    title="Transcript RAG",
    description="Question answering grounded in talk transcripts",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def add_request_id(request: Request, call_next):
    """Add request ID for tracing."""
    request_id = str(uuid.uuid4())[:8]
    request.state.request_id = request_id

    start_time = time.time()
    response = await call_next(request)

    duration_ms = (time.time() - start_time) * 1000
    logger.info(
        f"[{request_id}] {request.method} {request.url.path} "
        f"- {response.status_code} - {duration_ms:.1f}ms"
    )

    response.headers["X-Request-ID"] = request_id
    return response


@app.exception_handler(AnswerUnavailableError)
async def answer_unavailable_handler(request: Request, exc: AnswerUnavailableError):
    """Tell the user we could not answer instead of answering without context."""
    request_id = getattr(request.state, "request_id", "unknown")
    logger.warning(f"[{request_id}] Could not answer: {exc}")
    return JSONResponse(
        status_code=503,
        content={"error": "Could not answer the question", "details": str(exc)},
    )


@app.post(
    "/api/prompt",
    response_model=PromptResponse,
    responses={400: {"model": ErrorResponse}, 503: {"model": ErrorResponse}},
)
def prompt_endpoint(
    body: PromptRequest,
    pipeline: AnswerPipeline = Depends(get_pipeline),
):
    """
    Answer a question from the talk corpus.

    Flow:
    1. Embed question
    2. Retrieve with fan-out
    3. Diversify across talks
    4. Assemble context
    5. Generate answer
    """
    if not body.question or not body.question.strip():
        return JSONResponse(status_code=400, content={"error": "Missing question"})

    result = pipeline.answer(body.question)

    return PromptResponse(
        response=result.response,
        context=[ContextEntry(**entry) for entry in result.context],
        Augmented_prompt=AugmentedPrompt(
            System=result.system_prompt,
            User=result.user_prompt,
        ),
    )


@app.get("/api/stats", response_model=StatsResponse)
def stats_endpoint(config: RAGConfig = Depends(get_rag_config)):
    """Report the parameters in effect; top_k is the final context size."""
    return StatsResponse(
        chunk_size=config.chunk_size_tokens,
        overlap_ratio=config.overlap_ratio,
        top_k=config.final_context_size,
    )


@app.get("/health", response_model=HealthResponse)
def health_check(index: VectorIndex = Depends(get_index)):
    """Health check endpoint."""
    try:
        count = index.count()
        connected = True
    except VectorIndexError as e:
        logger.warning(f"Health check could not reach the index: {e}")
        count = 0
        connected = False

    return HealthResponse(
        status="healthy" if connected else "degraded",
        version=__version__,
        vector_store_connected=connected,
        document_count=count,
    )


@app.get("/metrics", response_model=MetricsResponse)
def metrics_endpoint():
    """Get query latency percentiles."""
    return get_latency_collector().get_summary()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
