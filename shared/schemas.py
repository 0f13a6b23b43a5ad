"""
Pydantic schemas for API request/response models.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class PromptRequest(BaseModel):
    """Request model for the question-answering endpoint."""

    question: Optional[str] = Field(
        default=None, description="The user's question about the talk corpus"
    )


class ContextEntry(BaseModel):
    """A retrieved passage handed to the completion step."""

    talk_id: Optional[str] = None
    title: Optional[str] = None
    chunk: Optional[str] = None
    score: float
    author: Optional[str] = None
    description: Optional[str] = None
    topics: Optional[Any] = None
    views: Optional[Any] = None
    published_date: Optional[str] = None
    url: Optional[str] = None


class AugmentedPrompt(BaseModel):
    """The exact prompts sent to the completion model."""

    System: str
    User: str


class PromptResponse(BaseModel):
    """Response model for the question-answering endpoint."""

    response: str
    context: List[ContextEntry]
    Augmented_prompt: AugmentedPrompt


class ErrorResponse(BaseModel):
    """Error payload for failed requests."""

    error: str
    details: Optional[str] = None


class StatsResponse(BaseModel):
    """Chunking and retrieval parameters currently in effect."""

    chunk_size: int
    overlap_ratio: float
    top_k: int


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str
    vector_store_connected: bool
    document_count: int


class MetricsResponse(BaseModel):
    """Latency summary."""

    total: Dict[str, float]
    components: Dict[str, Dict[str, float]] = Field(default_factory=dict)
