"""
Configuration module for the transcript RAG service.
Manages environment variables and the tunable retrieval parameters.

RAGConfig is the single set of knobs read by both the chunker and the
diversity reranker. It is immutable and passed explicitly; nothing
mutates it after construction.
"""

import os
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Optional

from .errors import ConfigurationError


@dataclass(frozen=True)
class RAGConfig:
    """Chunking and retrieval configuration shared by ingestion and serving."""

    chunk_size_tokens: int = 512
    overlap_ratio: float = 0.2
    chars_per_token: int = 4
    retrieval_fanout: int = 30  # TOP_K_RETRIEVAL
    max_chunks_per_document: int = 2
    final_context_size: int = 10  # TOP_K_CONTEXT

    def __post_init__(self):
        if self.chunk_size_tokens <= 0:
            raise ConfigurationError(
                f"chunk_size_tokens must be positive, got {self.chunk_size_tokens}"
            )
        if self.chars_per_token <= 0:
            raise ConfigurationError(
                f"chars_per_token must be positive, got {self.chars_per_token}"
            )
        if not 0 < self.overlap_ratio < 1:
            raise ConfigurationError(
                f"overlap_ratio must be in (0, 1), got {self.overlap_ratio}"
            )
        if self.overlap_chars <= 0:
            raise ConfigurationError(
                f"overlap_ratio {self.overlap_ratio} yields no overlap for "
                f"a {self.chunk_size_chars}-char chunk"
            )
        if self.retrieval_fanout <= 0:
            raise ConfigurationError(
                f"retrieval_fanout must be positive, got {self.retrieval_fanout}"
            )
        if self.max_chunks_per_document <= 0:
            raise ConfigurationError(
                "max_chunks_per_document must be positive, "
                f"got {self.max_chunks_per_document}"
            )
        if self.final_context_size <= 0:
            raise ConfigurationError(
                f"final_context_size must be positive, got {self.final_context_size}"
            )

    @property
    def chunk_size_chars(self) -> int:
        """Chunk budget in characters (tokens approximated by a fixed ratio)."""
        return self.chunk_size_tokens * self.chars_per_token

    @property
    def overlap_chars(self) -> int:
        return int(self.chunk_size_chars * self.overlap_ratio)

    @classmethod
    def from_env(cls) -> "RAGConfig":
        """Build a config from environment variables, falling back to defaults."""
        return cls(
            chunk_size_tokens=int(os.getenv("CHUNK_SIZE_TOKENS", "512")),
            overlap_ratio=float(os.getenv("OVERLAP_RATIO", "0.2")),
            chars_per_token=int(os.getenv("CHARS_PER_TOKEN", "4")),
            retrieval_fanout=int(os.getenv("TOP_K_RETRIEVAL", "30")),
            max_chunks_per_document=int(os.getenv("MAX_CHUNKS_PER_DOCUMENT", "2")),
            final_context_size=int(os.getenv("TOP_K_CONTEXT", "10")),
        )


@dataclass(frozen=True)
class EmbeddingConfig:
    """Embedding model configuration - version this with your index."""

    model_name: str = "text-embedding-3-small"
    backend: str = "openai"  # openai | local
    dimension: int = 1536  # Matches text-embedding-3-small
    normalize: bool = True


@dataclass(frozen=True)
class LLMConfig:
    """Completion model configuration."""

    model: str = "gpt-4.1-mini"
    temperature: Optional[float] = None
    timeout: int = 30


@dataclass
class Settings:
    """Main application settings loaded from environment."""

    # OpenAI-compatible provider
    OPENAI_API_KEY: str = field(default_factory=lambda: os.getenv("OPENAI_API_KEY", ""))
    OPENAI_BASE_URL: Optional[str] = field(
        default_factory=lambda: os.getenv("OPENAI_BASE_URL")
    )

    # Chroma settings
    CHROMA_PATH: str = field(default_factory=lambda: os.getenv("CHROMA_PATH", "./data/chroma"))
    CHROMA_HOST: Optional[str] = field(default_factory=lambda: os.getenv("CHROMA_HOST"))
    CHROMA_PORT: int = field(default_factory=lambda: int(os.getenv("CHROMA_PORT", "8000")))
    INDEX_NAME: str = field(default_factory=lambda: os.getenv("INDEX_NAME", "ted-talks"))

    # Application settings
    LOG_LEVEL: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))

    # Nested configs
    rag: RAGConfig = field(default_factory=RAGConfig.from_env)
    embedding: EmbeddingConfig = field(
        default_factory=lambda: EmbeddingConfig(
            model_name=os.getenv("EMBEDDING_MODEL", "text-embedding-3-small"),
            backend=os.getenv("EMBEDDING_BACKEND", "openai").lower(),
            dimension=int(os.getenv("EMBEDDING_DIMENSION", "1536")),
        )
    )
    llm: LLMConfig = field(
        default_factory=lambda: LLMConfig(model=os.getenv("CHAT_MODEL", "gpt-4.1-mini"))
    )

    def get_collection_name(self) -> str:
        """Chroma collection names may not contain '/' and must be 3-63 chars."""
        model_slug = self.embedding.model_name.replace("/", "_")
        return f"{self.INDEX_NAME}_{model_slug}"[:63]


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
