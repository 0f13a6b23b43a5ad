"""
Exception hierarchy shared across ingestion and serving.
"""


class RAGError(Exception):
    """Base class for all errors raised by this service."""


class ConfigurationError(RAGError, ValueError):
    """Raised when configuration values violate a parameter contract."""


class ProviderError(RAGError):
    """Raised when an embedding or completion provider call fails."""


class VectorIndexError(RAGError):
    """Raised when an upsert or query against the vector index fails."""


class AnswerUnavailableError(RAGError):
    """
    Raised when a question cannot be answered from retrieved context.

    Surfaced to callers instead of an empty context set, so the
    completion step never runs without grounding.
    """
