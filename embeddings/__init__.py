"""
Embedding Module.

Treats the embedding model as an opaque ``embed(text) -> vector``.

Backends:
- OpenAI-compatible API (default)
- Local sentence-transformers model
- Placeholder vectors for dry runs

Usage:
    from embeddings import get_embedding_provider

    provider = get_embedding_provider(settings)
    vector = provider.embed(chunk.text)
"""

from .embedder import (
    EmbeddingProvider,
    LocalEmbeddingProvider,
    OpenAIEmbeddingProvider,
    PlaceholderEmbeddingProvider,
    get_embedding_provider,
)

__all__ = [
    "EmbeddingProvider",
    "OpenAIEmbeddingProvider",
    "LocalEmbeddingProvider",
    "PlaceholderEmbeddingProvider",
    "get_embedding_provider",
]
