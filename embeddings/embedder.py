"""
Embedding providers.

CRITICAL: Never mix vectors from different models in the same index.
The collection name carries the model slug (see Settings.get_collection_name).

Every provider exposes ``embed(text) -> List[float]`` and raises
ProviderError on failure; callers decide whether to skip or abort.
"""

import logging
from typing import List, Optional

import numpy as np

from deployment.circuit_breaker import CircuitBreaker, CircuitOpenError, get_embedding_breaker
from shared.config import EmbeddingConfig, Settings, get_settings
from shared.errors import ConfigurationError, ProviderError

logger = logging.getLogger(__name__)

PLACEHOLDER_VALUE = 0.1


class EmbeddingProvider:
    """Interface for text embedding backends."""

    def __init__(self, config: Optional[EmbeddingConfig] = None):
        self.config = config or EmbeddingConfig()

    @property
    def dimension(self) -> int:
        return self.config.dimension

    def embed(self, text: str) -> List[float]:
        raise NotImplementedError


class OpenAIEmbeddingProvider(EmbeddingProvider):
    """
    Embeddings via an OpenAI-compatible API.

    Usage:
        provider = OpenAIEmbeddingProvider(api_key=key, base_url=url)
        vector = provider.embed("What makes a good leader?")
    """

    def __init__(
        self,
        config: Optional[EmbeddingConfig] = None,
        api_key: str = None,
        base_url: str = None,
        breaker: Optional[CircuitBreaker] = None,
    ):
        super().__init__(config)
        self.api_key = api_key
        self.base_url = base_url
        self.breaker = breaker or get_embedding_breaker()
        self._client = None

    @property
    def client(self):
        """Lazy load OpenAI client."""
        if self._client is None:
            from openai import OpenAI

            self._client = OpenAI(api_key=self.api_key, base_url=self.base_url)
        return self._client

    def embed(self, text: str) -> List[float]:
        try:
            response = self.breaker.call(
                self.client.embeddings.create,
                model=self.config.model_name,
                input=text,
            )
        except CircuitOpenError as e:
            raise ProviderError(f"Embedding provider unavailable: {e}") from e
        except Exception as e:
            raise ProviderError(f"Embedding request failed: {e}") from e

        return list(response.data[0].embedding)


class LocalEmbeddingProvider(EmbeddingProvider):
    """
    Embeddings from a local sentence-transformers model.

    Useful for offline development; the model name must match the one
    used to build the index.
    """

    def __init__(self, config: Optional[EmbeddingConfig] = None):
        super().__init__(config)
        self._model = None

    @property
    def model(self):
        """Lazy load the model."""
        if self._model is None:
            from sentence_transformers import SentenceTransformer

            logger.info(f"Loading embedding model: {self.config.model_name}")
            self._model = SentenceTransformer(self.config.model_name)
        return self._model

    def embed(self, text: str) -> List[float]:
        try:
            vector = self.model.encode([text], convert_to_numpy=True)[0]
        except Exception as e:
            raise ProviderError(f"Local embedding failed: {e}") from e

        # Normalize to unit length for cosine similarity
        if self.config.normalize:
            vector = vector / (np.linalg.norm(vector) + 1e-10)

        return vector.astype(float).tolist()


class PlaceholderEmbeddingProvider(EmbeddingProvider):
    """Constant vector for dry runs; never calls a provider."""

    def embed(self, text: str) -> List[float]:
        return np.full(self.dimension, PLACEHOLDER_VALUE).tolist()


def get_embedding_provider(
    settings: Optional[Settings] = None,
    dry_run: bool = False,
) -> EmbeddingProvider:
    """
    Build the embedding provider selected by EMBEDDING_BACKEND.

    Args:
        settings: Application settings (cached settings if None)
        dry_run: Return the placeholder provider regardless of backend

    Returns:
        EmbeddingProvider instance
    """
    settings = settings or get_settings()
    config = settings.embedding

    if dry_run:
        return PlaceholderEmbeddingProvider(config)
    if config.backend == "openai":
        return OpenAIEmbeddingProvider(
            config,
            api_key=settings.OPENAI_API_KEY,
            base_url=settings.OPENAI_BASE_URL,
        )
    if config.backend == "local":
        return LocalEmbeddingProvider(config)

    raise ConfigurationError(f"Unknown embedding backend: {config.backend}")
