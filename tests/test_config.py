"""
Unit tests for configuration loading and validation.
"""

import dataclasses

import pytest

from shared.config import EmbeddingConfig, RAGConfig, Settings, get_settings
from shared.errors import ConfigurationError


class TestRAGConfig:
    """Test suite for the shared chunking/retrieval parameters."""

    def test_defaults(self):
        config = RAGConfig()

        assert config.chunk_size_tokens == 512
        assert config.overlap_ratio == 0.2
        assert config.retrieval_fanout == 30
        assert config.max_chunks_per_document == 2
        assert config.final_context_size == 10
        assert config.chunk_size_chars == 2048
        assert config.overlap_chars == 409

    def test_is_immutable(self):
        config = RAGConfig()

        with pytest.raises(dataclasses.FrozenInstanceError):
            config.chunk_size_tokens = 1024

    @pytest.mark.parametrize(
        "overrides",
        [
            {"chunk_size_tokens": 0},
            {"chars_per_token": 0},
            {"overlap_ratio": 0.0},
            {"overlap_ratio": 1.0},
            {"overlap_ratio": 1.5},
            {"overlap_ratio": 0.001, "chunk_size_tokens": 10},
            {"retrieval_fanout": 0},
            {"max_chunks_per_document": 0},
            {"final_context_size": -1},
        ],
    )
    def test_rejects_invalid_values(self, overrides):
        with pytest.raises(ConfigurationError):
            RAGConfig(**overrides)

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("CHUNK_SIZE_TOKENS", "2048")
        monkeypatch.setenv("OVERLAP_RATIO", "0.3")
        monkeypatch.setenv("TOP_K_RETRIEVAL", "50")
        monkeypatch.setenv("MAX_CHUNKS_PER_DOCUMENT", "3")
        monkeypatch.setenv("TOP_K_CONTEXT", "8")

        config = RAGConfig.from_env()

        assert config.chunk_size_chars == 8192
        assert config.overlap_chars == 2457
        assert config.retrieval_fanout == 50
        assert config.max_chunks_per_document == 3
        assert config.final_context_size == 8

    def test_from_env_rejects_bad_overlap(self, monkeypatch):
        monkeypatch.setenv("OVERLAP_RATIO", "1.2")

        with pytest.raises(ConfigurationError):
            RAGConfig.from_env()


class TestSettings:
    """Test suite for environment-backed settings."""

    def test_reads_environment(self, monkeypatch):
        monkeypatch.setenv("INDEX_NAME", "talks")
        monkeypatch.setenv("EMBEDDING_MODEL", "sentence-transformers/all-MiniLM-L6-v2")
        monkeypatch.setenv("EMBEDDING_BACKEND", "LOCAL")
        monkeypatch.setenv("EMBEDDING_DIMENSION", "384")
        monkeypatch.setenv("CHAT_MODEL", "gpt-4o-mini")

        settings = Settings()

        assert settings.embedding.backend == "local"
        assert settings.embedding.dimension == 384
        assert settings.llm.model == "gpt-4o-mini"
        assert settings.get_collection_name() == "talks_sentence-transformers_all-MiniLM-L6-v2"

    def test_collection_name_is_bounded(self):
        settings = Settings(INDEX_NAME="x" * 80, embedding=EmbeddingConfig())

        assert len(settings.get_collection_name()) == 63

    def test_get_settings_is_cached(self):
        assert get_settings() is get_settings()
