"""
Semantic chunking with boundary-aware packing and overlap.

Chunking determines what the retriever can find.

Strategy:
- Decompose text into paragraph/sentence units (lossless)
- Greedily pack units up to a character budget
- Seed every new chunk with trailing units of the previous one
- Fall back to fixed-stride slicing for a unit larger than the budget

Sizes are configured in tokens and converted with a fixed
characters-per-token ratio; no tokenizer is invoked.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional

from shared.config import RAGConfig
from shared.errors import ConfigurationError

from .sentence_splitter import split_into_units

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Chunk:
    """A passage of one document, the atomic retrieval item."""

    document_id: str
    index: int
    text: str

    @property
    def chunk_id(self) -> str:
        """Stable identity; re-ingesting unchanged input overwrites the same ids."""
        return f"{self.document_id}_{self.index}"

    @property
    def char_count(self) -> int:
        return len(self.text)


def validate_window(chunk_size_chars: int, overlap_chars: int) -> None:
    """
    Reject chunk windows that violate ``0 < overlap < chunk size``.

    Raises:
        ConfigurationError: If the window is invalid
    """
    if chunk_size_chars <= 0:
        raise ConfigurationError(
            f"chunk_size_chars must be positive, got {chunk_size_chars}"
        )
    if not 0 < overlap_chars < chunk_size_chars:
        raise ConfigurationError(
            f"overlap_chars must satisfy 0 < overlap < {chunk_size_chars}, "
            f"got {overlap_chars}"
        )


def fixed_stride_split(
    text: str,
    chunk_size_chars: int,
    overlap_chars: int,
) -> List[str]:
    """
    Split text into fixed-size overlapping slices (not boundary-aware).

    Use only for units that exceed the chunk budget on their own.

    Args:
        text: Text to split
        chunk_size_chars: Slice length
        overlap_chars: Characters shared by consecutive slices

    Returns:
        List of slices covering the text
    """
    validate_window(chunk_size_chars, overlap_chars)

    chunks = []
    stride = chunk_size_chars - overlap_chars
    start = 0

    while start < len(text):
        end = min(start + chunk_size_chars, len(text))
        chunks.append(text[start:end])

        if end == len(text):
            break

        start += stride

    return chunks


def _overlap_seed(units: List[str], overlap_chars: int, room: int) -> List[str]:
    """
    Collect trailing units of a flushed chunk to start the next one.

    Walks backwards and stops before the seed would exceed either the
    overlap budget or the room left beside the unit that triggered the flush.
    """
    seed: List[str] = []
    seed_len = 0

    for unit in reversed(units):
        if seed_len + len(unit) > min(overlap_chars, room):
            break
        seed.insert(0, unit)
        seed_len += len(unit)

    return seed


def smart_chunk(
    text: str,
    chunk_size_chars: int,
    overlap_chars: int,
) -> List[str]:
    """
    Split text into overlapping chunks along paragraph and sentence boundaries.

    Args:
        text: Document text
        chunk_size_chars: Maximum characters per chunk
        overlap_chars: Target overlap between consecutive chunks

    Returns:
        Chunk strings in document order

    Raises:
        ConfigurationError: If ``0 < overlap_chars < chunk_size_chars`` does not hold
    """
    validate_window(chunk_size_chars, overlap_chars)

    if not text:
        return []
    if len(text) <= chunk_size_chars:
        return [text]

    units = split_into_units(text)

    chunks: List[str] = []
    current: List[str] = []
    current_len = 0
    # Leading units of `current` that were already emitted in a previous chunk
    seeded = 0

    for unit in units:
        if current_len + len(unit) <= chunk_size_chars:
            current.append(unit)
            current_len += len(unit)
            continue

        if len(current) > seeded:
            chunks.append("".join(current))

        if len(unit) > chunk_size_chars:
            # Oversized unit: slice it directly. Its first slice starts at the
            # unit boundary, so the seed built so far is dropped; the tail of
            # the last slice seeds whatever follows.
            slices = fixed_stride_split(unit, chunk_size_chars, overlap_chars)
            chunks.extend(slices)
            logger.debug(
                f"Unit of {len(unit)} chars exceeds budget {chunk_size_chars}; "
                f"split into {len(slices)} fixed-stride slices"
            )

            tail = unit[-overlap_chars:]
            current = [tail]
            current_len = len(tail)
            seeded = 1
            continue

        seed = _overlap_seed(current, overlap_chars, chunk_size_chars - len(unit))
        current = seed + [unit]
        current_len = sum(len(u) for u in current)
        seeded = len(seed)

    if len(current) > seeded:
        chunks.append("".join(current))

    return chunks


def chunk_document(
    text: str,
    doc_id: str,
    config: Optional[RAGConfig] = None,
) -> List[Chunk]:
    """
    Chunk a document and attach its identity to each passage.

    Args:
        text: Document text
        doc_id: Document identifier
        config: Chunking parameters (defaults to RAGConfig())

    Returns:
        List of Chunk objects, indexed from 0 in document order

    Example:
        >>> chunks = chunk_document(transcript, "1234")
        >>> chunks[0].chunk_id
        '1234_0'
    """
    config = config or RAGConfig()

    texts = smart_chunk(text, config.chunk_size_chars, config.overlap_chars)
    chunks = [Chunk(document_id=doc_id, index=i, text=t) for i, t in enumerate(texts)]

    logger.info(f"Document {doc_id} chunked into {len(chunks)} chunks")
    return chunks


class SemanticChunker:
    """
    Boundary-aware chunker bound to one configuration.

    Usage:
        chunker = SemanticChunker(RAGConfig(chunk_size_tokens=2048, overlap_ratio=0.3))
        passages = chunker.chunk(document_text)
    """

    def __init__(self, config: Optional[RAGConfig] = None):
        self.config = config or RAGConfig()
        validate_window(self.config.chunk_size_chars, self.config.overlap_chars)

    @property
    def chunk_size_chars(self) -> int:
        return self.config.chunk_size_chars

    @property
    def overlap_chars(self) -> int:
        return self.config.overlap_chars

    def chunk(self, text: str) -> List[str]:
        """Chunk raw text into passage strings."""
        return smart_chunk(text, self.chunk_size_chars, self.overlap_chars)

    def chunk_document(self, text: str, doc_id: str) -> List[Chunk]:
        """Chunk a document into identified passages."""
        return chunk_document(text, doc_id, self.config)
