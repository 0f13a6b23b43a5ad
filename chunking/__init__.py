"""
Semantic Chunking Module.

Chunking determines what the retriever can find.
This module splits transcripts into overlapping passages:
- Paragraph and sentence boundary units (lossless)
- Greedy packing under a character budget
- Whole-unit overlap between consecutive chunks
- Fixed-stride fallback for oversized units

Usage:
    from chunking import SemanticChunker

    chunker = SemanticChunker(config)
    chunks = chunker.chunk_document(text, doc_id="1234")
"""

from .chunk_eval_tools import ChunkQualityReport, evaluate_chunk_quality, measure_overlap
from .semantic_chunker import (
    Chunk,
    SemanticChunker,
    chunk_document,
    fixed_stride_split,
    smart_chunk,
    validate_window,
)
from .sentence_splitter import split_into_units, split_paragraphs, split_sentences

__all__ = [
    "SemanticChunker",
    "Chunk",
    "smart_chunk",
    "chunk_document",
    "fixed_stride_split",
    "validate_window",
    "split_into_units",
    "split_paragraphs",
    "split_sentences",
    "evaluate_chunk_quality",
    "measure_overlap",
    "ChunkQualityReport",
]
