"""
Document Ingestion Module.

This module handles the batch ingestion of talk transcripts:
- CSV loading into immutable Documents
- Parallel semantic chunking
- Per-chunk embedding with local failure handling
- Idempotent upserts into the vector index

Usage:
    from ingestion import IngestionPipeline, load_documents

    pipeline = IngestionPipeline(config, embedder, index)
    stats = pipeline.run(load_documents("ted_talks_en.csv", limit=10))
"""

from .ingest_pipeline import (
    Document,
    DocumentResult,
    IngestionOptions,
    IngestionPipeline,
    IngestionStats,
    load_documents,
    run_ingestion,
)

__all__ = [
    "Document",
    "DocumentResult",
    "IngestionOptions",
    "IngestionPipeline",
    "IngestionStats",
    "load_documents",
    "run_ingestion",
]
