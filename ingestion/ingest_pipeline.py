"""
Batch ingestion pipeline for talk transcripts.

Orchestrates the ingestion workflow:
CSV rows -> Documents -> Chunking -> Embedding -> Index upsert

Failures are local: a chunk that fails to embed is skipped, a document
whose upsert fails is logged, and the run continues with the rest.
Chunk ids are ``{talk_id}_{chunk_index}``, so re-running over unchanged
input overwrites the same records instead of duplicating them.
"""

import csv
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple

from chunking.chunk_eval_tools import evaluate_chunk_quality
from chunking.semantic_chunker import Chunk, SemanticChunker
from embeddings.embedder import EmbeddingProvider
from retrieval.vector_index import VectorIndex, VectorRecord
from shared.config import RAGConfig
from shared.errors import ProviderError, VectorIndexError

logger = logging.getLogger(__name__)

# Transcripts can exceed the csv module's default 128KB field limit
csv.field_size_limit(16 * 1024 * 1024)

OPTIONAL_METADATA_FIELDS = ("description", "topics", "views", "published_date")


@dataclass(frozen=True)
class Document:
    """A talk transcript with its metadata; immutable once loaded."""

    id: str
    text: str
    title: str = ""
    author: str = ""
    url: str = ""
    metadata: Dict[str, str] = field(default_factory=dict)

    def payload_for(self, chunk: Chunk) -> Dict:
        """Metadata stored alongside a chunk's vector."""
        payload = {
            "document_id": self.id,
            "title": self.title,
            "url": self.url,
            "author": self.author,
            "chunk_text": chunk.text,
            "chunk_index": chunk.index,
        }
        payload.update(self.metadata)
        return payload


@dataclass
class IngestionOptions:
    """Run-level guards around the chunker."""

    dry_run: bool = False
    limit: int = 0  # 0 means no limit
    max_chunks: int = 0  # 0 means no limit
    workers: int = 4


@dataclass
class DocumentResult:
    """Outcome of embedding and upserting one document."""

    document_id: str
    chunks: int
    embedded: int
    failed: int
    upserted: int = 0
    upsert_failed: bool = False


@dataclass
class IngestionStats:
    """Statistics from an ingestion run."""

    total_docs: int = 0
    documents_chunked: int = 0
    skipped_empty: int = 0
    total_chunks: int = 0
    embedded_chunks: int = 0
    failed_chunks: int = 0
    upserted_chunks: int = 0
    failed_upserts: int = 0
    truncated_by_max_chunks: int = 0
    oversized_chunks: int = 0

    def add(self, result: DocumentResult) -> None:
        self.embedded_chunks += result.embedded
        self.failed_chunks += result.failed
        self.upserted_chunks += result.upserted
        if result.upsert_failed:
            self.failed_upserts += 1


def load_documents(csv_path: str, limit: int = 0) -> List[Document]:
    """
    Load talks from a transcript CSV.

    Expected columns: talk_id, title, transcript, speaker_1, url, and
    optionally description, topics, views, published_date.

    Args:
        csv_path: Path to the CSV file
        limit: Maximum number of rows to load (0 for all)

    Returns:
        Documents in file order
    """
    path = Path(csv_path)
    documents = []

    with path.open(newline="", encoding="utf-8") as handle:
        for row in csv.DictReader(handle):
            if limit and len(documents) >= limit:
                break

            talk_id = (row.get("talk_id") or "").strip()
            if not talk_id:
                logger.warning(f"Skipping row without talk_id: {row.get('title')!r}")
                continue

            metadata = {
                key: row[key]
                for key in OPTIONAL_METADATA_FIELDS
                if row.get(key)
            }
            documents.append(
                Document(
                    id=talk_id,
                    text=row.get("transcript") or "",
                    title=row.get("title") or "",
                    author=row.get("speaker_1") or "",
                    url=row.get("url") or "",
                    metadata=metadata,
                )
            )

    logger.info(f"Loaded {len(documents)} talks from {path}")
    return documents


class IngestionPipeline:
    """
    Chunk, embed and upsert a batch of documents.

    Flow:
    Documents -> SemanticChunker (parallel) -> max-chunks guard ->
    embed + upsert per document (parallel)

    Usage:
        pipeline = IngestionPipeline(config, embedder, index)
        stats = pipeline.run(load_documents("ted_talks_en.csv"))
    """

    def __init__(
        self,
        config: RAGConfig,
        embedder: EmbeddingProvider,
        index: Optional[VectorIndex] = None,
        options: Optional[IngestionOptions] = None,
    ):
        """
        Args:
            config: Chunking parameters
            embedder: Embedding provider (placeholder provider for dry runs)
            index: Vector index; may be None for dry runs
            options: Run-level guards
        """
        self.options = options or IngestionOptions()
        if index is None and not self.options.dry_run:
            raise ValueError("A vector index is required unless dry_run is set")

        self.config = config
        self.chunker = SemanticChunker(config)
        self.embedder = embedder
        self.index = index

    def _chunk(self, document: Document) -> Tuple[Document, List[Chunk]]:
        return document, self.chunker.chunk_document(document.text, document.id)

    def chunk_documents(
        self, documents: Iterable[Document]
    ) -> List[Tuple[Document, List[Chunk]]]:
        """Chunk documents in parallel, preserving input order."""
        with ThreadPoolExecutor(max_workers=max(1, self.options.workers)) as executor:
            return list(executor.map(self._chunk, documents))

    def apply_chunk_budget(
        self, chunked: List[Tuple[Document, List[Chunk]]]
    ) -> Tuple[List[Tuple[Document, List[Chunk]]], int]:
        """
        Enforce ``max_chunks`` across the run, in document order.

        Returns:
            (kept documents with possibly truncated chunk lists, number of
            documents truncated or dropped)
        """
        if not self.options.max_chunks:
            return chunked, 0

        remaining = self.options.max_chunks
        kept = []
        truncated = 0

        for document, chunks in chunked:
            if remaining <= 0:
                truncated += 1
                continue
            if len(chunks) > remaining:
                chunks = chunks[:remaining]
                truncated += 1
            kept.append((document, chunks))
            remaining -= len(chunks)

        if truncated:
            logger.info(
                f"Reached max_chunks limit ({self.options.max_chunks}); "
                f"{truncated} documents truncated or skipped"
            )
        return kept, truncated

    def ingest_document(self, document: Document, chunks: List[Chunk]) -> DocumentResult:
        """
        Embed every chunk of one document and upsert the successful ones.

        A chunk that fails to embed is logged and skipped; it never
        aborts its siblings.
        """
        records = []
        failed = 0

        for chunk in chunks:
            try:
                vector = self.embedder.embed(chunk.text)
            except ProviderError as e:
                logger.error(f"Error embedding chunk {chunk.chunk_id} of {document.title!r}: {e}")
                failed += 1
                continue

            records.append(
                VectorRecord(
                    id=chunk.chunk_id,
                    vector=vector,
                    payload=document.payload_for(chunk),
                )
            )

        result = DocumentResult(
            document_id=document.id,
            chunks=len(chunks),
            embedded=len(records),
            failed=failed,
        )

        if self.options.dry_run or not records:
            return result

        try:
            self.index.upsert(records)
        except VectorIndexError as e:
            logger.error(f"Error upserting {document.title!r}: {e}")
            result.upsert_failed = True
            return result

        result.upserted = len(records)
        logger.info(f"Upserted {len(records)} vectors for {document.title!r}")
        return result

    def run(self, documents: List[Document]) -> IngestionStats:
        """
        Ingest a batch of documents.

        Args:
            documents: Documents to ingest

        Returns:
            IngestionStats for the run
        """
        stats = IngestionStats(total_docs=len(documents))

        with_text = [d for d in documents if d.text]
        stats.skipped_empty = len(documents) - len(with_text)

        chunked = self.chunk_documents(with_text)
        chunked, stats.truncated_by_max_chunks = self.apply_chunk_budget(chunked)

        for document, chunks in chunked:
            report = evaluate_chunk_quality(
                [c.text for c in chunks],
                self.config.chunk_size_chars,
                self.config.overlap_chars,
            )
            stats.oversized_chunks += report.chunks_over_budget
            logger.info(
                f"Talk {document.title!r}: {len(chunks)} chunks, "
                f"avg {report.avg_chars:.0f} chars, avg overlap {report.avg_overlap_chars:.0f}"
            )
            for recommendation in report.recommendations:
                logger.warning(f"Talk {document.title!r}: {recommendation}")

        stats.documents_chunked = len(chunked)
        stats.total_chunks = sum(len(chunks) for _, chunks in chunked)

        with ThreadPoolExecutor(max_workers=max(1, self.options.workers)) as executor:
            futures = [
                executor.submit(self.ingest_document, document, chunks)
                for document, chunks in chunked
            ]
            for future in futures:
                stats.add(future.result())

        logger.info(
            f"Ingestion complete. Total chunks: {stats.total_chunks}, "
            f"embedded: {stats.embedded_chunks}, failed: {stats.failed_chunks}, "
            f"upserted: {stats.upserted_chunks}"
        )
        return stats


def run_ingestion(
    csv_path: str,
    options: Optional[IngestionOptions] = None,
    settings=None,
) -> Dict:
    """
    Run ingestion from command line.

    Args:
        csv_path: Transcript CSV path
        options: Run-level guards
        settings: Application settings (cached settings if None)

    Returns:
        Summary dict
    """
    from embeddings.embedder import get_embedding_provider
    from retrieval.vector_index import get_vector_index
    from shared.config import get_settings

    settings = settings or get_settings()
    options = options or IngestionOptions()

    documents = load_documents(csv_path, limit=options.limit)
    embedder = get_embedding_provider(settings, dry_run=options.dry_run)
    index = None if options.dry_run else get_vector_index(settings)

    pipeline = IngestionPipeline(settings.rag, embedder, index, options)
    stats = pipeline.run(documents)

    return {
        "dry_run": options.dry_run,
        "chunk_size_chars": settings.rag.chunk_size_chars,
        "overlap_chars": settings.rag.overlap_chars,
        "stats": stats.__dict__,
    }


def main(argv: Optional[List[str]] = None) -> int:
    import argparse
    import json

    from shared.config import get_settings

    parser = argparse.ArgumentParser(description="Ingest talk transcripts into the vector index")
    parser.add_argument("--csv", default="ted_talks_en.csv", help="Transcript CSV file")
    parser.add_argument("--dry-run", action="store_true", help="Skip provider calls and upserts")
    parser.add_argument("--limit", type=int, default=0, help="Maximum talks to load")
    parser.add_argument("--max-chunks", type=int, default=0, help="Maximum chunks to process")
    parser.add_argument("--workers", type=int, default=4, help="Parallel worker threads")

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=get_settings().LOG_LEVEL,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    logger.info(
        f"Starting ingestion... Dry Run: {args.dry_run}, Limit: {args.limit or 'None'}"
    )

    result = run_ingestion(
        args.csv,
        IngestionOptions(
            dry_run=args.dry_run,
            limit=args.limit,
            max_chunks=args.max_chunks,
            workers=args.workers,
        ),
    )

    print(json.dumps(result, indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
