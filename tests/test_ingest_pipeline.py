"""
Unit tests for transcript ingestion.

CSV files are written to tmp_path; the embedder and index are in-memory fakes.
"""

import csv
import json
import logging

import pytest

from embeddings.embedder import PlaceholderEmbeddingProvider
from helpers import FakeEmbedder, FakeIndex, make_paragraph
from ingestion.ingest_pipeline import (
    Document,
    IngestionOptions,
    IngestionPipeline,
    load_documents,
    main,
)
from shared.config import EmbeddingConfig

CSV_FIELDS = ["talk_id", "title", "speaker_1", "url", "transcript", "topics", "views"]


def long_transcript(seed: int) -> str:
    return "\n\n".join(make_paragraph(6, start=seed * 100 + i * 6) for i in range(3))


@pytest.fixture
def talks_csv(tmp_path):
    path = tmp_path / "talks.csv"
    rows = [
        {
            "talk_id": "1",
            "title": "Why we sleep",
            "speaker_1": "Jane Doe",
            "url": "https://example.com/talks/1",
            "transcript": long_transcript(1),
            "topics": "['sleep', 'health']",
            "views": "1200",
        },
        {
            "talk_id": "2",
            "title": "The power of curiosity",
            "speaker_1": "Sam Roe",
            "url": "https://example.com/talks/2",
            "transcript": "A short talk.",
            "topics": "",
            "views": "",
        },
        {
            "talk_id": "",
            "title": "Missing id",
            "speaker_1": "Nobody",
            "url": "",
            "transcript": "Ignored.",
            "topics": "",
            "views": "",
        },
        {
            "talk_id": "3",
            "title": "Silent talk",
            "speaker_1": "Mime",
            "url": "https://example.com/talks/3",
            "transcript": "",
            "topics": "",
            "views": "",
        },
    ]
    with path.open("w", newline="", encoding="utf-8") as handle:
        writer = csv.DictWriter(handle, fieldnames=CSV_FIELDS)
        writer.writeheader()
        writer.writerows(rows)
    return path


@pytest.fixture
def documents():
    return [
        Document(id="1", text=long_transcript(1), title="Why we sleep", author="Jane Doe"),
        Document(id="2", text=long_transcript(2), title="Curiosity", author="Sam Roe"),
    ]


class TestLoadDocuments:
    """Test suite for CSV loading."""

    def test_loads_rows_with_ids(self, talks_csv):
        docs = load_documents(str(talks_csv))

        assert [d.id for d in docs] == ["1", "2", "3"]
        assert docs[0].author == "Jane Doe"
        assert docs[0].metadata == {"topics": "['sleep', 'health']", "views": "1200"}
        assert docs[1].metadata == {}

    def test_limit(self, talks_csv):
        assert [d.id for d in load_documents(str(talks_csv), limit=1)] == ["1"]


class TestDocument:
    """Test suite for chunk payloads."""

    def test_payload_for_chunk(self, small_config):
        doc = Document(id="9", text=long_transcript(9), title="T", author="A", url="u",
                       metadata={"views": "10"})
        pipeline = IngestionPipeline(small_config, FakeEmbedder(), FakeIndex())
        chunk = pipeline.chunker.chunk_document(doc.text, doc.id)[1]

        payload = doc.payload_for(chunk)

        assert payload == {
            "document_id": "9",
            "title": "T",
            "url": "u",
            "author": "A",
            "chunk_text": chunk.text,
            "chunk_index": 1,
            "views": "10",
        }


class TestIngestionPipeline:
    """Test suite for chunk, embed and upsert orchestration."""

    def test_requires_index_unless_dry_run(self, small_config):
        with pytest.raises(ValueError):
            IngestionPipeline(small_config, FakeEmbedder())

    def test_upserts_every_chunk(self, small_config, documents):
        index = FakeIndex()
        pipeline = IngestionPipeline(small_config, FakeEmbedder(), index)

        stats = pipeline.run(documents)

        assert stats.total_docs == 2
        assert stats.documents_chunked == 2
        assert stats.total_chunks > 2
        assert stats.upserted_chunks == stats.total_chunks == len(index.records)
        assert stats.failed_chunks == 0
        assert stats.oversized_chunks == 0
        assert "1_0" in index.records and "2_0" in index.records
        record = index.records["1_0"]
        assert record.payload["document_id"] == "1"
        assert record.payload["chunk_index"] == 0

    def test_rerun_is_idempotent(self, small_config, documents):
        index = FakeIndex()
        pipeline = IngestionPipeline(small_config, FakeEmbedder(), index)

        first = pipeline.run(documents)
        ids_after_first = set(index.records)
        pipeline.run(documents)

        assert set(index.records) == ids_after_first
        assert len(index.records) == first.total_chunks

    def test_failed_chunk_is_skipped(self, small_config, documents):
        chunks = IngestionPipeline(small_config, FakeEmbedder(), FakeIndex()).chunker.chunk(
            documents[0].text
        )
        index = FakeIndex()
        pipeline = IngestionPipeline(small_config, FakeEmbedder(fail_on={chunks[1]}), index)

        stats = pipeline.run(documents)

        assert stats.failed_chunks == 1
        assert "1_1" not in index.records
        assert "1_0" in index.records and "1_2" in index.records
        assert stats.upserted_chunks == stats.total_chunks - 1

    def test_failed_upsert_does_not_stop_run(self, small_config, documents):
        index = FakeIndex(fail_upsert_for={"1"})
        pipeline = IngestionPipeline(small_config, FakeEmbedder(), index)

        stats = pipeline.run(documents)

        assert stats.failed_upserts == 1
        assert all(record_id.startswith("2_") for record_id in index.records)
        assert stats.upserted_chunks == len(index.records)

    def test_dry_run_skips_index(self, small_config, documents):
        embedder = PlaceholderEmbeddingProvider(EmbeddingConfig(dimension=4))
        pipeline = IngestionPipeline(
            small_config, embedder, index=None, options=IngestionOptions(dry_run=True)
        )

        stats = pipeline.run(documents)

        assert stats.embedded_chunks == stats.total_chunks
        assert stats.upserted_chunks == 0

    def test_skips_empty_documents(self, small_config):
        index = FakeIndex()
        pipeline = IngestionPipeline(small_config, FakeEmbedder(), index)

        stats = pipeline.run([Document(id="1", text=""), Document(id="2", text="Short.")])

        assert stats.skipped_empty == 1
        assert list(index.records) == ["2_0"]

    def test_max_chunks_caps_the_run(self, small_config, documents):
        index = FakeIndex()
        pipeline = IngestionPipeline(
            small_config, FakeEmbedder(), index, IngestionOptions(max_chunks=3)
        )

        stats = pipeline.run(documents)

        assert stats.total_chunks == 3
        assert len(index.records) == 3
        assert stats.truncated_by_max_chunks >= 1

    def test_logs_chunk_quality_recommendations(self, small_config, caplog):
        pipeline = IngestionPipeline(small_config, FakeEmbedder(), FakeIndex())
        # 150-char paragraphs leave room only for the "\n\n" separator as overlap
        coarse = Document(
            id="5", text="\n\n".join(letter * 150 for letter in "abcdef"), title="Coarse"
        )

        with caplog.at_level(logging.WARNING, logger="ingestion.ingest_pipeline"):
            stats = pipeline.run([coarse])

        assert stats.oversized_chunks == 0
        assert any(
            "Coarse" in record.getMessage() and "overlap" in record.getMessage()
            for record in caplog.records
        )

    def test_well_formed_talk_logs_no_recommendations(self, small_config, documents, caplog):
        pipeline = IngestionPipeline(small_config, FakeEmbedder(), FakeIndex())

        with caplog.at_level(logging.WARNING, logger="ingestion.ingest_pipeline"):
            pipeline.run(documents[:1])

        assert not [r for r in caplog.records if r.levelno >= logging.WARNING]

    def test_chunking_preserves_document_order(self, small_config, documents):
        pipeline = IngestionPipeline(
            small_config, FakeEmbedder(), FakeIndex(), IngestionOptions(workers=8)
        )

        chunked = pipeline.chunk_documents(documents)

        assert [doc.id for doc, _ in chunked] == ["1", "2"]


class TestMain:
    """Test suite for the command-line entry point."""

    def test_dry_run_prints_summary(self, talks_csv, capsys):
        exit_code = main(["--csv", str(talks_csv), "--dry-run", "--limit", "2"])

        summary = json.loads(capsys.readouterr().out)
        assert exit_code == 0
        assert summary["dry_run"] is True
        assert summary["stats"]["total_docs"] == 2
        assert summary["stats"]["upserted_chunks"] == 0
        assert summary["stats"]["embedded_chunks"] == summary["stats"]["total_chunks"]
