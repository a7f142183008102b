"""Unit tests for DocumentProcessor: the extract/chunk/embed/persist pipeline."""

from __future__ import annotations

import asyncio

import pytest

from supportkb.components.document_processing.chunker import TextChunker
from supportkb.components.document_processing.processor import (
    DocumentProcessor,
    guess_mime_type,
    validate_upload,
)
from supportkb.components.vector_store.memory import InMemoryVectorStore
from supportkb.config.processor import (
    DOCX_MIME_TYPE,
    PDF_MIME_TYPE,
    TEXT_MIME_TYPE,
    ChunkingConfig,
    ProcessorConfig,
    UploadConfig,
)
from supportkb.models.records import UploadedFile
from supportkb.utils.errors import DatabaseError, ExtractionFailed, UnsupportedFileType, UploadTooLarge
from supportkb.utils.monitoring import ProcessingMonitor
from tests.conftest import TEST_DIMENSION, FakeLLMClient, make_blank_pdf, sample_text


def _upload(content: bytes, mime_type: str = TEXT_MIME_TYPE, filename: str = "policy.txt",
            client_id: str | None = None) -> UploadedFile:
    return UploadedFile(filename=filename, mime_type=mime_type, content=content, client_id=client_id)


# ---------------------------------------------------------------------------
# Happy path
# ---------------------------------------------------------------------------


class TestRoundTrip:

    async def test_2500_character_document(
        self,
        processor: DocumentProcessor,
        memory_store: InMemoryVectorStore,
        fake_client: FakeLLMClient,
    ) -> None:
        text = sample_text(2500)
        result = await processor.ingest(_upload(text.encode(), client_id="acme"))

        assert result.total_chunks == 3
        assert result.chunk_count == 3
        assert result.failed_chunks == 0
        assert not result.aborted
        assert not result.degraded
        assert len(fake_client.embed_calls) == 3

        document = await memory_store.get_document(result.document_id)
        assert document is not None
        assert document.content == text
        assert document.title == "policy"
        assert document.client_id == "acme"
        assert document.chunk_count == 3

        chunks = await memory_store.get_chunks(result.document_id)
        assert [c.chunk_index for c in chunks] == [0, 1, 2]
        assert [c.content for c in chunks] == [
            text[0:1000].strip(),
            text[800:1800].strip(),
            text[1600:2500].strip(),
        ]

    async def test_chunks_are_searchable_after_ingest(
        self,
        processor: DocumentProcessor,
        memory_store: InMemoryVectorStore,
        fake_client: FakeLLMClient,
    ) -> None:
        result = await processor.ingest(_upload(b"Our store opens at 9am on weekdays."))

        query_vector = await fake_client.embed("Our store opens at 9am on weekdays.")
        hits = await memory_store.nearest_neighbors(query_vector, k=1)

        assert hits[0].document_id == result.document_id
        assert hits[0].similarity == pytest.approx(1.0, abs=1e-5)


# ---------------------------------------------------------------------------
# Failure isolation
# ---------------------------------------------------------------------------


class TestFailures:

    async def test_one_failed_embedding_skips_only_that_chunk(
        self, memory_store: InMemoryVectorStore, chunking_config: ChunkingConfig
    ) -> None:
        text = sample_text(2500)
        failing_chunk = text[800:1800].strip()
        client = FakeLLMClient(fail_on=lambda t: t == failing_chunk)
        processor = DocumentProcessor(client, memory_store, chunker=TextChunker(chunking_config))

        result = await processor.ingest(_upload(text.encode()))

        assert result.chunk_count == 2
        assert result.failed_chunks == 1
        assert result.total_chunks == 3
        assert not result.degraded
        contents = [c.content for c in await memory_store.get_chunks(result.document_id)]
        assert failing_chunk not in contents
        assert len(client.embed_calls) == 3

    async def test_all_embeddings_failing_is_degraded(
        self, memory_store: InMemoryVectorStore, chunking_config: ChunkingConfig
    ) -> None:
        client = FakeLLMClient(fail_on=lambda t: True)
        processor = DocumentProcessor(client, memory_store, chunker=TextChunker(chunking_config))

        result = await processor.ingest(_upload(b"Warranty covers two years."))

        assert result.chunk_count == 0
        assert result.degraded
        assert await memory_store.get_document(result.document_id) is not None

    async def test_unsupported_type_makes_no_embedding_calls(
        self,
        processor: DocumentProcessor,
        memory_store: InMemoryVectorStore,
        fake_client: FakeLLMClient,
    ) -> None:
        with pytest.raises(UnsupportedFileType):
            await processor.ingest(_upload(b"\x89PNG\r\n", mime_type="image/png", filename="logo.png"))

        assert fake_client.embed_calls == []
        assert await memory_store.count_documents() == 0

    async def test_extraction_failure_writes_nothing(
        self,
        processor: DocumentProcessor,
        memory_store: InMemoryVectorStore,
        fake_client: FakeLLMClient,
    ) -> None:
        with pytest.raises(ExtractionFailed):
            await processor.ingest(_upload(b"garbage", mime_type=PDF_MIME_TYPE, filename="bad.pdf"))

        assert fake_client.embed_calls == []
        assert await memory_store.count_documents() == 0
        assert await memory_store.count_chunks() == 0

    async def test_empty_document_is_stored_without_chunks(
        self,
        processor: DocumentProcessor,
        memory_store: InMemoryVectorStore,
        fake_client: FakeLLMClient,
    ) -> None:
        result = await processor.ingest(_upload(make_blank_pdf(), mime_type=PDF_MIME_TYPE, filename="scan.pdf"))

        assert result.total_chunks == 0
        assert result.chunk_count == 0
        assert not result.degraded
        assert fake_client.embed_calls == []
        assert await memory_store.get_document(result.document_id) is not None


# ---------------------------------------------------------------------------
# Delete during ingestion
# ---------------------------------------------------------------------------


class TestDeleteRace:

    async def test_delete_mid_ingestion_aborts_without_orphans(
        self,
        processor: DocumentProcessor,
        memory_store: InMemoryVectorStore,
        fake_client: FakeLLMClient,
    ) -> None:
        async def delete_on_second_call(call_number: int) -> None:
            if call_number == 2:
                for document in await memory_store.list_documents():
                    await memory_store.delete_document(document.id)

        fake_client.before_embed = delete_on_second_call

        result = await processor.ingest(_upload(sample_text(2500).encode()))

        assert result.aborted
        assert result.chunk_count == 1
        # The third chunk is never sent for embedding
        assert len(fake_client.embed_calls) == 2
        assert await memory_store.get_document(result.document_id) is None
        assert await memory_store.count_chunks() == 0

    async def test_delete_via_processor_is_idempotent(
        self, processor: DocumentProcessor, memory_store: InMemoryVectorStore
    ) -> None:
        result = await processor.ingest(_upload(b"Delivery takes 3 days."))

        assert await processor.delete_document(result.document_id) is True
        assert await processor.delete_document(result.document_id) is False
        assert await memory_store.count_chunks() == 0


# ---------------------------------------------------------------------------
# Bounded concurrency
# ---------------------------------------------------------------------------


class TestConcurrency:

    async def test_concurrent_embedding_isolates_failures(self, memory_store: InMemoryVectorStore) -> None:
        chunking = ChunkingConfig(chunk_size=100, chunk_overlap=20)
        text = sample_text(1000)
        chunks = TextChunker(chunking).chunk(text)
        client = FakeLLMClient(fail_on=lambda t: t == chunks[3])
        processor = DocumentProcessor(
            client,
            memory_store,
            chunker=TextChunker(chunking),
            config=ProcessorConfig(chunking_config=chunking, max_concurrent_embeddings=4),
        )

        result = await processor.ingest(_upload(text.encode()))

        assert result.total_chunks == len(chunks)
        assert result.chunk_count == len(chunks) - 1
        assert result.failed_chunks == 1
        stored = await memory_store.get_chunks(result.document_id)
        assert [c.chunk_index for c in stored] == [i for i in range(len(chunks)) if i != 3]

    async def test_store_failure_cancels_remaining_workers(self) -> None:
        class BrokenFirstChunkStore(InMemoryVectorStore):
            async def create_chunk(self, document_id, content, embedding, chunk_index=None):
                if chunk_index == 0:
                    raise DatabaseError("connection reset")
                return await super().create_chunk(document_id, content, embedding, chunk_index)

        async def slow_embed(call_number: int) -> None:
            await asyncio.sleep(0.01)

        store = BrokenFirstChunkStore(embedding_dimension=TEST_DIMENSION)
        client = FakeLLMClient()
        client.before_embed = slow_embed
        chunking = ChunkingConfig(chunk_size=100, chunk_overlap=20)
        processor = DocumentProcessor(
            client,
            store,
            chunker=TextChunker(chunking),
            config=ProcessorConfig(chunking_config=chunking, max_concurrent_embeddings=4),
        )

        with pytest.raises(DatabaseError, match="connection reset"):
            await processor.ingest(_upload(sample_text(3000).encode()))

        calls_at_failure = len(client.embed_calls)
        chunks_at_failure = await store.count_chunks()
        await asyncio.sleep(0.2)

        assert len(client.embed_calls) == calls_at_failure
        assert await store.count_chunks() == chunks_at_failure


# ---------------------------------------------------------------------------
# Monitoring and helpers
# ---------------------------------------------------------------------------


class TestMonitoringAndHelpers:

    async def test_monitor_records_outcomes(
        self, processor: DocumentProcessor, monitor: ProcessingMonitor
    ) -> None:
        await processor.ingest(_upload(b"First document."))
        with pytest.raises(UnsupportedFileType):
            await processor.ingest(_upload(b"x", mime_type="image/gif", filename="x.gif"))

        stats = monitor.get_statistics()
        assert stats["total_tasks"] == 2
        assert stats["active_tasks"] == 0
        assert stats["outcomes"] == {"done": 1, "failed": 1}
        assert 0.0 <= stats["min_duration"] <= stats["avg_duration"] <= stats["max_duration"]

    async def test_monitor_does_not_keep_finished_tasks(
        self, processor: DocumentProcessor, monitor: ProcessingMonitor
    ) -> None:
        for i in range(5):
            await processor.ingest(_upload(f"Document number {i}.".encode(), filename=f"doc{i}.txt"))

        assert monitor.start_times == {}
        assert monitor.get_statistics()["total_tasks"] == 5

    async def test_ingest_file_guesses_mime_type(
        self, processor: DocumentProcessor, memory_store: InMemoryVectorStore, tmp_path
    ) -> None:
        path = tmp_path / "hours.txt"
        path.write_text("Open 9 to 5.", encoding="utf-8")

        result = await processor.ingest_file(path, client_id="acme")

        document = await memory_store.get_document(result.document_id)
        assert document.filename == "hours.txt"
        assert document.client_id == "acme"

    @pytest.mark.parametrize(
        "filename, mime_type",
        [("a.pdf", PDF_MIME_TYPE), ("b.docx", DOCX_MIME_TYPE), ("c.txt", TEXT_MIME_TYPE)],
    )
    def test_guess_mime_type(self, filename: str, mime_type: str) -> None:
        assert guess_mime_type(filename) == mime_type

    def test_validate_upload_rejects_disallowed_type(self) -> None:
        with pytest.raises(UnsupportedFileType):
            validate_upload(_upload(b"x", mime_type="image/png"))

    def test_validate_upload_rejects_oversized_payload(self) -> None:
        config = UploadConfig(max_upload_bytes=10)
        with pytest.raises(UploadTooLarge):
            validate_upload(_upload(b"x" * 11), config)

    def test_validate_upload_accepts_limit_exactly(self) -> None:
        validate_upload(_upload(b"x" * 10), UploadConfig(max_upload_bytes=10))
