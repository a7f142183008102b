"""
Ingestion pipeline: extract -> persist document -> chunk -> embed and persist each chunk.
"""

import asyncio
import itertools
import logging
import mimetypes
from pathlib import Path
from typing import List, Optional, Union

from .chunker import TextChunker
from .extractor import TextExtractor
from ..vector_store.base import VectorStore
from ...config.processor import DOCX_MIME_TYPE, ProcessorConfig, UploadConfig
from ...models.records import IngestionResult, IngestionState, UploadedFile
from ...services.embeddings import LLMClient
from ...utils.errors import (
    EmbeddingFailed,
    ForeignKeyViolation,
    UnsupportedFileType,
    UploadTooLarge,
)
from ...utils.monitoring import ProcessingMonitor

logger = logging.getLogger(__name__)

# mimetypes does not know .docx on every platform
mimetypes.add_type(DOCX_MIME_TYPE, '.docx')

def validate_upload(upload: UploadedFile, config: Optional[UploadConfig] = None) -> None:
    """Reject uploads with a disallowed MIME type or an oversized payload."""
    config = config or UploadConfig()
    if upload.mime_type not in config.allowed_mime_types:
        raise UnsupportedFileType(upload.mime_type)
    if upload.size > config.max_upload_bytes:
        raise UploadTooLarge(upload.size, config.max_upload_bytes)

def guess_mime_type(path: Union[str, Path]) -> str:
    mime_type, _ = mimetypes.guess_type(str(path))
    return mime_type or "application/octet-stream"

class _IngestionAborted(Exception):
    """The document disappeared while its chunks were being written."""

class DocumentProcessor:
    """Runs one upload through the ingestion pipeline.

    Chunks are embedded and written one at a time, so a failed embedding only
    loses that chunk. A chunk insert that hits a missing document means the
    document was deleted mid-ingestion; no further embedding calls are made.
    """

    def __init__(
        self,
        client: LLMClient,
        store: VectorStore,
        extractor: Optional[TextExtractor] = None,
        chunker: Optional[TextChunker] = None,
        config: Optional[ProcessorConfig] = None,
        monitor: Optional[ProcessingMonitor] = None
    ):
        self.config = config or ProcessorConfig()
        self.client = client
        self.store = store
        self.extractor = extractor or TextExtractor()
        self.chunker = chunker or TextChunker(self.config.chunking_config)
        self.monitor = monitor or ProcessingMonitor()
        self._job_ids = itertools.count(1)

    def _transition(self, filename: str, old: IngestionState, new: IngestionState, detail: str = ""):
        message = f"[{filename}] {old.value} -> {new.value}"
        if detail:
            message += f" ({detail})"
        if new == IngestionState.FAILED:
            logger.error(message)
        else:
            logger.info(message)

    async def ingest(self, upload: UploadedFile) -> IngestionResult:
        """Ingest one uploaded file and report how many chunks were stored."""
        task_name = f"ingest-{next(self._job_ids)}:{upload.filename}"
        await self.monitor.start_task(task_name)
        outcome = "failed"
        try:
            result = await self._run(upload)
            if result.aborted:
                outcome = "aborted"
            elif result.degraded:
                outcome = "degraded"
            else:
                outcome = "done"
            return result
        finally:
            await self.monitor.end_task(task_name, outcome)

    async def _run(self, upload: UploadedFile) -> IngestionResult:
        filename = upload.filename
        state = IngestionState.RECEIVED
        logger.info(f"[{filename}] {state.value} ({upload.size} bytes, {upload.mime_type})")

        try:
            parsed = await self.extractor.extract(upload.content, upload.mime_type, filename)
        except Exception as e:
            self._transition(filename, state, IngestionState.FAILED, str(e))
            raise
        self._transition(filename, state, IngestionState.EXTRACTED, f"{len(parsed.content)} characters")
        state = IngestionState.EXTRACTED

        try:
            document = await self.store.create_document(parsed, client_id=upload.client_id)
        except Exception as e:
            self._transition(filename, state, IngestionState.FAILED, str(e))
            raise
        self._transition(filename, state, IngestionState.DOCUMENT_PERSISTED, f"document {document.id}")
        state = IngestionState.DOCUMENT_PERSISTED

        self._transition(filename, state, IngestionState.CHUNKING)
        state = IngestionState.CHUNKING
        chunks = self.chunker.chunk(parsed.content)

        self._transition(filename, state, IngestionState.EMBEDDING_CHUNKS, f"{len(chunks)} chunks")
        state = IngestionState.EMBEDDING_CHUNKS

        if self.config.max_concurrent_embeddings > 1:
            stored, failed, aborted = await self._embed_concurrently(document.id, chunks)
        else:
            stored, failed, aborted = await self._embed_sequentially(document.id, chunks)

        result = IngestionResult(
            document_id=document.id,
            chunk_count=stored,
            total_chunks=len(chunks),
            failed_chunks=failed,
            aborted=aborted,
            content_length=len(parsed.content)
        )

        if aborted:
            logger.warning(
                f"[{filename}] document {document.id} was deleted during ingestion; "
                f"stopped after {stored} of {len(chunks)} chunks"
            )
        elif result.degraded:
            logger.warning(
                f"[{filename}] document {document.id} has text but no stored chunks; "
                f"it will not be retrievable"
            )
        elif failed:
            logger.warning(f"[{filename}] {failed} of {len(chunks)} chunks failed to embed")

        self._transition(filename, state, IngestionState.DONE, f"{stored}/{len(chunks)} chunks stored")
        return result

    async def _store_chunk(self, document_id: int, index: int, content: str) -> bool:
        """Embed and persist one chunk. Returns False when the embedding failed."""
        try:
            embedding = await self.client.embed(content)
        except EmbeddingFailed as e:
            logger.warning(f"Skipping chunk {index} of document {document_id}: {str(e)}")
            return False

        try:
            await self.store.create_chunk(document_id, content, embedding, chunk_index=index)
        except ForeignKeyViolation as e:
            raise _IngestionAborted() from e
        return True

    async def _embed_sequentially(self, document_id: int, chunks: List[str]):
        stored = failed = 0
        for index, content in enumerate(chunks):
            try:
                if await self._store_chunk(document_id, index, content):
                    stored += 1
                else:
                    failed += 1
            except _IngestionAborted:
                return stored, failed, True
        return stored, failed, False

    async def _embed_concurrently(self, document_id: int, chunks: List[str]):
        semaphore = asyncio.Semaphore(self.config.max_concurrent_embeddings)
        aborted = asyncio.Event()
        counts = {"stored": 0, "failed": 0}

        async def worker(index: int, content: str):
            async with semaphore:
                if aborted.is_set():
                    return
                try:
                    if await self._store_chunk(document_id, index, content):
                        counts["stored"] += 1
                    else:
                        counts["failed"] += 1
                except _IngestionAborted:
                    aborted.set()

        tasks = [asyncio.ensure_future(worker(i, c)) for i, c in enumerate(chunks)]
        try:
            await asyncio.gather(*tasks)
        except BaseException:
            aborted.set()
            for task in tasks:
                if not task.done():
                    task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            logger.error(f"Cancelled remaining chunk workers for document {document_id}")
            raise
        return counts["stored"], counts["failed"], aborted.is_set()

    async def ingest_file(self, path: Union[str, Path], client_id: Optional[str] = None) -> IngestionResult:
        """Read a file from disk and ingest it, guessing the MIME type from its name."""
        path = Path(path)
        upload = UploadedFile(
            filename=path.name,
            mime_type=guess_mime_type(path),
            content=path.read_bytes(),
            client_id=client_id
        )
        return await self.ingest(upload)

    async def delete_document(self, document_id: int) -> bool:
        """Delete a document and its chunks. Deleting a missing id is a no-op."""
        existed = await self.store.delete_document(document_id)
        if not existed:
            logger.info(f"Document {document_id} not found; nothing to delete")
        return existed
