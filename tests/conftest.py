"""Shared pytest fixtures for the supportkb test suite."""

from __future__ import annotations

import hashlib
import io
import zipfile
from typing import Awaitable, Callable, Iterable, Optional

import numpy as np
import pytest

from supportkb.components.document_processing.chunker import TextChunker
from supportkb.components.document_processing.extractor import TextExtractor
from supportkb.components.document_processing.processor import DocumentProcessor
from supportkb.components.vector_store.memory import InMemoryVectorStore
from supportkb.config.database import DatabaseConfig, IndexConfig
from supportkb.config.processor import ChunkingConfig, ProcessorConfig, UploadConfig
from supportkb.config.settings import AppConfig, ChatConfig, EmbeddingConfig, Settings
from supportkb.models.records import ChatMessage
from supportkb.services.embeddings import FALLBACK_RESPONSE, LLMClient
from supportkb.services.retriever import RetrievalService
from supportkb.utils.errors import EmbeddingFailed
from supportkb.utils.monitoring import ProcessingMonitor

TEST_DIMENSION = 8

# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------


def hashed_vector(text: str, dimension: int = TEST_DIMENSION) -> list[float]:
    """Deterministic pseudo-embedding derived from the text's SHA-256."""
    digest = hashlib.sha256(text.encode("utf-8")).digest()
    values = np.frombuffer(digest[: dimension * 4], dtype=np.uint32).astype(np.float64)
    return (values / np.iinfo(np.uint32).max - 0.5).tolist()


class FakeLLMClient(LLMClient):
    """In-process stand-in for the OpenAI client.

    ``vectors`` pins the embedding of specific texts; anything else gets a
    hashed vector. ``fail_on`` makes embed() raise EmbeddingFailed for texts
    matching the predicate. ``before_embed`` runs before each embed call and
    receives the 1-based call number.
    """

    def __init__(
        self,
        dimension: int = TEST_DIMENSION,
        vectors: Optional[dict[str, list[float]]] = None,
        fail_on: Optional[Callable[[str], bool]] = None,
        reply: Optional[str] = "Thanks for reaching out!",
    ) -> None:
        self.dimension = dimension
        self.vectors = dict(vectors or {})
        self.fail_on = fail_on
        self.reply = reply
        self.before_embed: Optional[Callable[[int], Awaitable[None]]] = None
        self.embed_calls: list[str] = []
        self.complete_calls: list[tuple[list[ChatMessage], Optional[str]]] = []

    async def embed(self, text: str) -> list[float]:
        self.embed_calls.append(text)
        if self.before_embed is not None:
            await self.before_embed(len(self.embed_calls))
        if self.fail_on is not None and self.fail_on(text):
            raise EmbeddingFailed("rate limit exceeded")
        if text in self.vectors:
            return list(self.vectors[text])
        return hashed_vector(text, self.dimension)

    async def complete(self, messages: Iterable, system_prompt: Optional[str] = None) -> str:
        self.complete_calls.append((list(messages), system_prompt))
        return self.reply or FALLBACK_RESPONSE


def unit_vector(index: int, dimension: int = TEST_DIMENSION) -> list[float]:
    vector = [0.0] * dimension
    vector[index] = 1.0
    return vector


def make_docx(*paragraphs: str) -> bytes:
    """Build a minimal .docx archive containing the given paragraphs."""
    body = "".join(
        f"<w:p><w:r><w:t>{paragraph}</w:t></w:r></w:p>" for paragraph in paragraphs
    )
    document_xml = (
        '<?xml version="1.0" encoding="UTF-8" standalone="yes"?>'
        '<w:document xmlns:w="http://schemas.openxmlformats.org/wordprocessingml/2006/main">'
        f"<w:body>{body}</w:body></w:document>"
    )
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as archive:
        archive.writestr("word/document.xml", document_xml)
    return buffer.getvalue()


def make_blank_pdf() -> bytes:
    """A valid one-page PDF with no text."""
    from pypdf import PdfWriter

    writer = PdfWriter()
    writer.add_blank_page(width=72, height=72)
    buffer = io.BytesIO()
    writer.write(buffer)
    return buffer.getvalue()


def sample_text(length: int = 2500) -> str:
    """Non-whitespace-edged text of exactly ``length`` characters."""
    sentence = "Refunds are processed within five business days of approval. "
    text = (sentence * (length // len(sentence) + 1))[:length]
    return text[:-1] + "." if text.endswith(" ") else text


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def fake_client() -> FakeLLMClient:
    return FakeLLMClient()


@pytest.fixture
def memory_store() -> InMemoryVectorStore:
    return InMemoryVectorStore(embedding_dimension=TEST_DIMENSION)


@pytest.fixture
def chunking_config() -> ChunkingConfig:
    return ChunkingConfig(chunk_size=1000, chunk_overlap=200)


@pytest.fixture
def monitor() -> ProcessingMonitor:
    return ProcessingMonitor()


@pytest.fixture
def processor(
    fake_client: FakeLLMClient,
    memory_store: InMemoryVectorStore,
    chunking_config: ChunkingConfig,
    monitor: ProcessingMonitor,
) -> DocumentProcessor:
    return DocumentProcessor(
        fake_client,
        memory_store,
        extractor=TextExtractor(),
        chunker=TextChunker(chunking_config),
        config=ProcessorConfig(chunking_config=chunking_config, max_concurrent_embeddings=1),
        monitor=monitor,
    )


@pytest.fixture
def retriever(fake_client: FakeLLMClient, memory_store: InMemoryVectorStore) -> RetrievalService:
    return RetrievalService(fake_client, memory_store, default_k=3)


@pytest.fixture
def test_settings(chunking_config: ChunkingConfig, tmp_path) -> Settings:
    """Settings for an in-memory deployment; nothing is read from the environment."""
    return Settings(
        database=DatabaseConfig(url="postgresql://localhost/unused"),
        index=IndexConfig(index_type="hnsw"),
        embedding=EmbeddingConfig(api_key="sk-test", embedding_dimension=TEST_DIMENSION),
        chat=ChatConfig(retriever_k=3),
        processor=ProcessorConfig(chunking_config=chunking_config, max_concurrent_embeddings=1),
        upload=UploadConfig(max_upload_bytes=10 * 1024 * 1024),
        app=AppConfig(
            vector_store_type="memory",
            admin_api_key=None,
            log_level="INFO",
            log_dir=str(tmp_path / "logs"),
        ),
    )
