"""
In-process chunk store backed by numpy, for local development and tests.

Mirrors the PostgreSQL store's behaviour: chunks must reference an existing
document, deleting a document removes its chunks, and chunks without an
embedding are never returned by similarity search.
"""

import itertools
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Dict, List, Optional, Sequence

import numpy as np

from .base import VectorStore
from ...config.settings import EMBEDDING_DIMENSION
from ...models.records import ChunkRecord, DocumentRecord, ParsedDocument, ScoredChunk
from ...utils.errors import ForeignKeyViolation

logger = logging.getLogger(__name__)

@dataclass
class _StoredChunk:
    id: int
    document_id: int
    content: str
    embedding: Optional[np.ndarray]
    chunk_index: Optional[int]
    created_at: datetime

    def to_record(self) -> ChunkRecord:
        return ChunkRecord(
            id=self.id,
            document_id=self.document_id,
            content=self.content,
            chunk_index=self.chunk_index,
            has_embedding=self.embedding is not None,
            created_at=self.created_at
        )

def cosine_similarity(query: np.ndarray, matrix: np.ndarray) -> np.ndarray:
    """Cosine similarity of ``query`` against each row of ``matrix``; zero-norm rows score 0."""
    query_norm = np.linalg.norm(query)
    row_norms = np.linalg.norm(matrix, axis=1)
    denominator = row_norms * query_norm
    dots = matrix @ query
    with np.errstate(divide='ignore', invalid='ignore'):
        similarities = np.where(denominator > 0, dots / denominator, 0.0)
    return similarities

class InMemoryVectorStore(VectorStore):
    """Dictionary-backed store with brute-force cosine search."""

    def __init__(self, embedding_dimension: int = EMBEDDING_DIMENSION):
        self.embedding_dimension = embedding_dimension
        self._documents: Dict[int, DocumentRecord] = {}
        self._chunks: Dict[int, _StoredChunk] = {}
        self._document_ids = itertools.count(1)
        self._chunk_ids = itertools.count(1)

    async def create_document(
        self,
        parsed: ParsedDocument,
        client_id: Optional[str] = None
    ) -> DocumentRecord:
        document = DocumentRecord(
            id=next(self._document_ids),
            title=parsed.title,
            filename=parsed.filename,
            content=parsed.content,
            client_id=client_id,
            created_at=datetime.now(timezone.utc)
        )
        self._documents[document.id] = document
        logger.info(f"Created document {document.id} ({parsed.filename})")
        return document.model_copy(update={"chunk_count": 0})

    def _chunk_count(self, document_id: int) -> int:
        return sum(1 for chunk in self._chunks.values() if chunk.document_id == document_id)

    async def get_document(self, document_id: int) -> Optional[DocumentRecord]:
        document = self._documents.get(document_id)
        if document is None:
            return None
        return document.model_copy(update={"chunk_count": self._chunk_count(document_id)})

    async def list_documents(self, client_id: Optional[str] = None) -> List[DocumentRecord]:
        documents = [
            document for document in self._documents.values()
            if client_id is None or document.client_id == client_id
        ]
        documents.sort(key=lambda d: (d.created_at, d.id), reverse=True)
        return [
            document.model_copy(update={"chunk_count": self._chunk_count(document.id)})
            for document in documents
        ]

    async def delete_document(self, document_id: int) -> bool:
        deleted_chunks = await self.delete_chunks_by_document(document_id)
        existed = self._documents.pop(document_id, None) is not None
        logger.info(f"Deleted document {document_id} ({deleted_chunks} chunks, existed={existed})")
        return existed

    async def create_chunk(
        self,
        document_id: int,
        content: str,
        embedding: Optional[Sequence[float]],
        chunk_index: Optional[int] = None
    ) -> ChunkRecord:
        if not content or not content.strip():
            raise ValueError("Chunk content must not be empty")
        if document_id not in self._documents:
            raise ForeignKeyViolation(document_id)

        vector = None
        if embedding is not None:
            vector = np.asarray(embedding, dtype=np.float32)
            if vector.shape != (self.embedding_dimension,):
                raise ValueError(
                    f"Embedding has {vector.size} dimensions, expected {self.embedding_dimension}"
                )

        chunk = _StoredChunk(
            id=next(self._chunk_ids),
            document_id=document_id,
            content=content,
            embedding=vector,
            chunk_index=chunk_index,
            created_at=datetime.now(timezone.utc)
        )
        self._chunks[chunk.id] = chunk
        return chunk.to_record()

    async def get_chunks(self, document_id: int) -> List[ChunkRecord]:
        chunks = [chunk for chunk in self._chunks.values() if chunk.document_id == document_id]
        chunks.sort(key=lambda c: (c.chunk_index if c.chunk_index is not None else -1, c.id))
        return [chunk.to_record() for chunk in chunks]

    async def count_chunks(self, document_id: Optional[int] = None) -> int:
        if document_id is None:
            return len(self._chunks)
        return self._chunk_count(document_id)

    async def count_documents(self) -> int:
        return len(self._documents)

    async def delete_chunks_by_document(self, document_id: int) -> int:
        chunk_ids = [cid for cid, chunk in self._chunks.items() if chunk.document_id == document_id]
        for chunk_id in chunk_ids:
            del self._chunks[chunk_id]
        return len(chunk_ids)

    async def nearest_neighbors(
        self,
        query_embedding: Sequence[float],
        k: int,
        client_id: Optional[str] = None
    ) -> List[ScoredChunk]:
        if k < 1:
            return []
        query = np.asarray(query_embedding, dtype=np.float32)
        if query.shape != (self.embedding_dimension,):
            raise ValueError(
                f"Query embedding has {query.size} dimensions, expected {self.embedding_dimension}"
            )

        candidates = [
            chunk for chunk in self._chunks.values()
            if chunk.embedding is not None and (
                client_id is None
                or self._documents[chunk.document_id].client_id == client_id
            )
        ]
        if not candidates:
            return []

        matrix = np.vstack([chunk.embedding for chunk in candidates])
        similarities = cosine_similarity(query, matrix)

        ranked = sorted(
            zip(candidates, similarities),
            key=lambda pair: (-float(pair[1]), pair[0].id)
        )[:k]

        return [
            ScoredChunk(
                chunk_id=chunk.id,
                document_id=chunk.document_id,
                content=chunk.content,
                similarity=float(similarity)
            )
            for chunk, similarity in ranked
        ]
