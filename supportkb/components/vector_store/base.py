"""
Storage interface for documents and their embedded chunks.
"""

from abc import ABC, abstractmethod
from typing import List, Optional, Sequence

from ...models.records import ChunkRecord, DocumentRecord, ParsedDocument, ScoredChunk

class VectorStore(ABC):
    """Documents, chunks and cosine nearest-neighbour search over chunk embeddings."""

    async def initialize(self) -> None:
        """Create whatever schema the backend needs. No-op by default."""

    async def close(self) -> None:
        """Release connections. No-op by default."""

    @abstractmethod
    async def create_document(
        self,
        parsed: ParsedDocument,
        client_id: Optional[str] = None
    ) -> DocumentRecord:
        """Persist a document row built from extractor output."""

    @abstractmethod
    async def get_document(self, document_id: int) -> Optional[DocumentRecord]:
        """Fetch one document with its chunk count, or None."""

    @abstractmethod
    async def list_documents(self, client_id: Optional[str] = None) -> List[DocumentRecord]:
        """All documents (optionally for one tenant), newest first, with chunk counts."""

    @abstractmethod
    async def delete_document(self, document_id: int) -> bool:
        """Delete a document and all of its chunks. Returns False if it did not exist."""

    @abstractmethod
    async def create_chunk(
        self,
        document_id: int,
        content: str,
        embedding: Optional[Sequence[float]],
        chunk_index: Optional[int] = None
    ) -> ChunkRecord:
        """Insert one chunk. Raises ForeignKeyViolation for an unknown document."""

    @abstractmethod
    async def get_chunks(self, document_id: int) -> List[ChunkRecord]:
        """Chunks of one document in chunker order."""

    @abstractmethod
    async def count_chunks(self, document_id: Optional[int] = None) -> int:
        """Number of chunks for one document, or across the store."""

    @abstractmethod
    async def count_documents(self) -> int:
        """Number of documents across the store."""

    @abstractmethod
    async def delete_chunks_by_document(self, document_id: int) -> int:
        """Remove all chunks of a document; deleting nothing is not an error."""

    @abstractmethod
    async def nearest_neighbors(
        self,
        query_embedding: Sequence[float],
        k: int,
        client_id: Optional[str] = None
    ) -> List[ScoredChunk]:
        """Top-k chunks by descending cosine similarity, skipping NULL embeddings."""
