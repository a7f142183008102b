"""
Typed records returned across component boundaries.

Rows coming out of the database are converted into these models inside the
store, so callers never see raw result rows.
"""

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

class ParsedDocument(BaseModel):
    """Output of the text extractor."""
    title: str
    filename: str
    content: str

class UploadedFile(BaseModel):
    """An upload as received at the HTTP or CLI boundary."""
    filename: str
    mime_type: str
    content: bytes
    client_id: Optional[str] = None

    @property
    def size(self) -> int:
        return len(self.content)

class DocumentRecord(BaseModel):
    """A persisted document, optionally with its chunk count."""
    id: int
    title: str
    filename: str
    content: str
    client_id: Optional[str] = None
    created_at: Optional[datetime] = None
    chunk_count: Optional[int] = None

class ChunkRecord(BaseModel):
    """A persisted chunk. The embedding itself is not carried around."""
    id: int
    document_id: int
    content: str
    chunk_index: Optional[int] = None
    has_embedding: bool = True
    created_at: Optional[datetime] = None

    @field_validator('content')
    @classmethod
    def content_not_empty(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("chunk content must not be empty")
        return value

class ScoredChunk(BaseModel):
    """A nearest-neighbour hit: chunk text plus cosine similarity."""
    chunk_id: int
    document_id: int
    content: str
    similarity: float

class IngestionState(str, Enum):
    """Stages an upload passes through in the ingestion pipeline."""
    RECEIVED = "received"
    EXTRACTED = "extracted"
    DOCUMENT_PERSISTED = "document_persisted"
    CHUNKING = "chunking"
    EMBEDDING_CHUNKS = "embedding_chunks"
    DONE = "done"
    FAILED = "failed"

class IngestionResult(BaseModel):
    """Outcome of ingesting one document."""
    document_id: int
    chunk_count: int
    total_chunks: int
    failed_chunks: int = 0
    aborted: bool = False
    content_length: int = 0

    @property
    def degraded(self) -> bool:
        """True when non-empty text ended up with no stored chunks."""
        return self.content_length > 0 and self.chunk_count == 0

class ChatMessage(BaseModel):
    """One message in a chat exchange."""
    role: str = Field(..., description="Role of the message sender (user or assistant)")
    content: str = Field(..., description="Message content")

class ChatReply(BaseModel):
    """A chat completion together with the context it was grounded on."""
    response: str
    context_chunks: List[str] = Field(default_factory=list)
