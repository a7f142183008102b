"""
Request and response schemas for the HTTP API.

Field names are snake_case in Python and camelCase on the wire, which is what
the dashboard front end expects.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from ..models.records import ChatMessage

class ApiModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

class UploadResponse(ApiModel):
    """Result of a synchronous document upload"""
    document_id: int
    chunk_count: int
    total_chunks: int
    failed_chunks: int
    degraded: bool
    aborted: bool = False
    message: str

class DocumentSummary(ApiModel):
    id: int
    title: str
    filename: str
    client_id: Optional[str] = None
    created_at: Optional[datetime] = None
    chunk_count: int = 0

class ChunkSummary(ApiModel):
    id: int
    chunk_index: Optional[int] = None
    content: str
    has_embedding: bool

class DocumentDetail(DocumentSummary):
    """Document with its full text and chunks"""
    content: str
    chunks: List[ChunkSummary] = Field(default_factory=list)

class DocumentListResponse(ApiModel):
    documents: List[DocumentSummary]
    total: int

class DeleteResponse(ApiModel):
    document_id: int
    deleted: bool

class SearchRequest(ApiModel):
    query: str = Field(..., min_length=1, description="The search query text")
    k: Optional[int] = Field(None, ge=1, le=100, description="Number of chunks to return")
    client_id: Optional[str] = None

class SearchResult(ApiModel):
    chunk_id: int
    document_id: int
    content: str
    similarity: float

class SearchResponse(ApiModel):
    query: str
    results: List[SearchResult]
    total_results: int

class ChatRequest(ApiModel):
    message: str = Field(..., min_length=1)
    history: List[ChatMessage] = Field(default_factory=list)
    client_id: Optional[str] = None

class ChatResponse(ApiModel):
    response: str
    context_chunks: List[str]

class SystemStats(ApiModel):
    """Knowledge base counts and ingestion timings"""
    document_count: int
    chunk_count: int
    avg_chunks_per_document: float
    embedding_dimension: int
    vector_store: str
    uptime_seconds: float
    ingestion: Dict[str, Any]
    version: str
