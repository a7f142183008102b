"""
Persistence models and typed records.
"""

from .documents import Base, DocumentModel, DocumentChunk
from .records import (
    ChatMessage,
    ChatReply,
    ChunkRecord,
    DocumentRecord,
    IngestionResult,
    IngestionState,
    ParsedDocument,
    ScoredChunk,
    UploadedFile,
)

__all__ = [
    'Base',
    'DocumentModel',
    'DocumentChunk',
    'ChatMessage',
    'ChatReply',
    'ChunkRecord',
    'DocumentRecord',
    'IngestionResult',
    'IngestionState',
    'ParsedDocument',
    'ScoredChunk',
    'UploadedFile',
]
