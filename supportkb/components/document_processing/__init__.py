"""
Document ingestion: text extraction, chunking and the ingestion pipeline.
"""

from .chunker import TextChunker, chunk_text
from .extractor import TextExtractor
from .processor import DocumentProcessor, guess_mime_type, validate_upload

__all__ = [
    'DocumentProcessor',
    'TextChunker',
    'TextExtractor',
    'chunk_text',
    'guess_mime_type',
    'validate_upload',
]
