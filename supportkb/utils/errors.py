"""
Custom error types and error handling utilities.
"""

import logging
from typing import Type
from functools import wraps
import traceback

logger = logging.getLogger(__name__)

class KnowledgeBaseError(Exception):
    """Base exception for the knowledge base core."""
    pass

class ConfigurationError(KnowledgeBaseError):
    """Raised when configuration values are invalid or inconsistent."""
    pass

class DocumentProcessingError(KnowledgeBaseError):
    """Base exception for document ingestion errors."""
    pass

class UnsupportedFileType(DocumentProcessingError):
    """Raised when an upload declares a MIME type we cannot extract."""

    def __init__(self, mime_type: str):
        self.mime_type = mime_type
        super().__init__(f"Unsupported file type: {mime_type}")

class UploadTooLarge(DocumentProcessingError):
    """Raised when an upload exceeds the configured size limit."""

    def __init__(self, size: int, limit: int):
        self.size = size
        self.limit = limit
        super().__init__(f"File size {size} bytes exceeds the {limit} byte limit")

class ExtractionFailed(DocumentProcessingError):
    """Raised when a format decoder cannot read the uploaded file."""
    pass

class EmbeddingFailed(KnowledgeBaseError):
    """Raised when the embedding API call fails."""
    pass

class CompletionFailed(KnowledgeBaseError):
    """Raised when the chat completion API call fails."""
    pass

class DatabaseError(KnowledgeBaseError):
    """Raised when database operations fail."""
    pass

class ForeignKeyViolation(DatabaseError):
    """Raised when a chunk references a document that does not exist."""

    def __init__(self, document_id: int, message: str = ""):
        self.document_id = document_id
        super().__init__(message or f"Document {document_id} does not exist")

def handle_exceptions(
    error_type: Type[Exception],
    default_message: str,
    reraise: bool = True,
    log_level: str = "error"
) -> callable:
    """Decorator for handling exceptions with proper logging.

    Errors that are already part of the KnowledgeBaseError hierarchy pass
    through untouched; anything else is logged and wrapped in ``error_type``.
    """
    def decorator(func):
        @wraps(func)
        async def wrapper(*args, **kwargs):
            try:
                return await func(*args, **kwargs)
            except KnowledgeBaseError:
                raise
            except Exception as e:
                log_func = getattr(logger, log_level)
                error_msg = f"{default_message}: {str(e)}"
                log_func(error_msg)
                log_func(f"Traceback:\n{traceback.format_exc()}")

                if reraise:
                    raise error_type(error_msg) from e
                return None
        return wrapper
    return decorator
