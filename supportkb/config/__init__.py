"""
Configuration package: database, processing and application settings.
"""

from .database import DatabaseConfig, IndexConfig
from .processor import (
    ChunkingConfig,
    ProcessorConfig,
    UploadConfig,
    SUPPORTED_MIME_TYPES,
    PDF_MIME_TYPE,
    DOCX_MIME_TYPE,
    TEXT_MIME_TYPE,
)
from .settings import (
    AppConfig,
    ChatConfig,
    EmbeddingConfig,
    Settings,
    EMBEDDING_DIMENSION,
    load_settings,
)

__all__ = [
    'AppConfig',
    'ChatConfig',
    'ChunkingConfig',
    'DatabaseConfig',
    'EmbeddingConfig',
    'IndexConfig',
    'ProcessorConfig',
    'Settings',
    'UploadConfig',
    'SUPPORTED_MIME_TYPES',
    'PDF_MIME_TYPE',
    'DOCX_MIME_TYPE',
    'TEXT_MIME_TYPE',
    'EMBEDDING_DIMENSION',
    'load_settings',
]
