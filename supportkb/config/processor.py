"""
Document processing configuration settings.
"""

from dataclasses import dataclass, field
from typing import Tuple
import os

from dotenv import load_dotenv

from ..utils.errors import ConfigurationError

load_dotenv()

PDF_MIME_TYPE = "application/pdf"
DOCX_MIME_TYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
TEXT_MIME_TYPE = "text/plain"

SUPPORTED_MIME_TYPES: Tuple[str, ...] = (PDF_MIME_TYPE, DOCX_MIME_TYPE, TEXT_MIME_TYPE)

@dataclass
class ChunkingConfig:
    """Configuration for text chunking."""
    chunk_size: int = int(os.getenv('CHUNK_SIZE', 1000))
    chunk_overlap: int = int(os.getenv('CHUNK_OVERLAP', 200))

    def __post_init__(self):
        if self.chunk_size <= 0:
            raise ConfigurationError(f"chunk_size must be positive, got {self.chunk_size}")
        if self.chunk_overlap < 0:
            raise ConfigurationError(f"chunk_overlap must not be negative, got {self.chunk_overlap}")
        if self.chunk_overlap >= self.chunk_size:
            raise ConfigurationError(
                f"chunk_overlap ({self.chunk_overlap}) must be smaller than "
                f"chunk_size ({self.chunk_size})"
            )

@dataclass
class UploadConfig:
    """Limits applied to uploads before the ingestion pipeline runs."""
    allowed_mime_types: Tuple[str, ...] = SUPPORTED_MIME_TYPES
    max_upload_bytes: int = int(os.getenv('MAX_UPLOAD_BYTES', 10 * 1024 * 1024))  # 10 MiB

@dataclass
class ProcessorConfig:
    """Configuration for the ingestion pipeline."""
    chunking_config: ChunkingConfig = field(default_factory=ChunkingConfig)
    # 1 keeps the per-chunk embed-then-persist loop strictly sequential
    max_concurrent_embeddings: int = int(os.getenv('MAX_CONCURRENT_EMBEDDINGS', 1))

    def __post_init__(self):
        if self.max_concurrent_embeddings < 1:
            raise ConfigurationError(
                f"max_concurrent_embeddings must be at least 1, got {self.max_concurrent_embeddings}"
            )
