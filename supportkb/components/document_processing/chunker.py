"""
Fixed-size overlapping text chunking.
"""

import logging
from typing import List

from ...config.processor import ChunkingConfig
from ...utils.errors import ConfigurationError

logger = logging.getLogger(__name__)

def chunk_text(text: str, chunk_size: int = 1000, overlap: int = 200) -> List[str]:
    """
    Split text into overlapping character windows.

    The window [start, start + chunk_size) is trimmed and kept when non-empty;
    the cursor then advances by chunk_size - overlap until a window reaches
    the end of the text.

    Raises:
        ConfigurationError: if the parameters would never advance the cursor
    """
    if chunk_size <= 0:
        raise ConfigurationError(f"chunk_size must be positive, got {chunk_size}")
    if overlap < 0:
        raise ConfigurationError(f"overlap must not be negative, got {overlap}")
    if overlap >= chunk_size:
        raise ConfigurationError(
            f"overlap ({overlap}) must be smaller than chunk_size ({chunk_size})"
        )

    chunks = []
    text_length = len(text)
    start = 0

    while start < text_length:
        end = min(start + chunk_size, text_length)
        window = text[start:end].strip()
        if window:
            chunks.append(window)

        if end >= text_length:
            break
        start = start + chunk_size - overlap

    return chunks

class TextChunker:
    """Chunker bound to a ChunkingConfig."""

    def __init__(self, config: ChunkingConfig = None):
        self.config = config or ChunkingConfig()

    @property
    def chunk_size(self) -> int:
        return self.config.chunk_size

    @property
    def overlap(self) -> int:
        return self.config.chunk_overlap

    def chunk(self, text: str) -> List[str]:
        chunks = chunk_text(text, self.chunk_size, self.overlap)
        logger.debug(f"Split {len(text)} characters into {len(chunks)} chunks")
        return chunks
