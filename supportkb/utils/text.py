"""
Text processing utilities.
"""

import logging
import re
from typing import List, Sequence, Union

import numpy as np

logger = logging.getLogger(__name__)

EXTENSION_PATTERN = re.compile(r'\.[^/.]+$')

def strip_null_bytes(text: str) -> str:
    """Remove NUL characters, which PostgreSQL text columns reject."""
    if not text:
        return ""
    return text.replace('\x00', '')

def title_from_filename(filename: str) -> str:
    """Strip the last extension from a filename: 'report.pdf' -> 'report'.

    A trailing dot is kept ('report.' stays 'report.'). A name that is only an
    extension, such as '.env', keeps the whole name so the title is never empty.
    """
    return EXTENSION_PATTERN.sub('', filename) or filename

def truncate_text(text: str, max_length: int = 100, suffix: str = "...") -> str:
    """Truncate text to specified length with suffix."""
    if not text:
        return ""

    text = str(text).strip()
    if len(text) <= max_length:
        return text

    truncated = text[:max_length - len(suffix)]
    return truncated.rstrip() + suffix

def format_embedding_vector(embedding: Union[Sequence[float], np.ndarray]) -> str:
    """Convert embedding to PostgreSQL vector format: '[0.1,-0.2,...]'."""
    if isinstance(embedding, np.ndarray):
        embedding = embedding.astype(np.float32).tolist()
    return f"[{','.join(map(str, embedding))}]"

def parse_embedding_vector(value: str) -> List[float]:
    """Parse the textual pgvector format back into a list of floats."""
    value = value.strip()
    if not (value.startswith('[') and value.endswith(']')):
        raise ValueError(f"Not a vector literal: {truncate_text(value, 40)}")
    body = value[1:-1].strip()
    if not body:
        return []
    return [float(part) for part in body.split(',')]
