"""
Chunk store package: the abstract interface and its two backends.
"""

import logging

from .base import VectorStore
from .memory import InMemoryVectorStore
from .postgres import PostgresVectorStore
from ...config.settings import Settings

logger = logging.getLogger(__name__)

def create_vector_store(settings: Settings) -> VectorStore:
    """Build the store selected by VECTOR_STORE_TYPE."""
    store_type = settings.app.vector_store_type
    dimension = settings.embedding.embedding_dimension

    if store_type == "memory":
        logger.info("Using in-memory vector store")
        return InMemoryVectorStore(embedding_dimension=dimension)

    logger.info("Using PostgreSQL vector store")
    return PostgresVectorStore.from_config(
        settings.database,
        index_config=settings.index,
        embedding_dimension=dimension
    )

__all__ = [
    'VectorStore',
    'InMemoryVectorStore',
    'PostgresVectorStore',
    'create_vector_store',
]
