"""
Retrieval service: embed a query and fetch the most similar chunks.
"""

import logging
from typing import List, Optional

from .embeddings import LLMClient
from ..components.vector_store.base import VectorStore
from ..models.records import ScoredChunk
from ..utils.errors import EmbeddingFailed
from ..utils.text import truncate_text

logger = logging.getLogger(__name__)

class RetrievalService:
    """Finds context chunks for a query.

    Retrieval is an enhancement to the chat reply, never a requirement: if the
    query cannot be embedded the service logs it and returns nothing.
    """

    def __init__(self, client: LLMClient, store: VectorStore, default_k: int = 3):
        self.client = client
        self.store = store
        self.default_k = default_k

    async def search(
        self,
        query: str,
        k: Optional[int] = None,
        client_id: Optional[str] = None
    ) -> List[ScoredChunk]:
        """Scored nearest chunks for ``query``, best first."""
        k = self.default_k if k is None else k
        if k < 1:
            raise ValueError("k must be positive")

        try:
            query_embedding = await self.client.embed(query)
        except EmbeddingFailed as e:
            logger.warning(
                f"Could not embed query '{truncate_text(query, 50)}', "
                f"continuing without context: {str(e)}"
            )
            return []

        results = await self.store.nearest_neighbors(query_embedding, k, client_id=client_id)
        logger.info(f"Found {len(results)} chunks for query: {truncate_text(query, 50)}")
        return results

    async def retrieve(
        self,
        query: str,
        k: Optional[int] = None,
        client_id: Optional[str] = None
    ) -> List[str]:
        """Chunk texts for ``query`` in similarity order, scores dropped."""
        results = await self.search(query, k, client_id=client_id)
        return [result.content for result in results]

    @staticmethod
    def build_context(chunks: List[str]) -> str:
        return "\n\n".join(chunks)
