"""
Search API Router

Vector similarity search over the knowledge base chunks.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException

from ..dependencies import get_retriever
from ..schemas import SearchRequest, SearchResponse, SearchResult
from ...services.retriever import RetrievalService
from ...utils.errors import DatabaseError

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/search",
    tags=["search"],
)

@router.post("", response_model=SearchResponse)
async def search_documents(
    search_params: SearchRequest,
    retriever: RetrievalService = Depends(get_retriever)
):
    """
    Find the chunks most similar to a query

    Results are ordered by cosine similarity, best first. If the query cannot
    be embedded the result list is empty rather than an error.
    """
    try:
        results = await retriever.search(
            search_params.query,
            k=search_params.k,
            client_id=search_params.client_id
        )
    except DatabaseError as e:
        raise HTTPException(status_code=500, detail=f"Search failed: {str(e)}")

    return SearchResponse(
        query=search_params.query,
        results=[
            SearchResult(
                chunk_id=result.chunk_id,
                document_id=result.document_id,
                content=result.content,
                similarity=result.similarity
            )
            for result in results
        ],
        total_results=len(results)
    )
