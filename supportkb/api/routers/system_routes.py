"""
System API Router

Knowledge base statistics: document and chunk counts plus ingestion timings.
"""

import time

from fastapi import APIRouter, Depends, HTTPException

from ..dependencies import get_monitor, get_settings, get_store
from ..schemas import SystemStats
from ... import __version__
from ...components.vector_store.base import VectorStore
from ...config.settings import Settings
from ...utils.errors import DatabaseError
from ...utils.monitoring import ProcessingMonitor

router = APIRouter(
    prefix="/system",
    tags=["system"],
)

# Start time for uptime calculation
START_TIME = time.time()

@router.get("/stats", response_model=SystemStats)
async def get_system_stats(
    store: VectorStore = Depends(get_store),
    monitor: ProcessingMonitor = Depends(get_monitor),
    settings: Settings = Depends(get_settings)
):
    """Get document and chunk counts and ingestion statistics"""
    try:
        document_count = await store.count_documents()
        chunk_count = await store.count_chunks()
    except DatabaseError as e:
        raise HTTPException(status_code=500, detail=str(e))

    avg_chunks = chunk_count / document_count if document_count else 0.0

    return SystemStats(
        document_count=document_count,
        chunk_count=chunk_count,
        avg_chunks_per_document=round(avg_chunks, 2),
        embedding_dimension=settings.embedding.embedding_dimension,
        vector_store=settings.app.vector_store_type,
        uptime_seconds=round(time.time() - START_TIME, 2),
        ingestion=monitor.get_statistics(),
        version=__version__
    )
