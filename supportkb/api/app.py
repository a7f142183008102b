"""
FastAPI application factory for the knowledge base API.

Components are built once here and shared through ``app.state``; the store
connects on start-up and is closed on shutdown.
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .routers import api_router
from .. import __version__
from ..components.document_processing.chunker import TextChunker
from ..components.document_processing.extractor import TextExtractor
from ..components.document_processing.processor import DocumentProcessor
from ..components.vector_store import VectorStore, create_vector_store
from ..config.settings import Settings, load_settings
from ..services.chat import ChatResponder
from ..services.embeddings import LLMClient, OpenAIClient
from ..services.retriever import RetrievalService
from ..utils.monitoring import ProcessingMonitor

logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    store: VectorStore = app.state.store
    await store.initialize()
    logger.info("Knowledge base API started")
    try:
        yield
    finally:
        await store.close()
        logger.info("Knowledge base API stopped")

def create_app(
    settings: Optional[Settings] = None,
    client: Optional[LLMClient] = None,
    store: Optional[VectorStore] = None
) -> FastAPI:
    """Build the API. ``client`` and ``store`` default to the configured backends."""
    settings = settings or load_settings()
    client = client or OpenAIClient(settings.embedding, settings.chat)
    store = store or create_vector_store(settings)
    monitor = ProcessingMonitor()

    retriever = RetrievalService(client, store, default_k=settings.chat.retriever_k)
    processor = DocumentProcessor(
        client,
        store,
        extractor=TextExtractor(),
        chunker=TextChunker(settings.chunking),
        config=settings.processor,
        monitor=monitor
    )

    app = FastAPI(
        title="Support Bot Knowledge Base",
        description="Document ingestion, vector search and grounded chat for the support bot dashboard",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan
    )

    app.state.settings = settings
    app.state.client = client
    app.state.store = store
    app.state.monitor = monitor
    app.state.retriever = retriever
    app.state.processor = processor
    app.state.responder = ChatResponder(client, retriever, settings.chat)

    origins = [origin.strip() for origin in settings.app.cors_origins.split(",") if origin.strip()]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins or ["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/")
    async def root():
        return {
            "app": "Support Bot Knowledge Base",
            "version": __version__,
            "documentation": "/docs",
            "health_check": "/health"
        }

    @app.get("/health")
    async def health_check():
        return {"status": "healthy"}

    app.include_router(api_router, prefix="/api")
    return app
