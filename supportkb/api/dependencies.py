"""
FastAPI dependencies resolving the components built in create_app.
"""

import secrets
from typing import Optional

from fastapi import HTTPException, Request, Security
from fastapi.security import APIKeyHeader

from ..components.document_processing.processor import DocumentProcessor
from ..components.vector_store.base import VectorStore
from ..config.settings import Settings
from ..services.chat import ChatResponder
from ..services.retriever import RetrievalService
from ..utils.monitoring import ProcessingMonitor

API_KEY_NAME = "X-API-Key"
api_key_header = APIKeyHeader(name=API_KEY_NAME, auto_error=False)

def get_settings(request: Request) -> Settings:
    return request.app.state.settings

def get_store(request: Request) -> VectorStore:
    return request.app.state.store

def get_processor(request: Request) -> DocumentProcessor:
    return request.app.state.processor

def get_retriever(request: Request) -> RetrievalService:
    return request.app.state.retriever

def get_responder(request: Request) -> ChatResponder:
    return request.app.state.responder

def get_monitor(request: Request) -> ProcessingMonitor:
    return request.app.state.monitor

async def verify_api_key(request: Request, api_key: Optional[str] = Security(api_key_header)):
    """Require X-API-Key on /api routes when ADMIN_API_KEY is configured."""
    expected = request.app.state.settings.app.admin_api_key
    if not expected:
        return None
    if not api_key or not secrets.compare_digest(api_key, expected):
        raise HTTPException(
            status_code=401,
            detail="Invalid API key",
            headers={"WWW-Authenticate": API_KEY_NAME},
        )
    return api_key
