"""
API Routers Package

- document_routes: upload, list, get and delete knowledge base documents
- search_routes: vector similarity search over chunks
- chat_routes: chat test console
- system_routes: counts and ingestion statistics
"""

from fastapi import APIRouter, Depends

from .chat_routes import router as chat_router
from .document_routes import router as document_router
from .search_routes import router as search_router
from .system_routes import router as system_router
from ..dependencies import verify_api_key

# Create a combined router
api_router = APIRouter(dependencies=[Depends(verify_api_key)])

api_router.include_router(document_router)
api_router.include_router(search_router)
api_router.include_router(chat_router)
api_router.include_router(system_router)
