"""
Document Management API Router

Endpoints for the knowledge base documents of a support bot:
- Upload and ingest a document (synchronously)
- List documents with chunk counts
- Get one document with its chunks
- Delete a document and its chunks
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, Path, Query, UploadFile

from ..dependencies import get_processor, get_settings, get_store
from ..schemas import (
    ChunkSummary,
    DeleteResponse,
    DocumentDetail,
    DocumentListResponse,
    DocumentSummary,
    UploadResponse,
)
from ...components.document_processing.processor import DocumentProcessor, validate_upload
from ...components.vector_store.base import VectorStore
from ...config.settings import Settings
from ...models.records import DocumentRecord, UploadedFile
from ...utils.errors import (
    DatabaseError,
    ExtractionFailed,
    UnsupportedFileType,
    UploadTooLarge,
)

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/documents",
    tags=["documents"],
    responses={404: {"description": "Not found"}},
)

def _summary(document: DocumentRecord) -> DocumentSummary:
    return DocumentSummary(
        id=document.id,
        title=document.title,
        filename=document.filename,
        client_id=document.client_id,
        created_at=document.created_at,
        chunk_count=document.chunk_count or 0
    )

async def read_upload_content(file: UploadFile, limit: int) -> bytes:
    """Read an upload without buffering more than limit + 1 bytes."""
    if file.size is not None and file.size > limit:
        raise UploadTooLarge(file.size, limit)
    content = await file.read(limit + 1)
    if len(content) > limit:
        raise UploadTooLarge(file.size or len(content), limit)
    return content

def _upload_message(result) -> str:
    if result.aborted:
        return "Document was deleted while it was being processed"
    if result.degraded:
        return "Document stored, but no chunks could be embedded; it will not be used for answers"
    if result.failed_chunks:
        return (
            f"Document processed with {result.failed_chunks} of "
            f"{result.total_chunks} chunks skipped"
        )
    return "Document processed successfully"

@router.post("", response_model=UploadResponse)
async def upload_document(
    file: UploadFile = File(...),
    client_id: Optional[str] = Form(None),
    processor: DocumentProcessor = Depends(get_processor),
    settings: Settings = Depends(get_settings)
):
    """
    Upload and ingest a document

    The file is extracted, chunked and embedded before the response is sent.
    """
    filename = file.filename or "upload"
    try:
        content = await read_upload_content(file, settings.upload.max_upload_bytes)
    except UploadTooLarge as e:
        logger.warning(f"Rejected upload {filename}: {str(e)}")
        raise HTTPException(status_code=400, detail=str(e))

    upload = UploadedFile(
        filename=filename,
        mime_type=file.content_type or "application/octet-stream",
        content=content,
        client_id=client_id
    )

    try:
        validate_upload(upload, settings.upload)
    except (UnsupportedFileType, UploadTooLarge) as e:
        logger.warning(f"Rejected upload {upload.filename}: {str(e)}")
        raise HTTPException(status_code=400, detail=str(e))

    try:
        result = await processor.ingest(upload)
    except UnsupportedFileType as e:
        raise HTTPException(status_code=400, detail=str(e))
    except ExtractionFailed as e:
        raise HTTPException(status_code=422, detail=str(e))
    except DatabaseError as e:
        raise HTTPException(status_code=500, detail=f"Failed to store document: {str(e)}")

    return UploadResponse(
        document_id=result.document_id,
        chunk_count=result.chunk_count,
        total_chunks=result.total_chunks,
        failed_chunks=result.failed_chunks,
        degraded=result.degraded,
        aborted=result.aborted,
        message=_upload_message(result)
    )

@router.get("", response_model=DocumentListResponse)
async def list_documents(
    client_id: Optional[str] = Query(None, description="Only documents of this client"),
    store: VectorStore = Depends(get_store)
):
    """List documents, newest first, with their chunk counts"""
    try:
        documents = await store.list_documents(client_id=client_id)
    except DatabaseError as e:
        raise HTTPException(status_code=500, detail=str(e))
    return DocumentListResponse(
        documents=[_summary(document) for document in documents],
        total=len(documents)
    )

@router.get("/{document_id}", response_model=DocumentDetail)
async def get_document(
    document_id: int = Path(..., description="The ID of the document to retrieve"),
    store: VectorStore = Depends(get_store)
):
    """Get a document with its chunks"""
    try:
        document = await store.get_document(document_id)
        if document is None:
            raise HTTPException(status_code=404, detail="Document not found")
        chunks = await store.get_chunks(document_id)
    except DatabaseError as e:
        raise HTTPException(status_code=500, detail=str(e))

    summary = _summary(document)
    return DocumentDetail(
        **summary.model_dump(),
        content=document.content,
        chunks=[
            ChunkSummary(
                id=chunk.id,
                chunk_index=chunk.chunk_index,
                content=chunk.content,
                has_embedding=chunk.has_embedding
            )
            for chunk in chunks
        ]
    )

@router.delete("/{document_id}", response_model=DeleteResponse)
async def delete_document(
    document_id: int = Path(..., description="The ID of the document to delete"),
    processor: DocumentProcessor = Depends(get_processor)
):
    """
    Delete a document and all of its chunks

    Deleting an id that does not exist succeeds with ``deleted: false``.
    """
    try:
        deleted = await processor.delete_document(document_id)
    except DatabaseError as e:
        raise HTTPException(status_code=500, detail=f"Failed to delete document: {str(e)}")
    return DeleteResponse(document_id=document_id, deleted=deleted)
