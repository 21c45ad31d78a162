"""Document ingestion and lookup endpoints."""

import logging

from fastapi import APIRouter, Depends, HTTPException

from .....core.domain import Document
from .....core.services import DocumentStoreService
from ..deps import get_store
from ..models import (
    AddDocumentsRequest,
    AddDocumentsResponse,
    DeleteDocumentsRequest,
    DeleteDocumentsResponse,
    DocumentOut,
    ErrorResponse,
    StatsResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1", tags=["documents"])


@router.post(
    "/documents",
    response_model=AddDocumentsResponse,
    status_code=201,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid request"},
        422: {"model": ErrorResponse, "description": "Invalid document or vector"},
        502: {"model": ErrorResponse, "description": "Embedding provider failed"},
    },
)
def add_documents(
    request: AddDocumentsRequest,
    store: DocumentStoreService = Depends(get_store),
) -> AddDocumentsResponse:
    """Embed and store documents. Re-using an id replaces the stored document."""
    documents = [
        Document(content=doc.content, metadata=doc.metadata, doc_id=doc.id)
        for doc in request.documents
    ]
    ids = store.add_documents(documents)
    return AddDocumentsResponse(ids=ids)


@router.delete("/documents", response_model=DeleteDocumentsResponse)
def delete_documents(
    request: DeleteDocumentsRequest,
    store: DocumentStoreService = Depends(get_store),
) -> DeleteDocumentsResponse:
    """Delete documents by id. Unknown ids are ignored."""
    return DeleteDocumentsResponse(deleted=store.delete_documents(request.ids))


@router.get(
    "/documents/{doc_id}",
    response_model=DocumentOut,
    responses={404: {"description": "Document not found"}},
)
def get_document(doc_id: str, store: DocumentStoreService = Depends(get_store)) -> DocumentOut:
    """Fetch one stored document."""
    found = store.get_documents([doc_id])
    if not found:
        raise HTTPException(status_code=404, detail=f"Document not found: {doc_id}")
    return DocumentOut.from_document(found[0])


@router.get("/stats", response_model=StatsResponse)
def get_stats(store: DocumentStoreService = Depends(get_store)) -> StatsResponse:
    """Index size and configuration."""
    return StatsResponse(**store.get_stats())
