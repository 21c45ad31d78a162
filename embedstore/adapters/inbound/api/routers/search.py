"""Similarity search endpoints."""

import logging

from fastapi import APIRouter, Depends

from .....core.services import DocumentStoreService
from ..deps import get_store
from ..models import ErrorResponse, MMRSearchRequest, SearchHit, SearchRequest, SearchResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1", tags=["search"])

_ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Invalid query, k or filter"},
    404: {"model": ErrorResponse, "description": "Index is empty"},
    408: {"model": ErrorResponse, "description": "Search cancelled"},
    502: {"model": ErrorResponse, "description": "Embedding provider failed"},
}


@router.post("/search", response_model=SearchResponse, responses=_ERROR_RESPONSES)
def search(
    request: SearchRequest,
    store: DocumentStoreService = Depends(get_store),
) -> SearchResponse:
    """Return the documents most similar to the query, best first.

    Args:
        request: Query text, result count and optional metadata filter.

    Returns:
        SearchResponse with scored hits (vectors omitted).
    """
    results = store.similarity_search_with_score(request.query, request.k, request.filter)
    logger.debug("Search returned %d hits", len(results))
    return SearchResponse(query=request.query, results=[SearchHit.from_result(r) for r in results])


@router.post("/search/mmr", response_model=SearchResponse, responses=_ERROR_RESPONSES)
def search_mmr(
    request: MMRSearchRequest,
    store: DocumentStoreService = Depends(get_store),
) -> SearchResponse:
    """Return relevant but mutually diverse documents (maximal marginal relevance)."""
    results = store.max_marginal_relevance_search_with_score(
        request.query,
        request.k,
        request.filter,
        fetch_k=request.fetch_k,
        lambda_mult=request.lambda_mult,
    )
    return SearchResponse(query=request.query, results=[SearchHit.from_result(r) for r in results])
