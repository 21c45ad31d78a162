"""Pydantic models for API requests and responses."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from ....core.domain import Document, ScoredResult


class DocumentIn(BaseModel):
    """A document submitted for indexing."""

    content: str = Field(..., min_length=1, description="Text to embed and store")
    metadata: dict[str, Any] = Field(default_factory=dict, description="Filterable attributes")
    id: str | None = Field(None, description="Document id; generated when omitted")


class AddDocumentsRequest(BaseModel):
    """Request model for adding documents."""

    documents: list[DocumentIn] = Field(..., min_length=1)


class AddDocumentsResponse(BaseModel):
    """Ids of the stored documents, in request order."""

    ids: list[str]


class DeleteDocumentsRequest(BaseModel):
    """Request model for deleting documents."""

    ids: list[str] = Field(..., min_length=1)


class DeleteDocumentsResponse(BaseModel):
    deleted: int = Field(..., description="Number of documents removed")


class DocumentOut(BaseModel):
    """A stored document. Vectors are never returned."""

    id: str
    content: str
    metadata: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_document(cls, document: Document) -> "DocumentOut":
        return cls(id=document.doc_id, content=document.content, metadata=document.metadata)


class SearchRequest(BaseModel):
    """Request model for a similarity search."""

    query: str = Field(
        ...,
        description="Natural-language query",
        json_schema_extra={"example": "how do I rotate credentials"},
    )
    k: int | None = Field(None, ge=0, description="Number of results (server default if omitted)")
    filter: dict[str, Any] | None = Field(
        None,
        description="Metadata filter using $eq, $ne, $in, $nin, $gt, $gte, $lt, $lte, $and, $or, $not",
        json_schema_extra={"example": {"source": "handbook", "year": {"$gte": 2023}}},
    )


class MMRSearchRequest(SearchRequest):
    """Request model for a diversified (MMR) search."""

    fetch_k: int | None = Field(None, ge=0, description="Candidates fetched before re-ranking")
    lambda_mult: float | None = Field(
        None, ge=0.0, le=1.0, description="1 for pure relevance, 0 for maximum diversity"
    )


class SearchHit(BaseModel):
    document: DocumentOut
    score: float = Field(..., description="Similarity score (distance for euclidean)")

    @classmethod
    def from_result(cls, result: ScoredResult) -> "SearchHit":
        return cls(document=DocumentOut.from_document(result.document), score=result.score)


class SearchResponse(BaseModel):
    """Search results, best first."""

    query: str
    results: list[SearchHit] = Field(default_factory=list)


class StatsResponse(BaseModel):
    count: int
    dimension: int
    metric: str
    filter_strategy: str
    embedder: str


class HealthResponse(BaseModel):
    """Response model for health check."""

    status: str = Field(..., description="Health status")
    version: str = Field(..., description="API version")
    index: str = Field(..., description="Index status")


class ErrorDetail(BaseModel):
    """Structured error detail information."""

    type: str = Field(..., description="Exception type name")
    code: str = Field(..., description="Error code (e.g., ES_IDX_002)")
    message: str = Field(..., description="Human-readable error message")


class ErrorLocation(BaseModel):
    """Source location where error occurred."""

    model_config = ConfigDict(populate_by_name=True)

    class_name: str = Field(..., alias="class", description="Class name or <module>")
    method: str = Field(..., description="Method/function name")
    file: str = Field(..., description="Source file name")
    line: int = Field(..., description="Line number")
    timestamp: str | None = Field(None, description="When the error occurred")


class ErrorResponse(BaseModel):
    """Response model for structured errors.

    Example:
        {
            "error": {"type": "DimensionMismatchError", "code": "ES_IDX_002", "message": "..."},
            "location": {"class": "InMemoryVectorIndex", "method": "_to_array", ...},
            "context": {"expected": 384, "actual": 3},
            "stack_trace": ["Traceback...", ...]  # Only in debug mode
        }
    """

    error: ErrorDetail = Field(..., description="Error details including type, code, and message")
    location: ErrorLocation | None = Field(None, description="Source location of the error")
    context: dict | None = Field(None, description="Additional debugging context")
    cause: dict | None = Field(None, description="Underlying exception that caused this error")
    stack_trace: list[str] | None = Field(None, description="Stack trace (debug mode only)")
