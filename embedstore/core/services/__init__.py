"""Application services built on the ports."""

from .document_store_service import DocumentStoreService
from .mmr import MMRReranker, maximal_marginal_relevance
from .retrieval_service import RetrievalService

__all__ = [
    "DocumentStoreService",
    "MMRReranker",
    "RetrievalService",
    "maximal_marginal_relevance",
]
