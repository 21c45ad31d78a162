"""Embedding provider adapters."""

from .gemini_adapter import GeminiEmbeddingAdapter
from .hash_adapter import HashEmbeddingAdapter
from .sentence_transformer_adapter import SentenceTransformerEmbeddingAdapter

__all__ = [
    "GeminiEmbeddingAdapter",
    "HashEmbeddingAdapter",
    "SentenceTransformerEmbeddingAdapter",
]
