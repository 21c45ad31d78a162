"""Ports: the capability interfaces adapters implement."""

from .embedding_port import EmbeddingPort
from .persistence_port import IndexPersistencePort
from .vector_index_port import FilterStrategy, VectorIndexPort

__all__ = [
    "EmbeddingPort",
    "FilterStrategy",
    "IndexPersistencePort",
    "VectorIndexPort",
]
