"""Embedding Port Interface."""

from abc import ABC, abstractmethod


class EmbeddingPort(ABC):
    """Abstract interface for embedding providers.

    ``embed`` returns exactly one vector per input text, in input order.
    Implementations raise ``EmbeddingError`` (or a subclass) on failure.
    """

    @property
    @abstractmethod
    def dimension(self) -> int:
        """Length of every vector this provider returns."""
        ...

    @abstractmethod
    def embed(self, texts: list[str]) -> list[list[float]]: ...

    def embed_query(self, text: str) -> list[float]:
        """Embed a single query text."""
        return self.embed([text])[0]
