"""Index Persistence Port Interface."""

from abc import ABC, abstractmethod

from .vector_index_port import VectorIndexPort


class IndexPersistencePort(ABC):
    """Abstract interface for saving and restoring index contents."""

    @abstractmethod
    def save(self, index: VectorIndexPort) -> int:
        """Replace the stored snapshot with the index contents."""
        ...

    @abstractmethod
    def load_into(self, index: VectorIndexPort) -> int:
        """Insert the stored snapshot into ``index`` and return the count."""
        ...

    @abstractmethod
    def exists(self) -> bool: ...
