"""Vector index adapters."""

from .in_memory_adapter import InMemoryVectorIndex
from .locks import KeyedLock

__all__ = ["InMemoryVectorIndex", "KeyedLock"]
