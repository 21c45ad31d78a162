"""FastAPI dependency injection for embedstore."""

from ....composition.container import get_document_store
from ....core.services import DocumentStoreService

__all__ = ["get_document_store", "get_store"]


def get_store() -> DocumentStoreService:
    """Request dependency resolving the process-wide document store.

    Tests replace it through ``app.dependency_overrides``.
    """
    return get_document_store()
