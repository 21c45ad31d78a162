"""Health check endpoints."""

import logging

from fastapi import APIRouter, Depends

from ..... import __version__
from .....core.domain.exceptions import EmbedStoreError
from .....core.services import DocumentStoreService
from ..deps import get_store
from ..models import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Basic health check endpoint.

    Returns:
        HealthResponse with current status and version.
    """
    return HealthResponse(status="healthy", version=__version__, index="not_checked")


@router.get("/ready", response_model=HealthResponse)
def readiness_check(store: DocumentStoreService = Depends(get_store)) -> HealthResponse:
    """Readiness probe.

    Checks that the store can be built and reports the index size.
    """
    try:
        stats = store.get_stats()
        index_status = f"ready ({stats['count']} docs, {stats['metric']}, dim={stats['dimension']})"
        status = "ready"
    except EmbedStoreError as e:
        logger.warning("Readiness check failed: %s", e)
        index_status = f"error: {e.message}"
        status = "not_ready"

    return HealthResponse(status=status, version=__version__, index=index_status)
