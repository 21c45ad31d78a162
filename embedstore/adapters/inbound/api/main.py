"""FastAPI application serving an in-memory document store."""

import logging
import os

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .... import __version__
from ....composition.container import get_document_store, get_snapshot_repository
from ....config import settings, setup_logging
from ....core.domain.exceptions import EmbedStoreError
from ...common.exception_handler import (
    format_exception_json,
    get_http_status_code,
    log_exception,
)
from .routers import documents, health, search

setup_logging(level=settings.log_level, log_file=settings.log_file, json_format=settings.log_json)
logger = logging.getLogger(__name__)

# Full tracebacks in error responses
DEBUG_MODE = os.getenv("DEBUG", "false").lower() == "true"

app = FastAPI(
    title="embedstore API",
    description=(
        "Embedding-indexed document store. Add documents, then retrieve them by "
        "semantic similarity with optional metadata filters and MMR diversification."
    ),
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "DELETE"],
    allow_headers=["*"],
)

app.include_router(health.router)
app.include_router(documents.router)
app.include_router(search.router)


def _request_context(request: Request) -> dict[str, str]:
    return {"path": request.url.path, "method": request.method}


# =============================================================================
# Global Exception Handlers
# =============================================================================


@app.exception_handler(EmbedStoreError)
async def embedstore_error_handler(request: Request, exc: EmbedStoreError) -> JSONResponse:
    """Render store errors as their structured JSON with the mapped status.

    Client mistakes (4xx) are logged at WARNING so that bad queries and
    filters do not read as server faults.
    """
    status_code = get_http_status_code(exc)
    log_exception(
        exc,
        level=logging.WARNING if status_code < 500 else logging.ERROR,
        extra_context=_request_context(request),
    )
    return JSONResponse(status_code=status_code, content=exc.to_dict(include_trace=DEBUG_MODE))


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    log_exception(exc, extra_context=_request_context(request))
    return JSONResponse(
        status_code=get_http_status_code(exc),
        content=format_exception_json(exc, include_trace=DEBUG_MODE),
    )


# =============================================================================
# Lifecycle Events
# =============================================================================


@app.on_event("startup")
async def startup_event():
    """Restore the configured snapshot, if any, into the shared store."""
    logger.info("embedstore API %s starting (debug=%s)", __version__, DEBUG_MODE)

    if settings.snapshot_path is None or not settings.snapshot_path.exists():
        return
    store = get_document_store()
    loaded = get_snapshot_repository().load_into(store.index)
    logger.info("Restored %d documents from %s", loaded, settings.snapshot_path)


@app.on_event("shutdown")
async def shutdown_event():
    """Write the index back to the configured snapshot."""
    if settings.snapshot_path is not None:
        saved = get_snapshot_repository().save(get_document_store().index)
        logger.info("Saved %d documents to %s", saved, settings.snapshot_path)
    logger.info("embedstore API shutting down")


__all__ = ["app"]
