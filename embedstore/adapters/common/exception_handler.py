"""Error rendering shared by the HTTP API and the CLI.

Store errors already know how to serialize themselves; anything else is
wrapped in the same JSON shape with the ``PYTHON_ERR`` code so clients only
ever parse one format.
"""

import logging
import traceback
from pathlib import PurePath
from typing import Any

from ...core.domain.exceptions import (
    DimensionMismatchError,
    EmbeddingAPIError,
    EmbeddingRateLimitError,
    EmbedStoreError,
    EmptyIndexError,
    InvalidDocumentError,
    SearchCancelledError,
    ValidationError,
)

logger = logging.getLogger(__name__)

GENERIC_ERROR_CODE = "PYTHON_ERR"

# First match wins, so subclasses come before their bases
HTTP_STATUS_BY_ERROR: tuple[tuple[type[Exception] | tuple[type[Exception], ...], int], ...] = (
    (ValidationError, 400),
    ((DimensionMismatchError, InvalidDocumentError), 422),
    (EmptyIndexError, 404),
    (SearchCancelledError, 408),
    (EmbeddingRateLimitError, 429),
    (EmbeddingAPIError, 502),
    (EmbedStoreError, 500),
    (ValueError, 400),
    ((ConnectionError, TimeoutError), 503),
)


def _generic_payload(exc: Exception, include_trace: bool) -> dict[str, Any]:
    frames = traceback.extract_tb(exc.__traceback__) if exc.__traceback__ else []
    last = frames[-1] if frames else None

    payload: dict[str, Any] = {
        "error": {
            "type": type(exc).__name__,
            "code": GENERIC_ERROR_CODE,
            "message": str(exc),
        },
        "location": {
            "class": "<unknown>",
            "method": last.name if last else "<unknown>",
            "file": PurePath(last.filename).name if last else "<unknown>",
            "line": last.lineno if last else 0,
        },
    }
    if include_trace:
        payload["stack_trace"] = [
            line.strip()
            for line in traceback.format_exception(type(exc), exc, exc.__traceback__)
            if line.strip()
        ]
    return payload


def format_exception_json(
    exc: Exception,
    include_trace: bool = False,
    extra_context: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Structured JSON for any exception.

    Args:
        exc: The exception to render.
        include_trace: Add the formatted stack trace.
        extra_context: Merged into the ``context`` block (request path etc.).

    Returns:
        Dict with ``error``, ``location`` and optionally ``context`` and
        ``stack_trace``.
    """
    if isinstance(exc, EmbedStoreError):
        payload = exc.to_dict(include_trace=include_trace)
    else:
        payload = _generic_payload(exc, include_trace)

    if extra_context:
        payload.setdefault("context", {}).update(extra_context)
    return payload


def log_exception(
    exc: Exception,
    log: logging.Logger | None = None,
    level: int = logging.ERROR,
    extra_context: dict[str, Any] | None = None,
) -> None:
    """Log ``exc`` with its error code and context as structured fields.

    With ``setup_logging(json_format=True)`` the fields land in the JSON line;
    the text format shows the one-line summary plus the traceback.
    """
    (log or logger).log(
        level,
        "%s [%s]: %s",
        type(exc).__name__,
        get_error_code(exc),
        exc,
        exc_info=(type(exc), exc, exc.__traceback__),
        extra={"error_code": get_error_code(exc), "request": extra_context or {}},
    )


def get_error_code(exc: Exception) -> str:
    """``ES_*`` code for store errors, ``PYTHON_ERR`` otherwise."""
    if isinstance(exc, EmbedStoreError):
        return exc.error_code
    return GENERIC_ERROR_CODE


def get_http_status_code(exc: Exception) -> int:
    """HTTP status for ``exc`` (500 when nothing more specific applies)."""
    for error_types, status in HTTP_STATUS_BY_ERROR:
        if isinstance(exc, error_types):
            return status
    return 500
