"""Root of the embedstore exception hierarchy.

Every error carries a stable ``error_code`` (``ES_<AREA>_<NNN>``), the code
location that raised it, an optional underlying cause, and free-form context
(ids, dimensions, filter text ...). ``to_dict`` renders all of it as the JSON
body the API returns and the CLI prints.
"""

import inspect
import traceback
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import PurePath
from types import FrameType
from typing import Any


@dataclass(frozen=True)
class ExceptionContext:
    """Where an exception was constructed."""

    class_name: str
    method_name: str
    file_name: str
    line_number: int
    timestamp: str = field(default_factory=lambda: datetime.now(UTC).isoformat())

    @classmethod
    def from_frame(cls, frame: FrameType | None) -> "ExceptionContext":
        if frame is None:
            return cls("<unknown>", "<unknown>", "<unknown>", 0)
        owner = frame.f_locals.get("self")
        return cls(
            class_name=type(owner).__name__ if owner is not None else "<module>",
            method_name=frame.f_code.co_name,
            file_name=PurePath(frame.f_code.co_filename).name,
            line_number=frame.f_lineno,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "class": self.class_name,
            "method": self.method_name,
            "file": self.file_name,
            "line": self.line_number,
            "timestamp": self.timestamp,
        }


class EmbedStoreError(Exception):
    """Base class for every error the store raises.

    Example:
        try:
            vectors = client.embed(texts)
        except ConnectionError as e:
            raise EmbeddingAPIError(
                "Embedding service unreachable",
                cause=e,
                context={"batch_size": len(texts)},
            ) from e
    """

    error_code: str = "ES_ERR_001"

    def __init__(
        self,
        message: str,
        *,
        cause: Exception | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.cause = cause
        self.extra_context = dict(context or {})
        self.location = ExceptionContext.from_frame(self._raise_site())

    def _raise_site(self) -> FrameType | None:
        # Walk past this __init__ and any subclass __init__ chained to it
        frame = inspect.currentframe()
        while frame is not None and frame.f_locals.get("self") is self:
            frame = frame.f_back
        return frame

    @property
    def cause_trace(self) -> list[str]:
        """Formatted traceback of ``cause``, empty when there is none."""
        if self.cause is None:
            return []
        lines = traceback.format_exception(type(self.cause), self.cause, self.cause.__traceback__)
        return [line.rstrip() for line in lines if line.strip()]

    def to_dict(self, include_trace: bool = False) -> dict[str, Any]:
        """JSON-ready description of the error.

        Args:
            include_trace: Add the cause's stack trace (debug responses only).
        """
        result: dict[str, Any] = {
            "error": {
                "type": type(self).__name__,
                "code": self.error_code,
                "message": self.message,
            },
            "location": self.location.to_dict(),
        }
        if self.extra_context:
            result["context"] = dict(self.extra_context)
        if self.cause is not None:
            result["cause"] = {
                "type": type(self.cause).__name__,
                "message": str(self.cause),
            }
            if include_trace:
                result["stack_trace"] = self.cause_trace
        return result
