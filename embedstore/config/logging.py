"""Logging setup for the ``embedstore`` logger tree.

Modules log through ``logging.getLogger(__name__)``; everything under
``embedstore.*`` propagates to the handlers installed here.
"""

import json
import logging
import sys
from pathlib import Path
from typing import Any

PACKAGE_LOGGER = "embedstore"

TEXT_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s"

# SDK loggers that are chatty at INFO while embedding batches
NOISY_LOGGERS = ("httpx", "httpcore", "sentence_transformers", "google_genai")

# Attributes every LogRecord carries; anything else arrived via ``extra=``
_RECORD_ATTRS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", None, None))
) | {"message", "asctime", "taskName"}


class JSONExceptionFormatter(logging.Formatter):
    """One JSON object per line.

    ``extra=`` fields (``doc_count``, ``k``, ``metric`` ...) are kept under
    ``"fields"``. Store errors add their ``code`` and ``context`` to the
    exception block.
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "location": {
                "file": record.filename,
                "function": record.funcName,
                "line": record.lineno,
            },
        }

        fields = {k: v for k, v in vars(record).items() if k not in _RECORD_ATTRS}
        if fields:
            entry["fields"] = fields

        if record.exc_info and record.exc_info[0] is not None:
            exc = record.exc_info[1]
            block: dict[str, Any] = {
                "type": record.exc_info[0].__name__,
                "message": str(exc) if exc else None,
                "traceback": self.formatException(record.exc_info),
            }
            code = getattr(exc, "error_code", None)
            if code:
                block["code"] = code
                block["context"] = getattr(exc, "context", {})
            entry["exception"] = block

        return json.dumps(entry, default=str)


def setup_logging(
    level: str = "INFO",
    log_file: Path | None = None,
    json_format: bool = False,
) -> logging.Logger:
    """Install handlers on the package logger, replacing earlier ones.

    Args:
        level: Level name for the package logger; unknown names fall back to INFO.
        log_file: Also write to this file (parent directories are created).
        json_format: Emit JSON lines instead of the text format.

    Returns:
        The ``embedstore`` logger.
    """
    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    for old in logger.handlers:
        old.close()
    logger.handlers.clear()

    formatter: logging.Formatter
    if json_format:
        formatter = JSONExceptionFormatter()
    else:
        formatter = logging.Formatter(TEXT_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))
    for handler in handlers:
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    return logger
