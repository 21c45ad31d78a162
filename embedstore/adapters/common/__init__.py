"""Helpers shared by inbound adapters."""

from .exception_handler import (
    format_exception_json,
    get_error_code,
    get_http_status_code,
    log_exception,
)

__all__ = [
    "format_exception_json",
    "get_error_code",
    "get_http_status_code",
    "log_exception",
]
