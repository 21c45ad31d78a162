"""Shared helpers used across layers."""

from .rate_limiter import RateLimiter
from .utils import chunk_text, clean_text

__all__ = ["RateLimiter", "chunk_text", "clean_text"]
