"""Text preparation for documents and queries.

Both ingestion and querying run text through ``clean_text`` so the embedder
sees the same normal form on either side. ``chunk_text`` splits long files
into overlapping pieces for the CLI's ``add --chunk-size``.
"""

import re
import unicodedata

# BOM, replacement character and zero-width space; dropped outright
_INVISIBLE = str.maketrans("", "", "\ufeff\ufffd\u200b")

# Sentence end followed by whitespace, or a paragraph break
_BOUNDARY = re.compile(r"[.!?](?=\s)|\n\n")


def clean_text(text: str | None, *, normalize: bool = True, ascii_only: bool = False) -> str:
    """Strip invisible characters and optionally NFKC-normalise or ASCII-fold.

    Args:
        text: Raw text; ``None`` is treated as empty.
        normalize: Apply NFKC so full-width and compatibility forms match.
        ascii_only: Drop every non-ASCII character after normalising.
    """
    if not text:
        return ""

    cleaned = text.translate(_INVISIBLE)
    if normalize:
        cleaned = unicodedata.normalize("NFKC", cleaned)
    if ascii_only:
        cleaned = cleaned.encode("ascii", errors="ignore").decode("ascii")
    return cleaned


def _cut_point(text: str, start: int, limit: int, chunk_size: int) -> int:
    """End of the chunk starting at ``start``.

    Prefers the last sentence or paragraph boundary in the second half of the
    window, otherwise cuts hard at ``limit``.
    """
    if limit >= len(text):
        return len(text)
    earliest = start + chunk_size // 2
    best = None
    for match in _BOUNDARY.finditer(text, start, limit):
        if match.start() > earliest:
            best = match.start() + 1
    return best or limit


def chunk_text(text: str, chunk_size: int = 1000, chunk_overlap: int = 200) -> list[str]:
    """Split ``text`` into chunks of at most ``chunk_size`` characters.

    Consecutive chunks share ``chunk_overlap`` characters. Chunks are
    whitespace-trimmed and empty ones are dropped.

    Raises:
        ValueError: If ``chunk_size`` is not positive, ``chunk_overlap`` is
            negative, or the overlap is not smaller than the chunk size.
    """
    if chunk_size <= 0:
        raise ValueError("chunk_size must be positive")
    if chunk_overlap < 0:
        raise ValueError("chunk_overlap must be non-negative")
    if chunk_overlap >= chunk_size:
        raise ValueError("chunk_overlap must be less than chunk_size")

    if len(text) <= chunk_size:
        return [text] if text else []

    chunks: list[str] = []
    start = 0
    while True:
        end = _cut_point(text, start, start + chunk_size, chunk_size)
        piece = text[start:end].strip()
        if piece:
            chunks.append(piece)
        if end >= len(text):
            return chunks
        start = max(end - chunk_overlap, start + 1)
