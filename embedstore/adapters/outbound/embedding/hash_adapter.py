"""Deterministic hashed bag-of-words embeddings.

Useful offline and in tests: no model download, identical output across
runs and machines, and texts sharing words get similar vectors.
"""

import hashlib
import math
import re

from ....core.ports.embedding_port import EmbeddingPort

_TOKEN_PATTERN = re.compile(r"[a-z0-9_]+|[\u4e00-\u9fff]")


def tokenize(text: str) -> list[str]:
    """Lowercase word tokens (CJK characters count as single tokens)."""
    return _TOKEN_PATTERN.findall(text.lower())


class HashEmbeddingAdapter(EmbeddingPort):
    """Feature-hashing embedder.

    Each token is hashed with MD5 to a bucket and a sign; the token counts
    are accumulated and the vector is L2-normalised. Text without tokens
    embeds to the zero vector.
    """

    def __init__(self, dimension: int = 384) -> None:
        if dimension <= 0:
            raise ValueError("dimension must be positive")
        self._dimension = dimension

    @property
    def dimension(self) -> int:
        return self._dimension

    def _embed_one(self, text: str) -> list[float]:
        vector = [0.0] * self._dimension
        for token in tokenize(text):
            digest = hashlib.md5(token.encode("utf-8")).digest()
            bucket = int.from_bytes(digest[:8], "big") % self._dimension
            sign = 1.0 if digest[8] & 1 else -1.0
            vector[bucket] += sign

        norm = math.sqrt(sum(v * v for v in vector))
        if norm == 0:
            return vector
        return [v / norm for v in vector]

    def embed(self, texts: list[str]) -> list[list[float]]:
        return [self._embed_one(text) for text in texts]
