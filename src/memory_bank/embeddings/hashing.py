"""Deterministic feature-hashing embedding provider.

Needs no model download. Texts that share words get similar vectors,
which is enough for development, tests and offline use.
"""

import hashlib
import re

import numpy as np

from memory_bank.embeddings.base import EmbeddingProvider

_WORD_PATTERN = re.compile(r"\w+")


class HashEmbeddingProvider(EmbeddingProvider):
    """Bag-of-words embeddings via the hashing trick."""

    def __init__(self, dimensions: int = 384) -> None:
        """Initialize hash embedding provider.

        Args:
            dimensions: Embedding vector dimensions
        """
        if dimensions < 1:
            raise ValueError("dimensions must be >= 1")
        self._dimensions = dimensions

    def _features(self, text: str) -> list[str]:
        words = _WORD_PATTERN.findall(text.lower())
        # Word bigrams add a little word-order signal
        bigrams = [f"{a} {b}" for a, b in zip(words, words[1:])]
        return (words + bigrams) or [text]

    def _vectorize(self, text: str) -> list[float]:
        vector = np.zeros(self._dimensions)
        for feature in self._features(text):
            digest = hashlib.blake2b(feature.encode("utf-8"), digest_size=8).digest()
            index = int.from_bytes(digest[:4], "little") % self._dimensions
            sign = 1.0 if digest[4] & 1 else -1.0
            vector[index] += sign

        norm = np.linalg.norm(vector)
        if norm == 0:
            # Colliding features cancelled out; fall back to a one-hot vector
            vector[0] = 1.0
            return vector.tolist()
        return (vector / norm).tolist()

    async def embed(self, text: str, *, is_query: bool = False) -> list[float]:
        """Generate embedding for a single text."""
        if not text or not text.strip():
            raise ValueError("Text cannot be empty")
        return self._vectorize(text)

    def dimensions(self) -> int:
        """Get embedding vector dimensions."""
        return self._dimensions
