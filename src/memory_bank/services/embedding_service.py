"""Front door to the configured embedding provider."""

import logging
from collections.abc import Awaitable
from typing import Any

from memory_bank.embeddings.base import EmbeddingProvider
from memory_bank.exceptions import CollaboratorUnavailableError, ValidationError

logger = logging.getLogger(__name__)


class EmbeddingService:
    """Validates embedder input and reports provider failures uniformly.

    Any exception from the provider becomes
    `CollaboratorUnavailableError("Embedder")`, so callers can tell an
    unreachable embedder from bad input. Batches larger than `batch_size`
    are sent in several provider calls.
    """

    def __init__(self, provider: EmbeddingProvider, batch_size: int = 64) -> None:
        if batch_size < 1:
            raise ValueError("batch_size must be positive")
        self.provider = provider
        self.batch_size = batch_size

    @staticmethod
    async def _call(pending: Awaitable[Any]) -> Any:
        try:
            return await pending
        except Exception as e:
            logger.warning("Embedding provider failed: %s", e)
            raise CollaboratorUnavailableError("Embedder", str(e)) from e

    async def generate(self, text: str, *, is_query: bool = False) -> list[float]:
        """Embed one text.

        Args:
            text: Item, summary or query text
            is_query: True for search queries, False for stored passages

        Raises:
            ValidationError: If text is blank
            CollaboratorUnavailableError: If the provider fails
        """
        if not text or not text.strip():
            raise ValidationError("Text cannot be empty")
        return await self._call(self.provider.embed(text, is_query=is_query))

    async def generate_batch(
        self, texts: list[str], *, is_query: bool = False
    ) -> list[list[float]]:
        if not texts:
            raise ValidationError("Texts list cannot be empty")

        vectors: list[list[float]] = []
        for start in range(0, len(texts), self.batch_size):
            chunk = texts[start : start + self.batch_size]
            vectors.extend(await self._call(self.provider.embed_batch(chunk, is_query=is_query)))
        return vectors

    def dimensions(self) -> int:
        return self.provider.dimensions()
