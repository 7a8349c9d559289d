"""Embedding provider capability."""

from abc import ABC, abstractmethod


class EmbeddingProvider(ABC):
    """Turns text into fixed-size vectors compared by cosine similarity.

    Identical input yields identical vectors for the lifetime of a
    provider. `is_query` lets asymmetric models (E5 and friends) embed
    search queries differently from stored passages.
    """

    @abstractmethod
    async def embed(self, text: str, *, is_query: bool = False) -> list[float]:
        """Embed one text.

        Raises:
            ValueError: If the text is empty
        """
        pass

    async def embed_batch(
        self, texts: list[str], *, is_query: bool = False
    ) -> list[list[float]]:
        """Embed several texts, in order.

        Providers with a native batch call override this; the default
        embeds one text at a time.

        Raises:
            ValueError: If the list is empty
        """
        if not texts:
            raise ValueError("Texts list cannot be empty")
        return [await self.embed(text, is_query=is_query) for text in texts]

    @abstractmethod
    def dimensions(self) -> int:
        """Vector size produced by this provider."""
        pass
